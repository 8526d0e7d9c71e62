"""Responder remoto usando a API de chat completions da OpenAI.

Converte a projeção de histórico em mensagens `user`/`assistant`. Erros
de API/timeout viram ResponderError; resposta vazia vira `success=False`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from openai import APIError, APITimeoutError, AsyncOpenAI

from conversa.domain.errors import ResponderError
from conversa.domain.models import HistoryEntry, ResponderReply
from conversa.domain.protocols.responder import ResponderProtocol
from conversa.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

EMPTY_REPLY_MESSAGE = "The assistant returned an empty response. Please try again."


def build_chat_messages(
    text: str,
    history: Sequence[HistoryEntry],
    system_prompt: str | None = None,
) -> list[dict[str, str]]:
    """Monta a lista de mensagens no formato da OpenAI.

    O histórico já termina com a entrada do usuário atual; ela só é
    acrescentada se estiver ausente.
    """
    messages: list[dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})

    for entry in history:
        role = "user" if entry.is_user else "assistant"
        messages.append({"role": role, "content": entry.content})

    last = history[-1] if history else None
    if last is None or not last.is_user or last.content != text:
        messages.append({"role": "user", "content": text})

    return messages


class OpenAIResponder(ResponderProtocol):
    """Responder sobre `AsyncOpenAI`."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        timeout_seconds: float = 20.0,
        system_prompt: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model = model
        self._timeout = timeout_seconds
        self._system_prompt = system_prompt

    async def send(self, text: str, history: Sequence[HistoryEntry]) -> ResponderReply:
        messages = build_chat_messages(text, history, self._system_prompt)

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
                timeout=self._timeout,
            )
        except (APIError, APITimeoutError) as e:
            logger.warning(
                "openai_responder_error",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            raise ResponderError(f"Assistant request failed: {type(e).__name__}") from e

        content = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not content:
            logger.warning("openai_responder_empty_reply", extra={"model": self._model})
            return ResponderReply(success=False, message=EMPTY_REPLY_MESSAGE)

        logger.debug(
            "openai_responder_reply",
            extra={"model": self._model, "history_len": len(history), "reply_chars": len(content)},
        )
        return ResponderReply(success=True, message=content)

    async def aclose(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()
