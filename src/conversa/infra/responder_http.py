"""Responder remoto via HTTP (JSON).

Requisição:  POST <url> {"message": <texto>, "history": [{"content", "isUser"}, ...]}
Resposta:    {"success": bool, "message": str}
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydantic import ValidationError

from conversa.domain.errors import ResponderError
from conversa.domain.models import HistoryEntry, ResponderReply
from conversa.domain.protocols.responder import ResponderProtocol
from conversa.infra.http import HttpClient, HttpError
from conversa.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


def build_request_payload(text: str, history: Sequence[HistoryEntry]) -> dict[str, object]:
    """Monta o corpo JSON enviado ao responder."""
    return {
        "message": text,
        "history": [entry.to_payload() for entry in history],
    }


class HttpResponder(ResponderProtocol):
    """Responder que delega a um endpoint HTTP."""

    def __init__(self, url: str, http_client: HttpClient) -> None:
        self._url = url
        self._http = http_client

    async def send(self, text: str, history: Sequence[HistoryEntry]) -> ResponderReply:
        payload = build_request_payload(text, history)

        try:
            response = await self._http.post(self._url, json=payload)
        except HttpError as e:
            logger.warning(
                "responder_http_failed",
                extra={"status_code": e.status_code, "retryable": e.is_retryable, "error": str(e)},
            )
            raise ResponderError(f"Responder request failed: {e}", status_code=e.status_code) from e

        try:
            reply = ResponderReply.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(
                "responder_http_invalid_body",
                extra={"status_code": response.status_code, "errors": e.error_count()},
            )
            raise ResponderError("Responder returned an invalid response") from e

        logger.debug(
            "responder_http_reply",
            extra={"success": reply.success, "reply_chars": len(reply.message)},
        )
        return reply

    async def aclose(self) -> None:
        await self._http.close()
