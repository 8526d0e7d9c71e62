"""Implementação de MessageStore em memória (apenas dev/testes)."""

from __future__ import annotations

import logging

from conversa.domain.models import ChatMessage
from conversa.domain.protocols.message_store import MessageStoreProtocol
from conversa.observability.logging import get_logger, message_ref

logger: logging.Logger = get_logger(__name__)


class InMemoryMessageStore(MessageStoreProtocol):
    """Armazenamento em memória (não sobrevive a restart)."""

    def __init__(self, messages: list[ChatMessage] | None = None) -> None:
        self._messages: list[ChatMessage] = list(messages or [])

    async def append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        logger.debug(
            "Message appended (in-memory)",
            extra={"message_id": message_ref(message.id), "count": len(self._messages)},
        )

    async def list_all(self) -> list[ChatMessage]:
        logger.debug("Messages listed (in-memory)", extra={"count": len(self._messages)})
        return list(self._messages)

    async def clear_all(self) -> None:
        removed = len(self._messages)
        self._messages.clear()
        logger.debug("Messages cleared (in-memory)", extra={"removed": removed})
