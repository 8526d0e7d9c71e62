"""Implementação de MessageStore usando uma lista Redis.

Chave: `<prefix>:<session_key>`; cada item é o JSON de uma ChatMessage,
na ordem de inserção (RPUSH / LRANGE).
"""

from __future__ import annotations

import logging
from typing import Any

import anyio

from conversa.domain.errors import PersistenceError
from conversa.domain.models import ChatMessage
from conversa.domain.protocols.message_store import MessageStoreProtocol
from conversa.observability.logging import get_logger, message_ref

logger: logging.Logger = get_logger(__name__)


class RedisMessageStore(MessageStoreProtocol):
    """Armazenamento em Redis (cliente síncrono executado em thread)."""

    def __init__(
        self,
        redis_client: Any,
        session_key: str = "default",
        key_prefix: str = "conversa:messages",
    ) -> None:
        self._redis = redis_client
        self._key = f"{key_prefix}:{session_key}"

    @property
    def key(self) -> str:
        return self._key

    async def append(self, message: ChatMessage) -> None:
        payload = message.model_dump_json()

        try:
            await anyio.to_thread.run_sync(self._redis.rpush, self._key, payload)
            logger.debug(
                "Message appended (Redis)", extra={"message_id": message_ref(message.id)}
            )
        except Exception as e:  # pragma: no cover - log + wrap
            logger.error(
                "Failed to append message to Redis",
                extra={"message_id": message_ref(message.id), "error": str(e)},
            )
            raise PersistenceError(f"Redis append failed: {e}") from e

    async def list_all(self) -> list[ChatMessage]:
        try:
            raw_items = await anyio.to_thread.run_sync(self._redis.lrange, self._key, 0, -1)
        except Exception as e:
            logger.error("Failed to load messages from Redis", extra={"error": str(e)})
            raise PersistenceError(f"Redis load failed: {e}") from e

        items: list[ChatMessage] = []
        for raw in raw_items or []:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            items.append(ChatMessage.model_validate_json(raw))

        logger.debug("Messages listed (Redis)", extra={"count": len(items)})
        return items

    async def clear_all(self) -> None:
        try:
            await anyio.to_thread.run_sync(self._redis.delete, self._key)
            logger.debug("Messages cleared (Redis)", extra={"key": self._key})
        except Exception as e:
            logger.error("Failed to clear messages in Redis", extra={"error": str(e)})
            raise PersistenceError(f"Redis clear failed: {e}") from e
