"""Implementação de MessageStore usando Firestore.

Coleção: <collection>/{session_key}/messages/{message_id}
Ordenação por `created_at` (timestamp UTC da mensagem).
"""

from __future__ import annotations

import logging
from typing import Any

import anyio

from conversa.domain.errors import PersistenceError
from conversa.domain.models import ChatMessage
from conversa.domain.protocols.message_store import MessageStoreProtocol
from conversa.observability.logging import get_logger, message_ref, short_id

logger: logging.Logger = get_logger(__name__)

# Limite de operações por batch do Firestore
_BATCH_LIMIT = 500


class FirestoreMessageStore(MessageStoreProtocol):
    """Armazenamento em Firestore (cliente síncrono executado em thread)."""

    def __init__(
        self,
        firestore_client: Any,
        session_key: str = "default",
        collection: str = "chat_sessions",
    ) -> None:
        self._client = firestore_client
        self._session_key = session_key
        self._collection = collection

    def _messages_ref(self) -> Any:
        return (
            self._client.collection(self._collection)
            .document(self._session_key)
            .collection("messages")
        )

    def _append_sync(self, message: ChatMessage) -> None:
        data = message.model_dump(mode="json")
        # Timestamp nativo: string ISO sem fração ordena errado
        data["created_at"] = message.created_at
        self._messages_ref().document(message.id).set(data)

    def _list_sync(self) -> list[ChatMessage]:
        docs = self._messages_ref().order_by("created_at").stream()
        return [ChatMessage.model_validate(doc.to_dict() or {}) for doc in docs]

    def _clear_sync(self) -> None:
        batch = self._client.batch()
        pending = 0
        for doc in self._messages_ref().stream():
            batch.delete(doc.reference)
            pending += 1
            if pending >= _BATCH_LIMIT:
                batch.commit()
                batch = self._client.batch()
                pending = 0
        if pending:
            batch.commit()

    async def append(self, message: ChatMessage) -> None:
        try:
            await anyio.to_thread.run_sync(self._append_sync, message)
            logger.debug(
                "Message appended (Firestore)", extra={"message_id": message_ref(message.id)}
            )
        except Exception as e:
            logger.error(
                "Failed to append message to Firestore",
                extra={"message_id": message_ref(message.id), "error": str(e)},
            )
            raise PersistenceError(f"Firestore append failed: {e}") from e

    async def list_all(self) -> list[ChatMessage]:
        try:
            items = await anyio.to_thread.run_sync(self._list_sync)
        except Exception as e:
            logger.error("Failed to load messages from Firestore", extra={"error": str(e)})
            raise PersistenceError(f"Firestore load failed: {e}") from e
        logger.debug("Messages listed (Firestore)", extra={"count": len(items)})
        return items

    async def clear_all(self) -> None:
        try:
            await anyio.to_thread.run_sync(self._clear_sync)
            logger.debug(
                "Messages cleared (Firestore)",
                extra={"session_key": short_id(self._session_key)},
            )
        except Exception as e:
            logger.error("Failed to clear messages in Firestore", extra={"error": str(e)})
            raise PersistenceError(f"Firestore clear failed: {e}") from e
