"""Implementação de MessageStore em arquivo JSON Lines.

Uma linha por mensagem, na ordem de inserção. I/O roda em thread
(anyio) para não bloquear o event loop.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from uuid import uuid4

import anyio
from pydantic import ValidationError

from conversa.domain.errors import PersistenceError
from conversa.domain.models import ChatMessage
from conversa.domain.protocols.message_store import MessageStoreProtocol
from conversa.observability.logging import get_logger, message_ref

logger: logging.Logger = get_logger(__name__)


class JsonlMessageStore(MessageStoreProtocol):
    """Store durável local: `<path>` em JSON Lines."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser().resolve()

    @property
    def path(self) -> Path:
        return self._path

    def _append_sync(self, message: ChatMessage) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        line = message.model_dump_json()
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
            fh.flush()
            os.fsync(fh.fileno())

    def _list_sync(self) -> list[ChatMessage]:
        if not self._path.exists():
            return []
        items: list[ChatMessage] = []
        for lineno, line in enumerate(self._path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            try:
                items.append(ChatMessage.model_validate_json(line))
            except ValidationError:
                # Linha truncada (crash no meio de um append) não derruba o load
                logger.warning(
                    "Skipping corrupt message line (file)",
                    extra={"path": str(self._path), "line": lineno},
                )
        return items

    def _clear_sync(self) -> None:
        if not self._path.exists():
            return
        # Troca atômica por arquivo vazio: ou limpa tudo ou nada muda
        tmp_path = self._path.with_name(f"{self._path.name}.{uuid4().hex}.tmp")
        tmp_path.write_text("", encoding="utf-8")
        os.replace(tmp_path, self._path)

    async def append(self, message: ChatMessage) -> None:
        try:
            await anyio.to_thread.run_sync(self._append_sync, message)
        except OSError as e:
            logger.error(
                "Failed to append message to file",
                extra={"message_id": message_ref(message.id), "error": str(e)},
            )
            raise PersistenceError(f"File append failed: {e}") from e
        logger.debug("Message appended (file)", extra={"message_id": message_ref(message.id)})

    async def list_all(self) -> list[ChatMessage]:
        try:
            items = await anyio.to_thread.run_sync(self._list_sync)
        except OSError as e:
            logger.error("Failed to read messages from file", extra={"error": str(e)})
            raise PersistenceError(f"File read failed: {e}") from e
        logger.debug("Messages listed (file)", extra={"count": len(items)})
        return items

    async def clear_all(self) -> None:
        try:
            await anyio.to_thread.run_sync(self._clear_sync)
        except OSError as e:
            logger.error("Failed to clear messages file", extra={"error": str(e)})
            raise PersistenceError(f"File clear failed: {e}") from e
        logger.debug("Messages cleared (file)", extra={"path": str(self._path)})
