"""Protocolo de domínio para persistência do log de mensagens."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from conversa.domain.models import ChatMessage


class MessageStoreProtocol(ABC):
    """Contrato mínimo assíncrono do message store.

    Implementações levantam `PersistenceError` em qualquer falha.
    """

    @abstractmethod
    async def append(self, message: ChatMessage) -> None: ...

    @abstractmethod
    async def list_all(self) -> list[ChatMessage]: ...

    @abstractmethod
    async def clear_all(self) -> None: ...
