"""Protocolo de domínio para o responder remoto."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from conversa.domain.models import HistoryEntry, ResponderReply


class ResponderProtocol(ABC):
    """Contrato do responder: texto novo + histórico -> ResponderReply.

    Falhas de transporte levantam `ResponderError`; `success=False`
    volta como resposta normal.
    """

    @abstractmethod
    async def send(self, text: str, history: Sequence[HistoryEntry]) -> ResponderReply: ...

    async def aclose(self) -> None:
        """Libera recursos (clientes HTTP etc.). Padrão: nada a fazer."""
        return None
