"""Responder de eco para desenvolvimento local (sem rede)."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from conversa.domain.models import HistoryEntry, ResponderReply
from conversa.domain.protocols.responder import ResponderProtocol


class EchoResponder(ResponderProtocol):
    """Devolve o próprio texto do usuário, opcionalmente com atraso."""

    def __init__(self, delay_seconds: float = 0.0, prefix: str = "") -> None:
        self._delay = delay_seconds
        self._prefix = prefix

    async def send(self, text: str, history: Sequence[HistoryEntry]) -> ResponderReply:
        if self._delay:
            await asyncio.sleep(self._delay)
        return ResponderReply(success=True, message=f"{self._prefix}{text}")
