"""Re-exports dos Protocolos de domínio para uso por Application."""

from __future__ import annotations

from conversa.domain.protocols.message_store import MessageStoreProtocol
from conversa.domain.protocols.responder import ResponderProtocol

__all__ = [
    "MessageStoreProtocol",
    "ResponderProtocol",
]
