"""Package `session` — estado e coordenação da sessão de chat.

Exports principais:
- SessionState / SessionSnapshot: estado mutável e visão somente-leitura
- SessionCoordinator: dono único do estado (de session/coordinator.py)
- project_history: projeção pura do log para o responder
"""

from __future__ import annotations

from conversa.application.session.events import (
    SessionStateChanged,
    StateChangeReason,
    StateListener,
)
from conversa.application.session.history import project_history
from conversa.application.session.models import (
    ExchangeResult,
    OperationResult,
    SessionSnapshot,
    SessionState,
)

__all__ = [
    "ExchangeResult",
    "OperationResult",
    "SessionCoordinator",
    "SessionSnapshot",
    "SessionState",
    "SessionStateChanged",
    "StateChangeReason",
    "StateListener",
    "project_history",
]


def __getattr__(name: str):
    """Lazy import do coordenador (evita import circular com factories)."""
    if name == "SessionCoordinator":
        from conversa.application.session.coordinator import SessionCoordinator

        return SessionCoordinator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
