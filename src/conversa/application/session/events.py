"""Eventos de mudança de estado emitidos pelo coordenador."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from conversa.application.session.models import SessionSnapshot


class StateChangeReason(StrEnum):
    """Motivo da mutação (a apresentação usa para auto-scroll etc.)."""

    LOADED = "loaded"
    GREETING_SEEDED = "greeting_seeded"
    USER_MESSAGE_APPENDED = "user_message_appended"
    REPLY_APPENDED = "reply_appended"
    EXCHANGE_FAILED = "exchange_failed"
    ERROR_RAISED = "error_raised"
    ERROR_CLEARED = "error_cleared"
    CLEARED = "cleared"


@dataclass(frozen=True, slots=True)
class SessionStateChanged:
    reason: StateChangeReason
    snapshot: SessionSnapshot

    @property
    def appended_message(self) -> bool:
        """True quando uma mensagem nova entrou no log (sinal de scroll)."""
        return self.reason in (
            StateChangeReason.GREETING_SEEDED,
            StateChangeReason.USER_MESSAGE_APPENDED,
            StateChangeReason.REPLY_APPENDED,
        )


StateListener = Callable[[SessionStateChanged], None]
