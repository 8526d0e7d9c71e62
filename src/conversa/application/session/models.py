"""Models de sessão — SessionState, SessionSnapshot e resultados de comandos.

SessionState é o agregado mutável, dono único: o SessionCoordinator.
SessionSnapshot é a cópia somente-leitura entregue à apresentação.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from conversa.domain.enums import ExchangeOutcome, ExchangePhase
from conversa.domain.errors import ConversaError
from conversa.domain.models import ChatMessage


class SessionState(BaseModel):
    """Estado canônico em memória da sessão de chat."""

    messages: list[ChatMessage] = Field(default_factory=list)
    is_waiting_for_response: bool = False
    is_typing: bool = False
    last_error: str | None = None
    initialized: bool = False


class SessionSnapshot(BaseModel):
    """Visão imutável do estado num instante (para render e listeners)."""

    model_config = ConfigDict(frozen=True)

    messages: tuple[ChatMessage, ...] = ()
    is_waiting_for_response: bool = False
    is_typing: bool = False
    last_error: str | None = None
    initialized: bool = False
    phase: ExchangePhase = ExchangePhase.IDLE
    can_submit: bool = True

    @classmethod
    def of(cls, state: SessionState, phase: ExchangePhase, can_submit: bool) -> SessionSnapshot:
        return cls(
            messages=tuple(state.messages),
            is_waiting_for_response=state.is_waiting_for_response,
            is_typing=state.is_typing,
            last_error=state.last_error,
            initialized=state.initialized,
            phase=phase,
            can_submit=can_submit,
        )


@dataclass(frozen=True, slots=True)
class ExchangeResult:
    """Resultado de `submit`."""

    outcome: ExchangeOutcome
    user_message: ChatMessage | None = None
    reply: ChatMessage | None = None
    error: ConversaError | None = None

    @property
    def delivered(self) -> bool:
        return self.outcome == ExchangeOutcome.DELIVERED


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Resultado de `initialize` / `clear`.

    `reason` explica no-ops (ex.: "already_initialized", "exchange_in_flight").
    """

    ok: bool
    error: ConversaError | None = None
    reason: str | None = None
