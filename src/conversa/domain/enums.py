"""Enums de domínio para origem, entrega e fase das trocas de mensagens."""

from __future__ import annotations

from enum import StrEnum


class Origin(StrEnum):
    """Quem escreveu a mensagem."""

    USER = "user"
    ASSISTANT = "assistant"


class DeliveryState(StrEnum):
    """Estado de entrega de uma mensagem persistida.

    Só avança: SENT -> DELIVERED ou SENT -> FAILED.
    """

    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class ExchangePhase(StrEnum):
    """Fase da troca corrente no coordenador."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_RESPONSE = "awaiting_response"


class ExchangeOutcome(StrEnum):
    """Resultado terminal de um `submit`."""

    DELIVERED = "delivered"
    FAILED = "failed"
    DROPPED_EMPTY = "dropped_empty"
    DROPPED_IN_FLIGHT = "dropped_in_flight"
    DISPOSED = "disposed"
