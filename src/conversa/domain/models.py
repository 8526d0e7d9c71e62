"""Modelos de domínio — mensagens, projeção de histórico e resposta do responder.

ChatMessage é imutável depois de criada; mudanças de entrega geram uma
nova instância via `advance`.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from conversa.domain.enums import DeliveryState, Origin
from conversa.domain.errors import InvalidDeliveryTransition
from conversa.utils.ids import new_message_id

# Transições permitidas de entrega (estado -> próximos válidos)
_FORWARD_TRANSITIONS: dict[DeliveryState, frozenset[DeliveryState]] = {
    DeliveryState.SENT: frozenset({DeliveryState.DELIVERED, DeliveryState.FAILED}),
    DeliveryState.DELIVERED: frozenset(),
    DeliveryState.FAILED: frozenset(),
}


class ChatMessage(BaseModel):
    """Mensagem persistida no log da sessão."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    origin: Origin
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))
    delivery_state: DeliveryState = DeliveryState.SENT

    @classmethod
    def create(
        cls,
        text: str,
        origin: Origin,
        delivery_state: DeliveryState = DeliveryState.SENT,
        created_at: datetime | None = None,
    ) -> ChatMessage:
        """Constrói mensagem nova com id derivado de origem + timestamp."""
        ts = created_at or datetime.now(tz=UTC)
        return cls(
            id=new_message_id(origin.value, ts),
            text=text,
            origin=origin,
            created_at=ts,
            delivery_state=delivery_state,
        )

    @property
    def is_user(self) -> bool:
        return self.origin == Origin.USER

    def advance(self, state: DeliveryState) -> ChatMessage:
        """Retorna cópia com novo estado de entrega.

        Raises:
            InvalidDeliveryTransition: se a transição regride o estado.
        """
        if state == self.delivery_state:
            return self
        if state not in _FORWARD_TRANSITIONS[self.delivery_state]:
            raise InvalidDeliveryTransition(
                f"Cannot move delivery state from {self.delivery_state} to {state}",
                message_id=self.id,
            )
        return self.model_copy(update={"delivery_state": state})


class HistoryEntry(BaseModel):
    """Projeção simplificada de ChatMessage enviada como contexto ao responder.

    Forma de fio: {"content": ..., "isUser": ...}.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    content: str
    is_user: bool = Field(alias="isUser")

    @classmethod
    def from_message(cls, message: ChatMessage) -> HistoryEntry:
        return cls(content=message.text, is_user=message.is_user)

    def to_payload(self) -> dict[str, object]:
        """Serializa no formato esperado pelo responder."""
        return self.model_dump(by_alias=True)


class ResponderReply(BaseModel):
    """Resposta do responder remoto.

    `success=False` é um resultado reconhecido (não excepcional): `message`
    explica a falha ao usuário.
    """

    success: bool
    message: str = ""
