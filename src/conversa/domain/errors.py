"""Taxonomia de erros do coordenador.

Todos os erros que cruzam a fronteira store/responder -> coordenador
herdam de ConversaError, para que a camada de apresentação trate um
único tipo e exiba `message` ao usuário.
"""


class ConversaError(Exception):
    """Erro base.

    Attributes:
        code: código legível por máquina (ex.: "STORE_ERROR").
        message: mensagem exibível ao usuário.
        extra: campos adicionais para log (sem texto de mensagens).
    """

    code = "CONVERSA_ERROR"

    def __init__(self, message: str, *, code: str | None = None, **extra) -> None:
        self.message = message
        if code:
            self.code = code
        self.extra = extra
        super().__init__(message)


class PersistenceError(ConversaError):
    """Falha de leitura/escrita/limpeza no message store."""

    code = "STORE_ERROR"


class ResponderError(ConversaError):
    """Falha de transporte do responder remoto (rede, timeout, HTTP)."""

    code = "RESPONDER_ERROR"


class ResponderRejected(ResponderError):
    """Responder respondeu, mas com `success=False`.

    `message` é o texto explicativo devolvido pelo próprio responder.
    """

    code = "RESPONDER_REJECTED"


class InvalidDeliveryTransition(ConversaError):
    """Tentativa de regredir (ou pular) o estado de entrega de uma mensagem."""

    code = "INVALID_DELIVERY_TRANSITION"
