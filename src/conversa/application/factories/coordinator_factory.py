"""Factory para construção do SessionCoordinator.

Responsabilidades:
- Conhecer infra e settings
- Resolver store e responder pelo backend configurado
- Retornar um `SessionCoordinator` pronto para `initialize()`

Não conter lógica de sessão.
"""

from __future__ import annotations

from conversa.application.session.coordinator import SessionCoordinator
from conversa.config.settings import Settings, get_settings
from conversa.domain.protocols import MessageStoreProtocol, ResponderProtocol
from conversa.observability.logging import get_logger

logger = get_logger(__name__)


def create_coordinator(
    settings: Settings | None = None,
    *,
    store: MessageStoreProtocol | None = None,
    responder: ResponderProtocol | None = None,
) -> SessionCoordinator:
    """Constrói `SessionCoordinator` usando infra/settings.

    Parâmetros explícitos têm prioridade; quando ausentes, o backend vem
    de `settings` (ou `get_settings()`).
    """
    settings = settings or get_settings()

    # Import infra factories apenas aqui
    from conversa.infra import create_message_store, create_responder

    if store is None:
        store = create_message_store(settings)
        logger.debug(
            "factory_created_message_store",
            extra={"backend": settings.message_store_backend},
        )

    if responder is None:
        responder = create_responder(settings)
        logger.debug(
            "factory_created_responder",
            extra={"backend": settings.responder_backend},
        )

    return SessionCoordinator(
        store,
        responder,
        greeting_text=settings.greeting_text,
    )
