"""Factory para MessageStore — criação backend-agnóstica.

Responsabilidades:
- Criar o store conforme `message_store_backend`
- Criar clientes Redis/Firestore sob demanda (import tardio)
- Registrar escolha de backend
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from conversa.domain.protocols.message_store import MessageStoreProtocol
from conversa.infra.message_store_file import JsonlMessageStore
from conversa.infra.message_store_firestore import FirestoreMessageStore
from conversa.infra.message_store_memory import InMemoryMessageStore
from conversa.infra.message_store_redis import RedisMessageStore
from conversa.observability.logging import get_logger

if TYPE_CHECKING:
    from conversa.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def _create_redis_client(redis_url: str) -> Any:
    try:
        import redis
    except ImportError as e:
        msg = "redis package not installed: pip install 'conversa[redis]'"
        raise ValueError(msg) from e
    return redis.from_url(redis_url, decode_responses=True)


def _create_firestore_client(project_id: str | None) -> Any:
    try:
        from google.cloud import firestore
    except ImportError as e:
        msg = "google-cloud-firestore not installed: pip install 'conversa[firestore]'"
        raise ValueError(msg) from e
    return firestore.Client(project=project_id)


def create_message_store(
    settings: Settings,
    redis_client: Any | None = None,
    firestore_client: Any | None = None,
) -> MessageStoreProtocol:
    """Cria o MessageStore configurado.

    Args:
        settings: configurações (backend, paths, chaves)
        redis_client: cliente Redis já criado (opcional)
        firestore_client: cliente Firestore já criado (opcional)

    Raises:
        ValueError: backend inválido ou configuração incompleta
    """
    backend = settings.message_store_backend.lower()

    if backend == "memory":
        logger.warning("Using in-memory message store (dev only)")
        return InMemoryMessageStore()

    if backend == "file":
        logger.info("Using JSONL file message store", extra={"path": settings.message_store_path})
        return JsonlMessageStore(settings.message_store_path)

    if backend == "redis":
        if redis_client is None:
            if not settings.redis_url:
                msg = "redis_url required for redis backend"
                raise ValueError(msg)
            redis_client = _create_redis_client(settings.redis_url)
        logger.info("Using Redis message store")
        return RedisMessageStore(
            redis_client,
            session_key=settings.session_key,
            key_prefix=settings.redis_key_prefix,
        )

    if backend == "firestore":
        if firestore_client is None:
            firestore_client = _create_firestore_client(settings.firestore_project_id)
        logger.info("Using Firestore message store")
        return FirestoreMessageStore(
            firestore_client,
            session_key=settings.session_key,
            collection=settings.firestore_collection,
        )

    msg = f"Unknown message store backend: {backend}"
    raise ValueError(msg)
