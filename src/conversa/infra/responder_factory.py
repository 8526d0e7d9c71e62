"""Factory para o responder remoto conforme `responder_backend`."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from conversa.domain.protocols.responder import ResponderProtocol
from conversa.infra.http import create_http_client
from conversa.infra.responder_echo import EchoResponder
from conversa.infra.responder_http import HttpResponder
from conversa.observability.logging import get_logger

if TYPE_CHECKING:
    from conversa.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def create_responder(settings: Settings) -> ResponderProtocol:
    """Cria o responder configurado.

    Raises:
        ValueError: backend inválido ou configuração incompleta
    """
    backend = settings.responder_backend.lower()

    if backend == "echo":
        logger.warning("Using echo responder (dev only)")
        return EchoResponder()

    if backend == "http":
        if not settings.responder_url:
            msg = "responder_url required for http backend"
            raise ValueError(msg)
        logger.info("Using HTTP responder")
        return HttpResponder(settings.responder_url, create_http_client(settings))

    if backend == "openai":
        if not settings.openai_api_key:
            msg = "openai_api_key required for openai backend"
            raise ValueError(msg)
        from conversa.ai.openai_responder import OpenAIResponder

        logger.info("Using OpenAI responder", extra={"model": settings.openai_model})
        return OpenAIResponder(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            timeout_seconds=settings.openai_timeout_seconds,
            system_prompt=settings.openai_system_prompt,
        )

    msg = f"Unknown responder backend: {backend}"
    raise ValueError(msg)
