"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars (ou `.env` em dev).
Nunca hardcode secrets ou valores sensíveis.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from conversa.observability.logging import get_logger

DEFAULT_GREETING: str = "Hello! How can I help you today?"


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="CONVERSA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Aplicação
    service_name: str = "conversa"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"  # json | text

    # Sessão
    greeting_text: str = DEFAULT_GREETING  # Saudação sintética quando o store está vazio
    session_key: str = "default"  # Chave lógica do histórico no store

    # Message store backend
    message_store_backend: str = "memory"  # memory | file | redis | firestore
    message_store_path: str = ".storage/messages.jsonl"  # Para backend=file
    redis_url: str | None = None  # Para backend=redis
    redis_key_prefix: str = "conversa:messages"
    firestore_project_id: str | None = None  # Para backend=firestore
    firestore_collection: str = "chat_sessions"

    # Remote responder
    responder_backend: str = "echo"  # echo | http | openai
    responder_url: str | None = None  # Endpoint POST para backend=http
    responder_timeout_seconds: float = 30.0
    responder_max_retries: int = 2
    responder_retry_backoff_seconds: float = 1.0
    responder_circuit_breaker_enabled: bool = False
    responder_circuit_breaker_fail_max: int = 5
    responder_circuit_breaker_reset_timeout_seconds: float = 60.0
    responder_circuit_breaker_half_open_max_calls: int = 1

    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 20.0
    openai_system_prompt: str | None = None

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")

    def validate_message_store_config(self) -> list[str]:
        """Valida backend de message store.

        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.message_store_backend.lower()
        valid_backends = {"memory", "file", "redis", "firestore"}

        if backend not in valid_backends:
            errors.append(
                f"MESSAGE_STORE_BACKEND '{backend}' inválido. Valores válidos: {valid_backends}"
            )

        # Histórico em memória se perde a cada restart
        if self.is_production and backend == "memory":
            errors.append(
                "MESSAGE_STORE_BACKEND=memory é proibido em produção. "
                "Use 'file', 'redis' ou 'firestore'."
            )

        if backend == "file" and not self.message_store_path:
            errors.append("MESSAGE_STORE_BACKEND=file requer MESSAGE_STORE_PATH configurado")
        if backend == "redis" and not self.redis_url:
            errors.append("MESSAGE_STORE_BACKEND=redis requer REDIS_URL configurado")
        if not self.session_key:
            errors.append("SESSION_KEY não pode ser vazio")

        return errors

    def validate_responder_config(self) -> list[str]:
        """Valida configuração do responder remoto."""
        errors: list[str] = []
        backend = self.responder_backend.lower()

        if backend not in {"echo", "http", "openai"}:
            errors.append("RESPONDER_BACKEND inválido: use echo | http | openai")

        if backend == "http":
            if not self.responder_url:
                errors.append("RESPONDER_BACKEND=http requer RESPONDER_URL configurado")
            elif self.is_production and self.responder_url.startswith("http://"):
                errors.append("RESPONDER_URL deve usar https em produção")

        if backend == "openai" and not self.openai_api_key:
            errors.append("RESPONDER_BACKEND=openai requer OPENAI_API_KEY configurado")

        if backend == "echo" and self.is_production:
            errors.append("RESPONDER_BACKEND=echo é proibido em produção")

        if self.responder_timeout_seconds <= 0:
            errors.append("RESPONDER_TIMEOUT_SECONDS deve ser > 0")
        if self.responder_max_retries < 0:
            errors.append("RESPONDER_MAX_RETRIES deve ser >= 0")

        return errors

    def validate_all(self) -> list[str]:
        """Agrega todas as validações."""
        return self.validate_message_store_config() + self.validate_responder_config()

    def model_post_init(self, __context: Any) -> None:
        """Registra o ambiente escolhido (sem expor secrets)."""
        logger: logging.Logger = get_logger(__name__)
        logger.debug(
            "settings_loaded",
            extra={
                "environment": self.environment,
                "message_store_backend": self.message_store_backend,
                "responder_backend": self.responder_backend,
            },
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
