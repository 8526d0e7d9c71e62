"""Testes unitários para config/settings.py.

Valida valores padrão, leitura de env e métodos de validação.
"""

from __future__ import annotations

import pytest

from conversa.config import DEFAULT_GREETING, Settings, get_settings


class TestSettingsDefaults:
    """Testes para valores padrão de Settings."""

    def test_default_environment_is_development(self) -> None:
        s = Settings()
        assert s.environment == "development"
        assert s.is_development is True
        assert s.is_production is False

    def test_default_backends_are_dev_friendly(self) -> None:
        s = Settings()
        assert s.message_store_backend == "memory"
        assert s.responder_backend == "echo"

    def test_default_greeting(self) -> None:
        assert Settings().greeting_text == DEFAULT_GREETING
        assert DEFAULT_GREETING == "Hello! How can I help you today?"

    def test_defaults_are_valid_in_development(self) -> None:
        assert Settings().validate_all() == []


class TestSettingsFromEnv:
    def test_reads_prefixed_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONVERSA_MESSAGE_STORE_BACKEND", "file")
        monkeypatch.setenv("CONVERSA_RESPONDER_BACKEND", "http")

        s = Settings()

        assert s.message_store_backend == "file"
        assert s.responder_backend == "http"

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()


class TestMessageStoreValidation:
    def test_invalid_backend(self) -> None:
        errors = Settings(message_store_backend="tape").validate_message_store_config()
        assert any("inválido" in e for e in errors)

    def test_memory_forbidden_in_production(self) -> None:
        s = Settings(environment="production", responder_backend="http", responder_url="https://x")
        errors = s.validate_message_store_config()
        assert any("proibido em produção" in e for e in errors)

    def test_redis_requires_url(self) -> None:
        errors = Settings(message_store_backend="redis").validate_message_store_config()
        assert any("REDIS_URL" in e for e in errors)

    def test_empty_session_key(self) -> None:
        errors = Settings(session_key="").validate_message_store_config()
        assert any("SESSION_KEY" in e for e in errors)


class TestResponderValidation:
    def test_http_requires_url(self) -> None:
        errors = Settings(responder_backend="http").validate_responder_config()
        assert any("RESPONDER_URL" in e for e in errors)

    def test_http_requires_https_in_production(self) -> None:
        s = Settings(
            environment="prod",
            message_store_backend="file",
            responder_backend="http",
            responder_url="http://insecure.example.com",
        )
        assert any("https" in e for e in s.validate_responder_config())

    def test_openai_requires_key(self) -> None:
        errors = Settings(responder_backend="openai").validate_responder_config()
        assert any("OPENAI_API_KEY" in e for e in errors)

    def test_echo_forbidden_in_production(self) -> None:
        errors = Settings(environment="production").validate_responder_config()
        assert any("echo" in e for e in errors)

    def test_timeout_and_retries_bounds(self) -> None:
        s = Settings(responder_timeout_seconds=0, responder_max_retries=-1)
        errors = s.validate_responder_config()
        assert len(errors) == 2

    def test_validate_all_aggregates(self) -> None:
        s = Settings(environment="production")
        assert len(s.validate_all()) == 2
