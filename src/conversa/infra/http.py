"""Cliente HTTP assíncrono com retry, timeout e circuit breaker.

Usado pelo HttpResponder. Regras:
- Sempre usar timeout
- Retry com backoff exponencial só para 429/5xx/timeout/conexão
- Nunca logar payloads (contêm texto do usuário)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from conversa.infra.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from conversa.observability.logging import get_logger

if TYPE_CHECKING:
    from conversa.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP (defaults conservadores)."""

    timeout_seconds: float = 30.0
    max_retries: int = 2
    backoff_base_seconds: float = 1.0
    backoff_max_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)
    breaker: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)


class HttpError(Exception):
    """Erro de requisição HTTP sem expor payload."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        is_retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable


def _is_retryable_status(status_code: int) -> bool:
    """429 ou 5xx permitem retry."""
    return status_code == 429 or 500 <= status_code < 600


def _calculate_backoff(attempt: int, base_seconds: float, max_seconds: float) -> float:
    """Backoff exponencial limitado por `max_seconds`."""
    return min((2**attempt) * base_seconds, max_seconds)


def _classify_transport_error(exc: Exception, method: str, url: str, attempt: int) -> HttpError:
    """Converte exceção do httpx em HttpError retentável, ou propaga inesperadas."""
    if isinstance(exc, httpx.TimeoutException):
        reason = "Timeout"
    elif isinstance(exc, httpx.TransportError):
        reason = "Connection error"
    else:
        logger.error(
            "http_unexpected_error",
            extra={"method": method, "url": url, "error_type": type(exc).__name__},
        )
        raise HttpError(f"Unexpected error: {type(exc).__name__}") from exc

    logger.warning(
        "http_transient_error",
        extra={"method": method, "url": url, "attempt": attempt + 1, "error": reason},
    )
    return HttpError(reason, is_retryable=True)


class HttpClient:
    """Cliente HTTP assíncrono.

    Uso típico:
        async with HttpClient(config) as client:
            response = await client.post(url, json=payload)
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or HttpClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._breaker: CircuitBreaker | None = None
        if self._config.breaker.enabled:
            self._breaker = CircuitBreaker(self._config.breaker)

    @property
    def breaker(self) -> CircuitBreaker | None:
        return self._breaker

    async def _get_client(self) -> httpx.AsyncClient:
        """Retorna cliente httpx (lazy)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Fecha o cliente e libera recursos."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _request_with_retry(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        cfg = self._config
        last_error: HttpError | None = None

        for attempt in range(cfg.max_retries + 1):
            logger.debug(
                "http_request",
                extra={"method": method, "url": url, "attempt": attempt + 1},
            )
            try:
                response = await client.request(method, url, **kwargs)
            except Exception as exc:
                last_error = _classify_transport_error(exc, method, url, attempt)
            else:
                if response.is_success:
                    return response
                if not _is_retryable_status(response.status_code):
                    logger.warning(
                        "http_non_retryable_status",
                        extra={"method": method, "url": url, "status_code": response.status_code},
                    )
                    raise HttpError(
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                        is_retryable=False,
                    )
                last_error = HttpError(
                    f"HTTP {response.status_code}",
                    status_code=response.status_code,
                    is_retryable=True,
                )

            if attempt < cfg.max_retries:
                backoff = _calculate_backoff(
                    attempt, cfg.backoff_base_seconds, cfg.backoff_max_seconds
                )
                logger.info(
                    "http_retry_backoff",
                    extra={"backoff_seconds": backoff, "next_attempt": attempt + 2},
                )
                await asyncio.sleep(backoff)

        logger.error(
            "http_retries_exhausted",
            extra={"method": method, "url": url, "total_attempts": cfg.max_retries + 1},
        )
        raise last_error or HttpError("Request failed after retries")

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Executa requisição passando pelo circuit breaker e retry."""
        breaker = self._breaker
        if breaker and not await breaker.allow_request():
            logger.warning(
                "http_circuit_open",
                extra={"method": method, "url": url, "breaker_state": breaker.state},
            )
            raise HttpError("Circuit breaker open", is_retryable=False)

        try:
            response = await self._request_with_retry(method, url, **kwargs)
        except HttpError as exc:
            if breaker:
                await breaker.record_failure(exc.is_retryable)
            raise

        if breaker:
            await breaker.record_success()
        return response

    async def post(
        self,
        url: str,
        json: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Executa POST com retry."""
        return await self.request("POST", url, json=json, **kwargs)


def create_http_client(settings: Settings | None = None) -> HttpClient:
    """Factory: cliente HTTP configurado para o responder."""
    if settings is None:
        from conversa.config.settings import get_settings

        settings = get_settings()

    config = HttpClientConfig(
        timeout_seconds=float(settings.responder_timeout_seconds),
        max_retries=settings.responder_max_retries,
        backoff_base_seconds=float(settings.responder_retry_backoff_seconds),
        default_headers={"User-Agent": f"{settings.service_name}/{settings.version}"},
        breaker=CircuitBreakerConfig(
            enabled=settings.responder_circuit_breaker_enabled,
            fail_max=settings.responder_circuit_breaker_fail_max,
            reset_timeout_seconds=float(settings.responder_circuit_breaker_reset_timeout_seconds),
            half_open_max_calls=settings.responder_circuit_breaker_half_open_max_calls,
        ),
    )

    logger.info(
        "http_client_created",
        extra={"timeout_seconds": config.timeout_seconds, "max_retries": config.max_retries},
    )
    return HttpClient(config)
