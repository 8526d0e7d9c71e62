"""Circuit breaker para o responder remoto.

Evita martelar um responder fora do ar: após `fail_max` falhas
retentáveis consecutivas, falha rápido até `reset_timeout_seconds`
e então libera chamadas de teste (half-open).
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from conversa.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

CircuitState = Literal["closed", "open", "half_open"]


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuração do breaker (desabilitado por padrão)."""

    enabled: bool = False
    fail_max: int = 5
    reset_timeout_seconds: float = 60.0
    half_open_max_calls: int = 1


class CircuitBreaker:
    """Máquina closed -> open -> half_open -> closed."""

    def __init__(
        self,
        config: CircuitBreakerConfig,
        clock: Callable[[], float] | None = None,
        name: str = "responder",
    ) -> None:
        self._config = config
        self._name = name
        self._clock = clock or time.monotonic
        self._lock = asyncio.Lock()
        self._state: CircuitState = "closed"
        self._failures = 0
        self._opened_at: float | None = None
        self._trial_calls = 0

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failures

    async def allow_request(self) -> bool:
        """Decide se a chamada pode seguir.

        Aberto dentro do timeout bloqueia; passado o timeout entra em
        half-open e deixa passar até `half_open_max_calls` tentativas.
        """
        if not self._config.enabled:
            return True

        async with self._lock:
            if self._state == "open":
                opened_at = self._opened_at if self._opened_at is not None else self._clock()
                if self._clock() - opened_at < self._config.reset_timeout_seconds:
                    return False
                self._transition("half_open")

            if self._state == "half_open":
                if self._trial_calls >= self._config.half_open_max_calls:
                    return False
                self._trial_calls += 1

            return True

    async def record_success(self) -> CircuitState:
        if not self._config.enabled:
            return "closed"

        async with self._lock:
            self._failures = 0
            if self._state != "closed":
                self._transition("closed")
            return self._state

    async def record_failure(self, is_retryable: bool) -> CircuitState:
        """Conta a falha; erros não retentáveis (4xx) não abrem o circuito."""
        if not self._config.enabled:
            return "closed"

        async with self._lock:
            if not is_retryable:
                self._failures = 0
                return self._state

            self._failures += 1
            if self._state == "half_open" or self._failures >= self._config.fail_max:
                self._transition("open")
            return self._state

    def _transition(self, new_state: CircuitState) -> None:
        previous = self._state
        self._state = new_state
        self._trial_calls = 0
        if new_state == "open":
            self._opened_at = self._clock()
        elif new_state == "closed":
            self._opened_at = None
        logger.info(
            "circuit_breaker_transition",
            extra={
                "breaker": self._name,
                "from_state": previous,
                "to_state": new_state,
                "failures": self._failures,
            },
        )
