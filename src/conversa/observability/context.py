"""Contexto de correlação por troca (exchange).

Substitui o middleware HTTP: aqui não há request, então o coordenador
vincula um correlation_id por `submit` para amarrar os logs da troca.
"""

from __future__ import annotations

import contextlib
import uuid
from collections.abc import Iterator
from contextvars import ContextVar

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Retorna o correlation_id corrente (ou vazio)."""

    return _correlation_id.get()


def new_correlation_id() -> str:
    """Gera um correlation_id novo."""

    return str(uuid.uuid4())


@contextlib.contextmanager
def bind_correlation_id(correlation_id: str | None = None) -> Iterator[str]:
    """Vincula um correlation_id ao contexto atual enquanto o bloco executa."""

    value = correlation_id or new_correlation_id()
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)
