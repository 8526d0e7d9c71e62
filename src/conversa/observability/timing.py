"""Context manager for latency instrumentation."""

from __future__ import annotations

import contextlib
import time
from collections.abc import Generator
from typing import Any

from conversa.observability.logging import get_logger

logger = get_logger(__name__)


@contextlib.contextmanager
def timed(component: str, **fields: Any) -> Generator[None, None, None]:
    """Measure the wrapped block and log `component_latency`.

    Usage:
        with timed("responder", session_id=sid):
            reply = await responder.send(text, history)

    Extra keyword fields are attached to the log record as-is; they must not
    carry message text.
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "component_latency",
            extra={
                "component": component,
                "elapsed_ms": round(elapsed_ms, 2),
                **fields,
            },
        )
