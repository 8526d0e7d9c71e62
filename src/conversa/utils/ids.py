"""Geradores de identificadores."""

from __future__ import annotations

import uuid
from datetime import datetime


def new_session_id() -> str:
    """Gera um session_id único."""

    return str(uuid.uuid4())


def new_message_id(origin: str, created_at: datetime) -> str:
    """Deriva id de mensagem a partir de origem + timestamp.

    Formato: "<origin>-<epoch_us>-<8 hex>". O sufixo aleatório evita
    colisão entre mensagens criadas no mesmo microssegundo.
    """

    epoch_us = int(created_at.timestamp() * 1_000_000)
    return f"{origin}-{epoch_us}-{uuid.uuid4().hex[:8]}"
