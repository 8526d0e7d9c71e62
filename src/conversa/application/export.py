"""Export do histórico em texto simples ("View History").

Uma linha por entrada, na ordem do log:

    User: <conteúdo>
    Bot: <conteúdo>
"""

from __future__ import annotations

from collections.abc import Iterable

from conversa.domain.models import HistoryEntry

USER_LABEL = "User"
BOT_LABEL = "Bot"


def render_history_lines(history: Iterable[HistoryEntry]) -> list[str]:
    """Renderiza cada entrada como `<rótulo>: <conteúdo>`."""
    lines: list[str] = []
    for entry in history:
        label = USER_LABEL if entry.is_user else BOT_LABEL
        lines.append(f"{label}: {entry.content}")
    return lines


def export_history_txt(history: Iterable[HistoryEntry]) -> str:
    """Gera export TXT a partir da projeção de histórico."""
    return "\n".join(render_history_lines(history))
