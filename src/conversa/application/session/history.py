"""Projeção pura do log de mensagens para o contexto do responder."""

from __future__ import annotations

from collections.abc import Iterable

from conversa.domain.models import ChatMessage, HistoryEntry


def project_history(messages: Iterable[ChatMessage]) -> list[HistoryEntry]:
    """Deriva a lista de HistoryEntry na mesma ordem do log.

    Função pura: recalculada a cada uso, nunca armazenada, então não
    diverge de `messages`.
    """
    return [HistoryEntry.from_message(message) for message in messages]
