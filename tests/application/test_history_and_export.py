"""Testes da projeção de histórico e do export TXT."""

from __future__ import annotations

from conversa.application.export import export_history_txt, render_history_lines
from conversa.application.session import project_history
from conversa.domain.enums import DeliveryState, Origin
from conversa.domain.models import ChatMessage, HistoryEntry


def _log() -> list[ChatMessage]:
    return [
        ChatMessage.create(
            "Hello! How can I help you today?", Origin.ASSISTANT, DeliveryState.DELIVERED
        ),
        ChatMessage.create("hi", Origin.USER),
        ChatMessage.create("hello", Origin.ASSISTANT, DeliveryState.DELIVERED),
    ]


class TestProjectHistory:
    def test_mirrors_log_order_and_origin(self) -> None:
        history = project_history(_log())

        assert history == [
            HistoryEntry(content="Hello! How can I help you today?", is_user=False),
            HistoryEntry(content="hi", is_user=True),
            HistoryEntry(content="hello", is_user=False),
        ]

    def test_empty_log(self) -> None:
        assert project_history([]) == []

    def test_payload_uses_wire_alias(self) -> None:
        entry = project_history(_log())[1]

        assert entry.to_payload() == {"content": "hi", "isUser": True}

    def test_failed_user_message_still_projected(self) -> None:
        """Mensagem do usuário sem resposta continua no contexto."""
        log = _log() + [ChatMessage.create("ping", Origin.USER)]

        assert project_history(log)[-1] == HistoryEntry(content="ping", is_user=True)


class TestExportHistoryTxt:
    def test_user_and_bot_labels(self) -> None:
        text = export_history_txt(project_history(_log()))

        assert text == "Bot: Hello! How can I help you today?\nUser: hi\nBot: hello"

    def test_empty_history(self) -> None:
        assert export_history_txt([]) == ""

    def test_render_lines(self) -> None:
        lines = render_history_lines([HistoryEntry(content="a", is_user=True)])

        assert lines == ["User: a"]
