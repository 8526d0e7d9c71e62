from __future__ import annotations

import asyncio
from collections.abc import Sequence

import pytest

from conversa.config.settings import get_settings
from conversa.domain.models import ChatMessage, HistoryEntry, ResponderReply
from conversa.domain.protocols.message_store import MessageStoreProtocol
from conversa.domain.protocols.responder import ResponderProtocol


class FakeMessageStore(MessageStoreProtocol):
    """Store em memória com injeção de falhas e gates opcionais (append, list)."""

    def __init__(self, messages: list[ChatMessage] | None = None) -> None:
        self.messages: list[ChatMessage] = list(messages or [])
        self.fail_append: Exception | None = None
        self.fail_append_after: int | None = None
        self.fail_list: Exception | None = None
        self.fail_clear: Exception | None = None
        self.append_calls = 0
        self.list_calls = 0
        self.clear_calls = 0
        self.append_gate: asyncio.Event | None = None
        self.append_entered = asyncio.Event()
        self.list_gate: asyncio.Event | None = None
        self.list_entered = asyncio.Event()

    async def append(self, message: ChatMessage) -> None:
        self.append_calls += 1
        self.append_entered.set()
        if self.append_gate is not None:
            await self.append_gate.wait()
        if self.fail_append is not None:
            if self.fail_append_after is None or self.append_calls > self.fail_append_after:
                raise self.fail_append
        self.messages.append(message)

    async def list_all(self) -> list[ChatMessage]:
        self.list_calls += 1
        self.list_entered.set()
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.fail_list is not None:
            raise self.fail_list
        return list(self.messages)

    async def clear_all(self) -> None:
        self.clear_calls += 1
        if self.fail_clear is not None:
            raise self.fail_clear
        self.messages.clear()


class ScriptedResponder(ResponderProtocol):
    """Responder roteirizado: fila de respostas/exceções e gate opcional."""

    def __init__(self, *replies: ResponderReply | Exception) -> None:
        self.replies: list[ResponderReply | Exception] = list(replies)
        self.calls: list[tuple[str, list[HistoryEntry]]] = []
        self.gate: asyncio.Event | None = None
        self.entered = asyncio.Event()
        self.closed = False

    async def send(self, text: str, history: Sequence[HistoryEntry]) -> ResponderReply:
        self.calls.append((text, list(history)))
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        if not self.replies:
            return ResponderReply(success=True, message=f"reply to {text}")
        item = self.replies.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture()
def store() -> FakeMessageStore:
    return FakeMessageStore()


@pytest.fixture()
def responder() -> ScriptedResponder:
    return ScriptedResponder()


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "CONVERSA_ENVIRONMENT",
        "CONVERSA_MESSAGE_STORE_BACKEND",
        "CONVERSA_RESPONDER_BACKEND",
        "CONVERSA_GREETING_TEXT",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
