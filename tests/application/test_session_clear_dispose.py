"""Testes do SessionCoordinator — clear, dispose e eventos de estado."""

from __future__ import annotations

import asyncio

import pytest

from conversa.application.session import (
    SessionCoordinator,
    SessionStateChanged,
    StateChangeReason,
)
from conversa.config.settings import DEFAULT_GREETING
from conversa.domain.enums import ExchangeOutcome
from conversa.domain.errors import PersistenceError
from conversa.domain.models import ResponderReply


class TestClear:
    """Limpeza tudo-ou-nada seguida de reinicialização."""

    @pytest.mark.asyncio
    async def test_clear_resets_to_fresh_greeting(self, store, responder) -> None:
        coordinator = SessionCoordinator(store, responder)
        await coordinator.initialize()
        await coordinator.submit("hi")
        old_greeting = coordinator.state.messages[0]

        result = await coordinator.clear()

        assert result.ok is True
        assert store.clear_calls == 1
        snapshot = coordinator.state
        assert [m.text for m in snapshot.messages] == [DEFAULT_GREETING]
        assert snapshot.messages[0].id != old_greeting.id
        assert snapshot.initialized is True
        assert store.messages == list(snapshot.messages)

    @pytest.mark.asyncio
    async def test_clear_failure_keeps_messages_unchanged(self, store, responder) -> None:
        coordinator = SessionCoordinator(store, responder)
        await coordinator.initialize()
        await coordinator.submit("hi")
        before = coordinator.state.messages
        before_json = [m.model_dump_json() for m in before]
        store.fail_clear = PersistenceError("locked")

        result = await coordinator.clear()

        assert result.ok is False
        assert isinstance(result.error, PersistenceError)
        assert coordinator.state.messages == before
        assert [m.model_dump_json() for m in coordinator.state.messages] == before_json
        assert coordinator.state.last_error == "Failed to clear chat: locked"
        assert coordinator.state.initialized is True

    @pytest.mark.asyncio
    async def test_clear_clears_last_error(self, store, responder) -> None:
        responder.replies = [ResponderReply(success=False, message="busy")]
        coordinator = SessionCoordinator(store, responder)
        await coordinator.initialize()
        await coordinator.submit("hi")

        await coordinator.clear()

        assert coordinator.state.last_error is None

    @pytest.mark.asyncio
    async def test_clear_refused_while_exchange_in_flight(self, store, responder) -> None:
        responder.gate = asyncio.Event()
        coordinator = SessionCoordinator(store, responder)
        await coordinator.initialize()

        task = asyncio.create_task(coordinator.submit("hi"))
        await responder.entered.wait()
        result = await coordinator.clear()
        responder.gate.set()
        await task

        assert result.ok is False
        assert result.reason == "exchange_in_flight"
        assert store.clear_calls == 0
        assert len(coordinator.state.messages) == 3

    @pytest.mark.asyncio
    async def test_submit_during_reinitialize_is_dropped(self, store, responder) -> None:
        """Enquanto o clear recarrega o log, submissões não podem gravar."""
        coordinator = SessionCoordinator(store, responder)
        await coordinator.initialize()
        await coordinator.submit("old")
        store.list_gate = asyncio.Event()
        store.list_entered = asyncio.Event()

        clearing = asyncio.create_task(coordinator.clear())
        await store.list_entered.wait()

        assert coordinator.can_submit is False
        dropped = await coordinator.submit("hi")
        refused = await coordinator.clear()
        store.list_gate.set()
        result = await clearing

        assert dropped.outcome == ExchangeOutcome.DROPPED_IN_FLIGHT
        assert refused.reason == "initializing"
        assert result.ok is True
        assert [m.text for m in coordinator.state.messages] == [DEFAULT_GREETING]
        assert store.messages == list(coordinator.state.messages)
        assert [text for text, _ in responder.calls] == ["old"]


class TestInitializeInterleaving:
    """Carga do log e trocas nunca se intercalam."""

    @pytest.mark.asyncio
    async def test_submit_while_loading_is_dropped(self, store, responder) -> None:
        store.list_gate = asyncio.Event()
        coordinator = SessionCoordinator(store, responder)

        loading = asyncio.create_task(coordinator.initialize())
        await store.list_entered.wait()
        dropped = await coordinator.submit("hi")
        store.list_gate.set()
        await loading

        assert dropped.outcome == ExchangeOutcome.DROPPED_IN_FLIGHT
        assert responder.calls == []
        assert store.messages == list(coordinator.state.messages)
        assert coordinator.can_submit is True

    @pytest.mark.asyncio
    async def test_initialize_refused_while_exchange_in_flight(self, store, responder) -> None:
        """Submit antes do initialize: a carga espera a troca terminar."""
        responder.gate = asyncio.Event()
        coordinator = SessionCoordinator(store, responder)

        exchange = asyncio.create_task(coordinator.submit("hi"))
        await responder.entered.wait()
        refused = await coordinator.initialize()
        responder.gate.set()
        await exchange
        retry = await coordinator.initialize()

        assert refused.ok is False
        assert refused.reason == "exchange_in_flight"
        assert store.list_calls == 1  # apenas o retry carregou
        assert retry.ok is True
        assert [m.text for m in coordinator.state.messages] == ["hi", "reply to hi"]
        assert store.messages == list(coordinator.state.messages)


class TestDispose:
    """Conclusões pendentes não mutam o estado depois do dispose."""

    @pytest.mark.asyncio
    async def test_reply_after_dispose_is_persisted_but_not_applied(
        self, store, responder
    ) -> None:
        responder.gate = asyncio.Event()
        coordinator = SessionCoordinator(store, responder)
        await coordinator.initialize()

        task = asyncio.create_task(coordinator.submit("hi"))
        await responder.entered.wait()
        coordinator.dispose()
        responder.gate.set()
        result = await task

        assert result.outcome == ExchangeOutcome.DISPOSED
        assert result.reply is not None
        assert [m.text for m in store.messages] == [DEFAULT_GREETING, "hi", "reply to hi"]
        assert [m.text for m in coordinator.state.messages] == [DEFAULT_GREETING, "hi"]

    @pytest.mark.asyncio
    async def test_commands_after_dispose_are_no_ops(self, store, responder) -> None:
        coordinator = SessionCoordinator(store, responder)
        await coordinator.initialize()
        coordinator.dispose()

        submit = await coordinator.submit("hi")
        clear = await coordinator.clear()
        init = await coordinator.initialize()

        assert submit.outcome == ExchangeOutcome.DISPOSED
        assert clear.reason == "disposed"
        assert init.reason == "disposed"
        assert coordinator.is_alive is False
        assert coordinator.can_submit is False
        assert store.append_calls == 1

    @pytest.mark.asyncio
    async def test_aclose_disposes_and_closes_responder(self, store, responder) -> None:
        coordinator = SessionCoordinator(store, responder)

        await coordinator.aclose()

        assert coordinator.is_alive is False
        assert responder.closed is True


class TestStateEvents:
    """Listeners recebem um evento por mutação."""

    @pytest.mark.asyncio
    async def test_event_sequence_for_exchange(self, store, responder) -> None:
        coordinator = SessionCoordinator(store, responder)
        events: list[SessionStateChanged] = []
        coordinator.subscribe(events.append)

        await coordinator.initialize()
        await coordinator.submit("hi")

        assert [e.reason for e in events] == [
            StateChangeReason.LOADED,
            StateChangeReason.GREETING_SEEDED,
            StateChangeReason.USER_MESSAGE_APPENDED,
            StateChangeReason.REPLY_APPENDED,
        ]
        assert events[2].snapshot.is_waiting_for_response is True
        assert events[2].appended_message is True
        assert events[0].appended_message is False
        assert len(events[-1].snapshot.messages) == 3

    @pytest.mark.asyncio
    async def test_failure_events(self, store, responder) -> None:
        responder.replies = [ResponderReply(success=False, message="busy")]
        coordinator = SessionCoordinator(store, responder)
        await coordinator.initialize()
        reasons: list[StateChangeReason] = []
        coordinator.subscribe(lambda event: reasons.append(event.reason))

        await coordinator.submit("hi")
        coordinator.dismiss_error()

        assert reasons == [
            StateChangeReason.USER_MESSAGE_APPENDED,
            StateChangeReason.EXCHANGE_FAILED,
            StateChangeReason.ERROR_CLEARED,
        ]

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_session(self, store, responder) -> None:
        coordinator = SessionCoordinator(store, responder)
        received: list[StateChangeReason] = []

        def broken(event: SessionStateChanged) -> None:
            raise RuntimeError("render failed")

        coordinator.subscribe(broken)
        coordinator.subscribe(lambda event: received.append(event.reason))

        result = await coordinator.initialize()

        assert result.ok is True
        assert StateChangeReason.GREETING_SEEDED in received

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_notifications(self, store, responder) -> None:
        coordinator = SessionCoordinator(store, responder)
        received: list[SessionStateChanged] = []
        unsubscribe = coordinator.subscribe(received.append)

        unsubscribe()
        await coordinator.initialize()

        assert received == []
