"""SessionCoordinator — dono único do estado da sessão de chat.

Conduz o ciclo de cada troca:

    idle -> submitting (grava msg do usuário) -> awaiting_response
         -> idle (resposta entregue ou falha)

Exclusão mútua é cooperativa: a fase é marcada de forma síncrona na
entrada de `submit`, antes do primeiro `await`, então um segundo submit
durante a troca é descartado (não enfileirado). Toda mutação passa por
aqui e checa a flag de vida (`dispose`) depois de cada suspensão.
"""

from __future__ import annotations

import asyncio
import logging

from conversa.application.session.events import (
    SessionStateChanged,
    StateChangeReason,
    StateListener,
)
from conversa.application.session.history import project_history
from conversa.application.session.models import (
    ExchangeResult,
    OperationResult,
    SessionSnapshot,
    SessionState,
)
from conversa.config.settings import DEFAULT_GREETING
from conversa.domain.enums import DeliveryState, ExchangeOutcome, ExchangePhase, Origin
from conversa.domain.errors import (
    ConversaError,
    PersistenceError,
    ResponderError,
    ResponderRejected,
)
from conversa.domain.models import ChatMessage, HistoryEntry
from conversa.domain.protocols.message_store import MessageStoreProtocol
from conversa.domain.protocols.responder import ResponderProtocol
from conversa.observability.context import bind_correlation_id
from conversa.observability.logging import get_logger, message_ref, short_id
from conversa.observability.timing import timed
from conversa.utils.ids import new_session_id

REJECTED_FALLBACK_MESSAGE = "The assistant could not answer this message."


def _as_persistence_error(exc: Exception, prefix: str) -> PersistenceError:
    reason = exc.message if isinstance(exc, ConversaError) else (str(exc) or type(exc).__name__)
    return PersistenceError(f"{prefix}: {reason}")


def _as_responder_error(exc: Exception) -> ResponderError:
    if isinstance(exc, ResponderError):
        return exc
    return ResponderError(str(exc) or type(exc).__name__)


class SessionCoordinator:
    """Coordena store + responder e expõe estado consistente à apresentação.

    Comandos (`initialize`, `submit`, `clear`) nunca levantam erros de
    store/responder: convertem em `last_error` e devolvem o erro no
    resultado.
    """

    def __init__(
        self,
        store: MessageStoreProtocol,
        responder: ResponderProtocol,
        *,
        greeting_text: str = DEFAULT_GREETING,
        session_id: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._store = store
        self._responder = responder
        self._greeting_text = greeting_text
        self._session_id = session_id or new_session_id()
        self._logger = logger or get_logger(__name__)

        self._state = SessionState()
        self._phase = ExchangePhase.IDLE
        self._clearing = False
        self._initializing = False
        self._alive = True
        self._listeners: list[StateListener] = []
        self._init_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Leitura
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def phase(self) -> ExchangePhase:
        return self._phase

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def can_submit(self) -> bool:
        return (
            self._alive
            and self._phase is ExchangePhase.IDLE
            and not self._clearing
            and not self._initializing
        )

    @property
    def state(self) -> SessionSnapshot:
        """Snapshot imutável do estado atual."""
        return SessionSnapshot.of(self._state, self._phase, self.can_submit)

    def current_history_projection(self) -> list[HistoryEntry]:
        """Projeção do log para o responder (pura, O(n))."""
        return project_history(self._state.messages)

    # ------------------------------------------------------------------
    # Notificação
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener):
        """Registra listener de mudanças; retorna função para cancelar."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, reason: StateChangeReason) -> None:
        if not self._listeners:
            return
        event = SessionStateChanged(reason=reason, snapshot=self.state)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # Listener com falha não interrompe os demais
                self._logger.warning(
                    "state_listener_failed",
                    extra={"reason": reason.value, "session_id": short_id(self._session_id)},
                    exc_info=True,
                )

    # ------------------------------------------------------------------
    # Comandos
    # ------------------------------------------------------------------

    async def initialize(self) -> OperationResult:
        """Carrega o log do store; semeia a saudação se vazio.

        Idempotente: chamadas após sucesso são no-op. Chamadas concorrentes
        são serializadas para nunca semear a saudação duas vezes.
        """
        if not self._alive:
            return OperationResult(ok=False, reason="disposed")

        async with self._init_lock:
            if self._state.initialized:
                return OperationResult(ok=True, reason="already_initialized")

            # O load substitui o log em memória: nenhuma troca pode gravar no meio
            if self._phase is not ExchangePhase.IDLE:
                return OperationResult(ok=False, reason="exchange_in_flight")

            self._initializing = True
            try:
                return await self._load_and_seed()
            finally:
                self._initializing = False

    async def _load_and_seed(self) -> OperationResult:
        try:
            loaded = await self._store.list_all()
        except Exception as exc:
            error = _as_persistence_error(exc, "Failed to load messages")
            self._raise_error(error, "session_load_failed")
            return OperationResult(ok=False, error=error)

        if not self._alive:
            return OperationResult(ok=False, reason="disposed")

        self._state.messages = list(loaded)
        self._emit(StateChangeReason.LOADED)

        if not self._state.messages:
            greeting = ChatMessage.create(
                self._greeting_text, Origin.ASSISTANT, DeliveryState.DELIVERED
            )
            try:
                await self._store.append(greeting)
            except Exception as exc:
                error = _as_persistence_error(exc, "Failed to save greeting")
                self._raise_error(error, "session_greeting_failed")
                return OperationResult(ok=False, error=error)

            if not self._alive:
                return OperationResult(ok=False, reason="disposed")

            self._state.messages.append(greeting)
            self._emit(StateChangeReason.GREETING_SEEDED)

        self._state.initialized = True
        self._logger.info(
            "session_initialized",
            extra={
                "session_id": short_id(self._session_id),
                "message_count": len(self._state.messages),
            },
        )
        return OperationResult(ok=True)

    async def submit(self, text: str) -> ExchangeResult:
        """Executa uma troca completa: grava, chama o responder, grava a resposta.

        Submissões vazias ou feitas durante outra troca são descartadas.
        """
        if not self._alive:
            return ExchangeResult(outcome=ExchangeOutcome.DISPOSED)

        if not text or not text.strip():
            return ExchangeResult(outcome=ExchangeOutcome.DROPPED_EMPTY)

        if not self.can_submit:
            self._logger.info(
                "submit_dropped_in_flight",
                extra={"session_id": short_id(self._session_id), "phase": self._phase.value},
            )
            return ExchangeResult(outcome=ExchangeOutcome.DROPPED_IN_FLIGHT)

        # Guarda tomada antes de qualquer await
        self._phase = ExchangePhase.SUBMITTING
        with bind_correlation_id():
            try:
                return await self._run_exchange(text)
            finally:
                self._phase = ExchangePhase.IDLE
                # Cancelamento no meio da chamada remota não pode travar a guarda
                if self._alive and (self._state.is_waiting_for_response or self._state.is_typing):
                    self._state.is_waiting_for_response = False
                    self._state.is_typing = False
                    self._emit(StateChangeReason.EXCHANGE_FAILED)

    async def _run_exchange(self, text: str) -> ExchangeResult:
        if self._state.last_error is not None:
            self._state.last_error = None
            self._emit(StateChangeReason.ERROR_CLEARED)

        user_message = ChatMessage.create(text, Origin.USER, DeliveryState.SENT)
        try:
            await self._store.append(user_message)
        except Exception as exc:
            error = _as_persistence_error(exc, "Failed to save message")
            self._raise_error(error, "exchange_persist_failed")
            return ExchangeResult(outcome=ExchangeOutcome.FAILED, error=error)

        if not self._alive:
            return ExchangeResult(outcome=ExchangeOutcome.DISPOSED, user_message=user_message)

        self._state.messages.append(user_message)
        self._state.is_waiting_for_response = True
        self._state.is_typing = True
        self._phase = ExchangePhase.AWAITING_RESPONSE
        self._emit(StateChangeReason.USER_MESSAGE_APPENDED)

        history = self.current_history_projection()
        self._logger.info(
            "exchange_started",
            extra={
                "session_id": short_id(self._session_id),
                "message_id": message_ref(user_message.id),
                "text_chars": len(text),
                "history_len": len(history),
            },
        )

        error: ResponderError | None = None
        try:
            with timed("responder", session_id=short_id(self._session_id)):
                reply = await self._responder.send(text, history)
        except Exception as exc:
            error = _as_responder_error(exc)
        else:
            if not reply.success:
                error = ResponderRejected(reply.message or REJECTED_FALLBACK_MESSAGE)

        if error is not None:
            # Sem retry automático: a msg do usuário fica como SENT
            self._fail_exchange(error, "exchange_failed")
            outcome = ExchangeOutcome.FAILED if self._alive else ExchangeOutcome.DISPOSED
            return ExchangeResult(outcome=outcome, user_message=user_message, error=error)

        assistant_message = ChatMessage.create(
            reply.message, Origin.ASSISTANT, DeliveryState.DELIVERED
        )
        # Persistida mesmo após dispose
        try:
            await self._store.append(assistant_message)
        except Exception as exc:
            persist_error = _as_persistence_error(exc, "Failed to save reply")
            self._fail_exchange(persist_error, "exchange_reply_persist_failed")
            outcome = ExchangeOutcome.FAILED if self._alive else ExchangeOutcome.DISPOSED
            return ExchangeResult(outcome=outcome, user_message=user_message, error=persist_error)

        if not self._alive:
            self._logger.info(
                "exchange_completed_after_dispose",
                extra={"message_id": message_ref(assistant_message.id)},
            )
            return ExchangeResult(
                outcome=ExchangeOutcome.DISPOSED,
                user_message=user_message,
                reply=assistant_message,
            )

        self._state.messages.append(assistant_message)
        self._state.is_typing = False
        self._state.is_waiting_for_response = False
        self._phase = ExchangePhase.IDLE
        self._emit(StateChangeReason.REPLY_APPENDED)

        self._logger.info(
            "exchange_delivered",
            extra={
                "session_id": short_id(self._session_id),
                "message_id": message_ref(assistant_message.id),
                "reply_chars": len(assistant_message.text),
            },
        )
        return ExchangeResult(
            outcome=ExchangeOutcome.DELIVERED,
            user_message=user_message,
            reply=assistant_message,
        )

    async def clear(self) -> OperationResult:
        """Apaga o histórico no store e, confirmado, reinicia a sessão.

        Tudo-ou-nada: se o store falhar, o estado em memória não muda
        (exceto `last_error`). Recusado enquanto há troca em andamento.
        """
        if not self._alive:
            return OperationResult(ok=False, reason="disposed")

        if not self.can_submit:
            self._logger.info(
                "clear_refused_in_flight",
                extra={"session_id": short_id(self._session_id), "phase": self._phase.value},
            )
            reason = "initializing" if self._initializing else "exchange_in_flight"
            return OperationResult(ok=False, reason=reason)

        self._clearing = True
        try:
            try:
                await self._store.clear_all()
            except Exception as exc:
                error = _as_persistence_error(exc, "Failed to clear chat")
                self._raise_error(error, "session_clear_failed")
                return OperationResult(ok=False, error=error)

            if not self._alive:
                return OperationResult(ok=False, reason="disposed")

            removed = len(self._state.messages)
            self._state.messages = []
            self._state.last_error = None
            self._state.initialized = False
            self._emit(StateChangeReason.CLEARED)
            self._logger.info(
                "session_cleared",
                extra={"session_id": short_id(self._session_id), "removed": removed},
            )
            return await self.initialize()
        finally:
            self._clearing = False

    def dismiss_error(self) -> None:
        """Descarta `last_error` (ação "Dismiss" do banner de erro)."""
        if self._alive and self._state.last_error is not None:
            self._state.last_error = None
            self._emit(StateChangeReason.ERROR_CLEARED)

    def dispose(self) -> None:
        """Encerra a sessão: conclusões pendentes não mutam mais o estado."""
        if not self._alive:
            return
        self._alive = False
        self._listeners.clear()
        self._logger.info(
            "session_disposed",
            extra={"session_id": short_id(self._session_id), "phase": self._phase.value},
        )

    async def aclose(self) -> None:
        """`dispose` + libera recursos do responder."""
        self.dispose()
        await self._responder.aclose()

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    def _raise_error(self, error: ConversaError, event: str) -> None:
        self._logger.warning(
            event,
            extra={
                "session_id": short_id(self._session_id),
                "error_code": error.code,
                "error": error.message,
            },
        )
        if not self._alive:
            return
        self._state.last_error = error.message
        self._emit(StateChangeReason.ERROR_RAISED)

    def _fail_exchange(self, error: ConversaError, event: str) -> None:
        self._logger.warning(
            event,
            extra={
                "session_id": short_id(self._session_id),
                "error_code": error.code,
                "error": error.message,
            },
        )
        if not self._alive:
            return
        self._state.is_typing = False
        self._state.is_waiting_for_response = False
        self._state.last_error = error.message
        self._phase = ExchangePhase.IDLE
        self._emit(StateChangeReason.EXCHANGE_FAILED)
