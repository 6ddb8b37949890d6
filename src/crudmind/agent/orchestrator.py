"""Conversation-level façade over the agent loop.

Loads the conversation, runs or resumes the loop, records the exchange
in the history and saves the conversation again, whatever happened.
Calls for the same conversation are serialized.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from crudmind.agent.events import StreamingEvent
from crudmind.agent.loop import AgentLoop, AgentRun
from crudmind.agent.response import AgentResponse
from crudmind.agent.state import AgentState
from crudmind.conversation.state import ConversationState
from crudmind.conversation.store import ConversationStore, InMemoryConversationStore
from crudmind.llm.client import LLMClient
from crudmind.schema.models import DatabaseSchema
from crudmind.security.context import SecurityContext
from crudmind.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 10

MESSAGES = {
    "en": {
        "no_pending_confirm": "No pending operation to confirm.",
        "no_pending_reject": "No pending operation to reject.",
        "user_confirmed": "Yes, confirm",
        "user_rejected": "No, cancel",
        "operation_cancelled": "Operation cancelled.",
    },
    "tr": {
        "no_pending_confirm": "Onaylanacak bekleyen bir işlem yok.",
        "no_pending_reject": "Reddedilecek bekleyen bir işlem yok.",
        "user_confirmed": "Evet, onayla",
        "user_rejected": "Hayır, iptal et",
        "operation_cancelled": "İşlem iptal edildi.",
    },
}


class AgentOrchestrator:
    """Runs the agent for chat conversations."""

    def __init__(
        self,
        llm: LLMClient,
        tools: ToolRegistry,
        schema: DatabaseSchema | None = None,
        store: ConversationStore | None = None,
        security: SecurityContext | None = None,
        locale: str = "en",
        max_steps: int = DEFAULT_MAX_STEPS,
        confirmation_step_grant: int = 5,
        assistant_name: str = "crudmind",
    ):
        """Initialize the orchestrator.

        Args:
            llm: LLM client shared by all runs
            tools: Tools offered to the agent
            schema: Database schema described to the agent
            store: Conversation store (in-memory if omitted)
            security: Permissions of the current user (unrestricted if omitted)
            locale: Language of internal messages, ``en`` or ``tr``
            max_steps: Step budget of each new run
            confirmation_step_grant: Steps added after a confirmed write
            assistant_name: Name the agent uses for itself
        """
        self.llm = llm
        self.tools = tools
        self.schema = schema or DatabaseSchema()
        self.store = store if store is not None else InMemoryConversationStore()
        self.security = security
        self.locale = locale
        self.max_steps = max_steps
        self.confirmation_step_grant = confirmation_step_grant
        self.assistant_name = assistant_name
        self._locks: dict[str, asyncio.Lock] = {}

    def msg(self, key: str) -> str:
        """Locale-aware internal message, falling back to English."""
        return MESSAGES.get(self.locale, {}).get(key) or MESSAGES["en"].get(key, key)

    def set_security_context(self, security: SecurityContext) -> "AgentOrchestrator":
        self.security = security
        return self

    def _lock(self, conversation_id: str) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = self._locks[conversation_id] = asyncio.Lock()
        return lock

    def _new_loop(self) -> AgentLoop:
        return AgentLoop(
            self.llm,
            self.tools,
            schema=self.schema,
            security=self.security,
            assistant_name=self.assistant_name,
            confirmation_step_grant=self.confirmation_step_grant,
        )

    @staticmethod
    def _pending(conversation: ConversationState) -> AgentState | None:
        state = conversation.pending_agent_state
        if state is None or not state.needs_confirmation:
            return None
        return state

    def _record_run(self, conversation: ConversationState, user_message: str, state: AgentState) -> None:
        conversation.add_user_message(user_message)
        if state.is_completed and state.final_answer:
            conversation.add_assistant_message(state.final_answer)
        if state.needs_confirmation:
            conversation.set_pending_agent_state(state)
        else:
            conversation.clear_pending_agent_state()

    # -- request/response -------------------------------------------------

    async def handle(self, conversation_id: str, message: str) -> AgentResponse:
        """Process a user message."""
        async with self._lock(conversation_id):
            conversation = self.store.get(conversation_id)
            try:
                state = await self._new_loop().run(message, conversation.messages(), self.max_steps)
                self._record_run(conversation, message, state)
                return AgentResponse.from_state(state)
            finally:
                self.store.save(conversation_id, conversation)

    async def confirm(self, conversation_id: str) -> AgentResponse:
        """Execute the pending write and let the agent finish."""
        async with self._lock(conversation_id):
            conversation = self.store.get(conversation_id)
            try:
                state = self._pending(conversation)
                if state is None:
                    return AgentResponse.of_error(self.msg("no_pending_confirm"))

                state = await self._new_loop().continue_after_confirmation(state, conversation.messages())
                self._record_run(conversation, self.msg("user_confirmed"), state)
                return AgentResponse.from_state(state)
            finally:
                self.store.save(conversation_id, conversation)

    async def reject(self, conversation_id: str) -> AgentResponse:
        """Discard the pending write."""
        async with self._lock(conversation_id):
            conversation = self.store.get(conversation_id)
            try:
                state = self._pending(conversation)
                if state is None:
                    return AgentResponse.of_error(self.msg("no_pending_reject"))

                cancelled = self.msg("operation_cancelled")
                self._new_loop().reject_pending(state, cancelled)
                conversation.clear_pending_agent_state()
                conversation.add_user_message(self.msg("user_rejected"))
                conversation.add_assistant_message(cancelled)
                return AgentResponse.of_message(cancelled)
            finally:
                self.store.save(conversation_id, conversation)

    async def reset(self, conversation_id: str) -> None:
        """Forget the conversation."""
        async with self._lock(conversation_id):
            self.store.delete(conversation_id)

    # -- streaming --------------------------------------------------------

    async def stream(self, conversation_id: str, message: str) -> AsyncIterator[StreamingEvent]:
        """Process a user message, yielding events as steps complete."""
        async with self._lock(conversation_id):
            conversation = self.store.get(conversation_id)
            try:
                run = self._new_loop().run_streaming(message, conversation.messages(), self.max_steps)
                async for event in self._stream_run(run):
                    yield event
                self._record_run(conversation, message, run.result)
                yield self._done(run.result)
            except Exception as e:
                logger.exception("Streaming run failed")
                yield StreamingEvent.error(str(e))
                yield StreamingEvent.done()
            finally:
                self.store.save(conversation_id, conversation)

    async def stream_confirm(self, conversation_id: str) -> AsyncIterator[StreamingEvent]:
        """Streaming form of :meth:`confirm`."""
        async with self._lock(conversation_id):
            conversation = self.store.get(conversation_id)
            try:
                state = self._pending(conversation)
                if state is None:
                    yield StreamingEvent.error(self.msg("no_pending_confirm"))
                    yield StreamingEvent.done()
                    return

                run = self._new_loop().continue_after_confirmation_streaming(state, conversation.messages())
                async for event in self._stream_run(run):
                    yield event
                self._record_run(conversation, self.msg("user_confirmed"), run.result)
                yield self._done(run.result)
            except Exception as e:
                logger.exception("Streaming confirmation failed")
                yield StreamingEvent.error(str(e))
                yield StreamingEvent.done()
            finally:
                self.store.save(conversation_id, conversation)

    async def _stream_run(self, run: AgentRun) -> AsyncIterator[StreamingEvent]:
        async for step in run:
            yield StreamingEvent.step(step)

        state = run.result
        if state.needs_confirmation and state.pending_action is not None:
            pending = state.pending_action
            yield StreamingEvent.confirmation(pending.tool_name, pending.params, pending.description)
        elif state.is_failed:
            yield StreamingEvent.error(state.final_answer or "")
        elif state.final_answer:
            yield StreamingEvent.message(state.final_answer)

    @staticmethod
    def _done(state: AgentState) -> StreamingEvent:
        return StreamingEvent.done(
            [step.to_dict() for step in state.steps],
            state.final_answer if state.is_completed else None,
        )
