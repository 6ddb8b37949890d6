"""ReAct agent loop using native LLM tool calling.

Flow:

1. The LLM is asked for the next action with the tool definitions.
2. A text reply is the final answer.
3. Tool calls (possibly several in parallel) are recorded in the
   transcript. Read tools run at once; tools requiring confirmation get a
   placeholder result and pause the run.
4. Results are replayed to the LLM on the next step.

Near the end of the step budget the tool list is withheld so the LLM has
to answer with what it has.
"""

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator, Callable, Iterable
from typing import Any

from crudmind.agent.prompt import build_system_prompt
from crudmind.agent.state import AgentState
from crudmind.agent.step import AgentStep
from crudmind.llm.client import CompletionResponse, LLMClient, Message, ToolCall
from crudmind.schema.models import DatabaseSchema
from crudmind.security.context import SecurityContext
from crudmind.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 30
CONFIRMATION_STEP_GRANT = 5

PENDING_RESULT = "[PENDING] This operation requires user confirmation before execution."
OBSERVATION_SEPARATOR = "\n---\n"
CONFIRMED_SUCCESS = "[CONFIRMED_SUCCESS]"
CONFIRMED_FAILED = "[CONFIRMED_FAILED]"

MAX_STEPS_MESSAGE = "Max steps reached. Please make your question more specific."
NO_PENDING_CONFIRM = "No pending operation to confirm."
NO_PENDING_REJECT = "No pending operation to reject."
OPERATION_CANCELLED = "Operation cancelled."

StepObserver = Callable[[AgentStep, AgentState], None]
HistoryItem = Message | dict[str, Any]


class ConfirmationError(RuntimeError):
    """Raised when confirming or rejecting without a pending action."""


class AgentRun:
    """Steps of a run as they complete, plus the state once iteration ends.

    Iterate with ``async for`` to receive steps in order. After the
    iterator is exhausted, ``result`` holds the terminal (or paused)
    state. A paused run may end without a new step to show.
    """

    def __init__(self, state: AgentState, steps: AsyncIterator[AgentStep]):
        self.state = state
        self._steps = steps
        self.finished = False

    def __aiter__(self) -> AsyncIterator[AgentStep]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[AgentStep]:
        async for step in self._steps:
            yield step
        self.finished = True

    @property
    def result(self) -> AgentState:
        if not self.finished:
            raise RuntimeError("Agent run has not finished yet")
        return self.state

    async def collect(self) -> AgentState:
        """Drain remaining steps and return the final state."""
        async for _ in self:
            pass
        return self.state


def _coerce_history(history: Iterable[HistoryItem] | None) -> list[Message]:
    messages = []
    for item in history or []:
        if isinstance(item, Message):
            messages.append(item)
        else:
            messages.append(Message(role=item["role"], content=item.get("content")))
    return messages


def _describe(call: ToolCall) -> str:
    params = json.dumps(call.arguments, ensure_ascii=False, default=str)
    return f"{call.name} {params}"


class AgentLoop:
    """Drives the LLM through reasoning steps for one user message."""

    def __init__(
        self,
        llm: LLMClient,
        tools: ToolRegistry,
        schema: DatabaseSchema | None = None,
        security: SecurityContext | None = None,
        assistant_name: str = "crudmind",
        confirmation_step_grant: int = CONFIRMATION_STEP_GRANT,
    ):
        """Initialize the loop.

        Args:
            llm: LLM client used for every step
            tools: Registry of tools offered to the LLM
            schema: Database schema described in the system prompt
            security: Current user's permissions, described in the prompt
            assistant_name: Name the agent uses for itself
            confirmation_step_grant: Steps added after a confirmed write
        """
        self.llm = llm
        self.tools = tools
        self.schema = schema or DatabaseSchema()
        self.security = security
        self.assistant_name = assistant_name
        self.confirmation_step_grant = confirmation_step_grant
        self._observer: StepObserver | None = None

    def on_step(self, callback: StepObserver) -> "AgentLoop":
        """Register a callback invoked synchronously after each finished step."""
        self._observer = callback
        return self

    def set_security_context(self, security: SecurityContext) -> "AgentLoop":
        self.security = security
        return self

    # -- entry points -----------------------------------------------------

    async def run(
        self,
        user_message: str,
        history: Iterable[HistoryItem] | None = None,
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> AgentState:
        """Run the loop to completion, failure or a confirmation pause.

        Args:
            user_message: The user's natural language request
            history: Previous conversation messages
            max_steps: Maximum reasoning steps

        Returns:
            Final state with answer or pending action
        """
        return await self.run_streaming(user_message, history, max_steps).collect()

    def run_streaming(
        self,
        user_message: str,
        history: Iterable[HistoryItem] | None = None,
        max_steps: int = DEFAULT_MAX_STEPS,
    ) -> AgentRun:
        """Same as :meth:`run`, exposing each step as soon as it finishes."""
        state = AgentState(user_message=user_message, max_steps=max_steps)
        return AgentRun(state, self._drive(state, _coerce_history(history)))

    async def continue_after_confirmation(
        self,
        state: AgentState,
        history: Iterable[HistoryItem] | None = None,
    ) -> AgentState:
        """Execute the confirmed action and let the LLM finish.

        Args:
            state: Paused state holding the pending action
            history: Previous conversation messages

        Returns:
            The same state, now terminal or paused again
        """
        return await self.continue_after_confirmation_streaming(state, history).collect()

    def continue_after_confirmation_streaming(
        self,
        state: AgentState,
        history: Iterable[HistoryItem] | None = None,
    ) -> AgentRun:
        """Streaming form of :meth:`continue_after_confirmation`.

        The first step yielded is the paused step, now carrying the
        confirmed action's observation.
        """
        return AgentRun(state, self._resume(state, _coerce_history(history)))

    def reject_pending(self, state: AgentState, message: str = OPERATION_CANCELLED) -> AgentState:
        """Discard the pending action without running it and complete with ``message``.

        Raises:
            ConfirmationError: If the state is not awaiting confirmation
        """
        if not state.needs_confirmation or state.pending_action is None:
            raise ConfirmationError(NO_PENDING_REJECT)
        logger.info("Rejected pending action %s", state.pending_action.tool_name)
        state.clear_pending_action()
        state.complete(message)
        return state

    # -- driving ----------------------------------------------------------

    async def _drive(
        self,
        state: AgentState,
        history: list[Message],
        on_exhausted: Callable[[AgentState], None] | None = None,
    ) -> AsyncIterator[AgentStep]:
        while state.is_running and not state.is_max_steps_reached():
            step = await self._execute_step(state, history)
            if step is not None:
                yield step

        if state.is_running and state.is_max_steps_reached():
            logger.warning("Step budget of %d exhausted", state.max_steps)
            if on_exhausted is not None:
                on_exhausted(state)
            else:
                state.fail(MAX_STEPS_MESSAGE)

    async def _resume(self, state: AgentState, history: list[Message]) -> AsyncIterator[AgentStep]:
        pending = state.pending_action
        if not state.needs_confirmation or pending is None:
            state.fail(NO_PENDING_CONFIRM)
            return

        state.extend_max_steps(self.confirmation_step_grant)

        result = await self.tools.execute(pending.tool_name, pending.params)

        logger.info(
            "Confirmed action executed: action=%s success=%s steps=%d max_steps=%d",
            pending.tool_name,
            result.success,
            state.steps_taken,
            state.max_steps,
        )

        tool_call_id = pending.tool_call_id or f"confirmed_{uuid.uuid4().hex[:13]}"
        prefix = CONFIRMED_SUCCESS if result.success else CONFIRMED_FAILED
        observation = f"{prefix} {result.to_observation()}"

        state.replace_tool_result(tool_call_id, observation)
        state.clear_pending_action()

        last_step = state.last_step
        if last_step is not None:
            updated = last_step.with_observation(observation)
            state.replace_last_step(updated)
            self._notify(updated, state)
            yield updated

        def finish_with_result(exhausted: AgentState) -> None:
            if result.success:
                exhausted.complete(result.message)
            else:
                exhausted.fail(result.message)

        async for step in self._drive(state, history, on_exhausted=finish_with_result):
            yield step

    async def _execute_step(self, state: AgentState, history: list[Message]) -> AgentStep | None:
        """Run one LLM call and act on its response.

        Returns:
            The recorded step, or None when the LLM answered or failed
        """
        steps_remaining = state.steps_remaining
        tool_defs = [] if steps_remaining <= 1 else self.tools.to_function_definitions()

        system_prompt = build_system_prompt(
            state, self.schema, self.security, assistant_name=self.assistant_name
        )
        messages = [
            *history,
            Message(role="user", content=state.user_message),
            *state.to_messages(),
        ]

        logger.debug(
            "Step %d/%d (%d tools offered)",
            state.current_step_number,
            state.max_steps,
            len(tool_defs),
        )

        try:
            response = await self.llm.chat_with_tools(system_prompt, messages, tool_defs)
        except Exception as e:
            logger.exception("LLM request failed")
            state.fail(f"LLM request failed: {e}")
            return None

        if response.is_text:
            state.complete(response.content)
            return None

        return await self._handle_tool_calls(response, state)

    async def _handle_tool_calls(self, response: CompletionResponse, state: AgentState) -> AgentStep:
        """Record and process a batch of tool calls as a single step.

        All call entries go into the transcript before any result. Tools
        requiring confirmation get a placeholder result; the first of them
        becomes the pending action and the run pauses.
        """
        calls = response.tool_calls or []
        thought = response.thought

        for i, call in enumerate(calls):
            state.add_tool_call(call.id, call.name, call.arguments, (thought or None) if i == 0 else None)

        deferred: list[ToolCall] = []
        runnable: list[int] = []
        for i, call in enumerate(calls):
            tool_obj = self.tools.get(call.name)
            if tool_obj is not None and tool_obj.requires_confirmation:
                deferred.append(call)
            else:
                runnable.append(i)

        results = await asyncio.gather(
            *(self.tools.execute(calls[i].name, calls[i].arguments) for i in runnable)
        )
        executed = dict(zip(runnable, results))

        observations: list[str] = []
        for i, call in enumerate(calls):
            if i in executed:
                observation = executed[i].to_observation()
                state.add_tool_result(call.id, observation)
                observations.append(observation)
            else:
                state.add_tool_result(call.id, PENDING_RESULT)

        action_label = ", ".join(call.name for call in calls)
        step = AgentStep.acting(
            state.current_step_number,
            thought or None,
            action_label,
            calls[0].arguments if calls else {},
        )

        if deferred:
            first = deferred[0]
            if len(deferred) > 1:
                logger.info(
                    "%d calls need confirmation; pausing on %s",
                    len(deferred),
                    first.name,
                )
            state.add_step(step)
            state.request_confirmation(first.name, first.arguments, thought or _describe(first), first.id)
            self._notify(step, state)
            return step

        step = step.with_observation(OBSERVATION_SEPARATOR.join(observations))
        state.add_step(step)
        self._notify(step, state)
        return step

    def _notify(self, step: AgentStep, state: AgentState) -> None:
        if self._observer is not None:
            self._observer(step, state)
