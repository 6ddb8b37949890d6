"""Tests for agent state, steps, responses and streaming events."""

import json

import pytest

from crudmind.agent.events import EventType, StreamingEvent
from crudmind.agent.prompt import LAST_STEP_DIRECTIVE, budget_directive, build_system_prompt
from crudmind.agent.response import AgentResponse, ResponseType
from crudmind.agent.state import AgentState, AgentStatus, InvalidTransitionError
from crudmind.agent.step import AgentStep
from crudmind.schema.models import ColumnSchema, ColumnType, DatabaseSchema, TableSchema
from crudmind.security.context import SecurityContext


def _paused_state() -> AgentState:
    state = AgentState(user_message="delete order 1", max_steps=5)
    state.add_tool_call("c1", "delete_record", {"table": "orders", "where": {"id": 1}}, "Deleting.")
    state.add_tool_result("c1", "[PENDING]")
    state.add_step(AgentStep.acting(1, "Deleting.", "delete_record", {"table": "orders"}))
    state.request_confirmation("delete_record", {"table": "orders", "where": {"id": 1}}, "Deleting.", "c1")
    return state


class TestAgentStep:
    def test_to_dict_omits_unset_fields(self):
        step = AgentStep.thinking(1, "Looking around")
        assert step.to_dict() == {"step": 1, "thought": "Looking around"}

    def test_with_observation_keeps_index_and_timestamp(self):
        step = AgentStep.acting(2, None, "count_records", {"table": "orders"})
        assert step.is_paused

        updated = step.with_observation("3 rows")

        assert updated.index == 2
        assert updated.timestamp == step.timestamp
        assert updated.observation == "3 rows"
        assert not updated.is_paused
        assert step.observation is None

    def test_step_is_immutable(self):
        step = AgentStep.thinking(1, "x")
        with pytest.raises(Exception):
            step.thought = "y"

    def test_index_must_be_positive(self):
        with pytest.raises(Exception):
            AgentStep(index=0)


class TestAgentState:
    def test_budget_accounting(self):
        state = AgentState(user_message="q", max_steps=3)
        assert state.steps_remaining == 3
        assert state.current_step_number == 1

        state.add_step(AgentStep.thinking(1, "a"))

        assert state.steps_taken == 1
        assert state.steps_remaining == 2
        assert state.current_step_number == 2
        assert not state.is_max_steps_reached()

    def test_extend_max_steps_only_grows(self):
        state = AgentState(user_message="q", max_steps=3)
        state.extend_max_steps(5)
        assert state.max_steps == 8
        with pytest.raises(ValueError):
            state.extend_max_steps(-1)

    def test_complete_requires_running(self):
        state = AgentState(user_message="q")
        state.complete("done")
        assert state.status is AgentStatus.COMPLETED

        with pytest.raises(InvalidTransitionError):
            state.complete("again")

    def test_fail_allowed_from_any_status(self):
        state = _paused_state()
        state.fail("broken")
        assert state.is_failed
        assert state.error == "broken"

    def test_request_confirmation_requires_running(self):
        state = _paused_state()
        with pytest.raises(InvalidTransitionError):
            state.request_confirmation("delete_record", {}, "again")

    def test_clear_pending_action(self):
        state = _paused_state()
        state.clear_pending_action()
        assert state.is_running
        assert state.pending_action is None

        with pytest.raises(InvalidTransitionError):
            state.clear_pending_action()

    def test_replace_tool_result_in_place(self):
        state = _paused_state()
        state.replace_tool_result("c1", "[CONFIRMED_SUCCESS] Deleted 1 record(s).")

        results = [e for e in state.transcript if e.role == "tool_result"]
        assert len(results) == 1
        assert results[0].content == "[CONFIRMED_SUCCESS] Deleted 1 record(s)."

    def test_replace_tool_result_appends_when_absent(self):
        state = AgentState(user_message="q")
        state.replace_tool_result("confirmed_abc", "done")
        assert state.transcript[-1].tool_call_id == "confirmed_abc"

    def test_unbalanced_tool_calls(self):
        state = AgentState(user_message="q")
        state.add_tool_call("a", "count_records", {})
        state.add_tool_call("b", "count_records", {})
        state.add_tool_result("a", "1")
        assert state.unbalanced_tool_calls() == ["b"]

    def test_to_messages_groups_batches(self):
        state = AgentState(user_message="q")
        state.add_tool_call("a", "count_records", {"table": "x"}, "thinking")
        state.add_tool_call("b", "count_records", {"table": "y"})
        state.add_tool_result("a", "1")
        state.add_tool_result("b", "2")
        state.add_tool_call("c", "get_sample_data", {"table": "x"})
        state.add_tool_result("c", "rows")

        messages = state.to_messages()

        assert [m.role for m in messages] == ["assistant", "tool", "tool", "assistant", "tool"]
        assert messages[0].content == "thinking"
        assert [tc.name for tc in messages[0].tool_calls] == ["count_records", "count_records"]
        assert messages[3].content is None
        assert messages[4].tool_call_id == "c"

    def test_dict_round_trip(self):
        state = _paused_state()

        data = state.to_dict()
        restored = AgentState.from_dict(data, user_message="delete order 1", max_steps=5)

        assert data["status"] == "needs_confirmation"
        assert restored.status == state.status
        assert len(restored.steps) == len(state.steps)
        assert restored.final_answer == state.final_answer
        assert restored.pending_action == state.pending_action

    def test_json_round_trip_keeps_transcript(self):
        state = _paused_state()
        restored = AgentState.model_validate_json(state.model_dump_json())
        assert restored == state


class TestSystemPrompt:
    def _schema(self) -> DatabaseSchema:
        return DatabaseSchema(
            tables=[
                TableSchema(
                    name="orders",
                    columns=[
                        ColumnSchema(name="id", type=ColumnType.INTEGER, is_primary=True),
                        ColumnSchema(name="status", type=ColumnType.STRING, max_length=20),
                    ],
                )
            ]
        )

    def test_budget_directive_thresholds(self):
        assert budget_directive(10) == ""
        assert budget_directive(4) == ""
        assert "3 steps remaining" in budget_directive(3)
        assert "2 steps remaining" in budget_directive(2)
        assert budget_directive(1) == LAST_STEP_DIRECTIVE
        assert budget_directive(0) == LAST_STEP_DIRECTIVE

    def test_prompt_contains_context_and_step(self):
        state = AgentState(user_message="q", max_steps=10)
        state.add_step(AgentStep.thinking(1, "x"))

        prompt = build_system_prompt(
            state,
            self._schema(),
            SecurityContext(user_id="7", user_role="editor", allowed_tables=["orders"]),
            assistant_name="Shopbot",
        )

        assert prompt.startswith("You are Shopbot")
        assert "- Role: editor" in prompt
        assert "- Accessible tables: orders" in prompt
        assert "table: orders" in prompt
        assert "status: string (max:20)" in prompt
        assert "Current step: 2 of 10 max steps." in prompt
        assert "WARNING" not in prompt

    def test_guest_prompt(self):
        prompt = build_system_prompt(AgentState(user_message="q"), DatabaseSchema())
        assert "CURRENT USER: Guest (unauthenticated)" in prompt


class TestAgentResponse:
    def test_from_paused_state(self):
        response = AgentResponse.from_state(_paused_state())

        assert response.type is ResponseType.CONFIRMATION
        assert response.message == "Deleting."
        assert response.pending_action["action"] == "delete_record"

        data = response.to_dict()
        assert data["intent"]["action"] == "delete_record"
        assert data["intent"]["table"] == "orders"
        assert data["intent"]["where"] == {"id": 1}
        assert data["intent"]["auto_continue"] is False

    def test_from_failed_state(self):
        state = AgentState(user_message="q")
        state.fail("Max steps reached.")

        response = AgentResponse.from_state(state)

        assert response.type is ResponseType.ERROR
        assert response.message == "Max steps reached."

    def test_from_completed_state(self):
        state = AgentState(user_message="q")
        state.add_step(AgentStep.thinking(1, "x"))
        state.complete("All good")

        data = AgentResponse.from_state(state).to_dict()

        assert data == {"type": "message", "message": "All good", "steps": [{"step": 1, "thought": "x"}]}


class TestStreamingEvent:
    def test_to_sse(self):
        event = StreamingEvent.confirmation("delete_record", {"table": "siparişler"}, "Sil")

        sse = event.to_sse()

        assert sse["event"] == "confirmation"
        assert json.loads(sse["data"]) == {
            "action": "delete_record",
            "params": {"table": "siparişler"},
            "description": "Sil",
        }
        assert "siparişler" in sse["data"]

    def test_done_defaults(self):
        event = StreamingEvent.done()
        assert event.type is EventType.DONE
        assert event.data == {"steps": [], "message": None}

    def test_step_event_payload(self):
        event = StreamingEvent.step(AgentStep.thinking(3, "hmm"))
        assert event.to_dict() == {"type": "step", "data": {"step": 3, "thought": "hmm"}}


    def test_event_vocabulary(self):
        assert [t.value for t in EventType] == ["step", "confirmation", "message", "error", "done"]
