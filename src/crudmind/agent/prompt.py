"""System prompt construction for the agent loop.

Tools are not described here; they go through the native tool calling
API. The prompt carries identity, user, schema, rules and the step budget.
"""

from crudmind.agent.state import AgentState
from crudmind.schema.models import DatabaseSchema
from crudmind.security.context import SecurityContext

LOW_BUDGET_THRESHOLD = 3

LAST_STEP_DIRECTIVE = (
    "CRITICAL: This is your LAST step. You MUST provide your final answer NOW using all "
    "the data you have gathered so far. Do NOT attempt to call any more tools. "
    "Summarize your findings and respond to the user."
)

LOW_BUDGET_WARNING = (
    "WARNING: You only have {remaining} steps remaining. Wrap up your analysis and provide "
    "your answer soon. Only call tools if absolutely essential."
)


def budget_directive(steps_remaining: int) -> str:
    """Urgency text for the remaining step budget (empty when plenty is left)."""
    if steps_remaining <= 1:
        return LAST_STEP_DIRECTIVE
    if steps_remaining <= LOW_BUDGET_THRESHOLD:
        return LOW_BUDGET_WARNING.format(remaining=steps_remaining)
    return ""


def build_system_prompt(
    state: AgentState,
    schema: DatabaseSchema,
    security: SecurityContext | None = None,
    assistant_name: str = "crudmind",
) -> str:
    security = security or SecurityContext.guest()
    urgency = budget_directive(state.steps_remaining)

    prompt = f"""You are {assistant_name}, an intelligent AI agent that helps users interact with their database through natural language.

You have access to tools that let you search, count, aggregate, and modify database records. Use them to gather information before answering.

{security.to_prompt_context()}

{schema.to_prompt_context()}

RULES:
1. Always think step by step. Don't try to answer without gathering necessary data first.
2. Use tools to explore and understand the data before making conclusions.
3. If you're unsure about something, use a tool to verify (e.g., get_sample_data to see actual data).
4. For write operations (create_record, update_record, delete_record), always explain what will change.
5. Be concise but complete in your final answers. Use markdown for formatting tables and lists.
6. If the user asks for analysis or opinions, gather relevant data first, then provide insights.
7. NEVER guess column names or values; always verify with tools first.
8. Current step: {state.current_step_number} of {state.max_steps} max steps.
9. ALWAYS respond in the same language the user writes in.
10. When you see [CONFIRMED_SUCCESS] or [CONFIRMED_FAILED] in a tool result, the user confirmed a write operation and it was executed. Provide a clear summary of what happened.
11. When you need data from multiple tables or multiple counts, call all the tools at once in parallel instead of one by one. This saves steps."""

    if urgency:
        prompt += f"\n\n{urgency}"
    return prompt
