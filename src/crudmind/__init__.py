"""crudmind - Natural-language CRUD agent for relational databases.

crudmind turns user requests into tool calls against a database using an
LLM that reasons step by step (ReAct). Read tools run immediately; write
tools pause the run until the user confirms them.

Key modules:

- :mod:`crudmind.agent` - Agent loop, state machine, streaming events and façade
- :mod:`crudmind.tools` - Tool interface, registry and built-in CRUD tools
- :mod:`crudmind.llm` - LLM client abstraction (OpenAI-compatible, Anthropic)
- :mod:`crudmind.schema` - Database schema models and SQLite discovery
- :mod:`crudmind.db` - Action executor for resolved CRUD operations
- :mod:`crudmind.conversation` - Conversation state persistence
- :mod:`crudmind.server` - FastAPI server with SSE streaming
"""

__version__ = "0.1.0"
