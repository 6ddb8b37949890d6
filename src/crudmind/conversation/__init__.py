"""Conversation persistence.

A conversation holds the chat history replayed to the LLM and, while a
write awaits confirmation, the paused :class:`~crudmind.agent.state.AgentState`.

Components:

- :class:`ConversationState` - serializable per-conversation value
- :class:`InMemoryConversationStore` - process-local backend
- :class:`SQLiteConversationStore` - SQLite backend
"""

from crudmind.conversation.state import (
    ConversationState,
    HistoryMessage,
    extract_after_rejection,
    is_confirmation,
    is_rejection,
)
from crudmind.conversation.store import (
    ConversationStore,
    InMemoryConversationStore,
    SQLiteConversationStore,
)

__all__ = [
    "ConversationState",
    "ConversationStore",
    "HistoryMessage",
    "InMemoryConversationStore",
    "SQLiteConversationStore",
    "extract_after_rejection",
    "is_confirmation",
    "is_rejection",
]
