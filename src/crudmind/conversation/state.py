"""Per-conversation state: chat history plus a paused agent run."""

import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from crudmind.agent.state import AgentState
from crudmind.llm.client import Message

CONFIRM_WORDS = (
    "evet", "onay", "onaylıyorum", "onayla", "tamam", "devam", "devam et", "olur",
    "yes", "y", "ok", "okay", "confirm", "do it", "go ahead",
)
REJECT_WORDS = (
    "hayır", "iptal", "vazgeç", "istemiyorum", "yapma",
    "no", "n", "cancel", "abort", "reject", "stop",
)


class HistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class ConversationState(BaseModel):
    """History replayed to the LLM and the agent state awaiting confirmation."""

    history: list[HistoryMessage] = Field(default_factory=list)
    pending_agent_state: AgentState | None = None

    def add_user_message(self, content: str) -> None:
        self.history.append(HistoryMessage(role="user", content=content))

    def add_assistant_message(self, content: str) -> None:
        self.history.append(HistoryMessage(role="assistant", content=content))

    def messages(self) -> list[Message]:
        """History as LLM messages."""
        return [Message(role=item.role, content=item.content) for item in self.history]

    def set_pending_agent_state(self, state: AgentState) -> None:
        self.pending_agent_state = state

    def clear_pending_agent_state(self) -> None:
        self.pending_agent_state = None

    @property
    def has_pending_agent_state(self) -> bool:
        return self.pending_agent_state is not None


def _leading_word_match(message: str, words: tuple[str, ...]) -> str | None:
    lowered = message.strip().lower()
    for word in words:
        if lowered == word or re.match(rf"^{re.escape(word)}[\s,.!]+", lowered):
            return word
    return None


def is_confirmation(message: str) -> bool:
    """Whether a free-text reply approves the pending action."""
    return _leading_word_match(message, CONFIRM_WORDS) is not None


def is_rejection(message: str) -> bool:
    """Whether a free-text reply declines the pending action (trailing text allowed)."""
    return _leading_word_match(message, REJECT_WORDS) is not None


def extract_after_rejection(message: str) -> str | None:
    """Text following the rejection word, e.g. ``"no, use Bob instead"`` -> ``"use Bob instead"``."""
    word = _leading_word_match(message, REJECT_WORDS)
    if word is None:
        return None
    rest = message.strip()[len(word):].lstrip(" ,.!")
    return rest or None
