"""Conversation persistence backends."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Protocol

from crudmind.conversation.state import ConversationState


class ConversationStore(Protocol):
    """Loads and saves conversations by id."""

    def get(self, conversation_id: str) -> ConversationState:
        """Return the conversation, or a fresh one if it does not exist."""
        ...

    def save(self, conversation_id: str, state: ConversationState) -> None: ...

    def delete(self, conversation_id: str) -> None: ...

    def exists(self, conversation_id: str) -> bool: ...


class InMemoryConversationStore:
    """Process-local store. Stored values are copies, as a real backend would give."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, conversation_id: str) -> ConversationState:
        raw = self._data.get(conversation_id)
        if raw is None:
            return ConversationState()
        return ConversationState.model_validate_json(raw)

    def save(self, conversation_id: str, state: ConversationState) -> None:
        self._data[conversation_id] = state.model_dump_json()

    def delete(self, conversation_id: str) -> None:
        self._data.pop(conversation_id, None)

    def exists(self, conversation_id: str) -> bool:
        return conversation_id in self._data


class SQLiteConversationStore:
    """SQLite-based conversation storage."""

    def __init__(self, db_path: str | Path):
        """Initialize storage with database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._initialize_db()

    def _initialize_db(self) -> None:
        """Create tables and indexes if they don't exist."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS conversations (
                    id TEXT PRIMARY KEY,
                    state TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_conversations_updated ON conversations(updated_at)"
            )
            conn.commit()

    def get(self, conversation_id: str) -> ConversationState:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT state FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
        if not row:
            return ConversationState()
        return ConversationState.model_validate_json(row[0])

    def save(self, conversation_id: str, state: ConversationState) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO conversations (id, state, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET state = excluded.state, updated_at = excluded.updated_at
            """,
                (conversation_id, state.model_dump_json(), datetime.utcnow().isoformat()),
            )
            conn.commit()

    def delete(self, conversation_id: str) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))
            conn.commit()

    def exists(self, conversation_id: str) -> bool:
        with sqlite3.connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT 1 FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
        return row is not None

    def prune_older_than(self, days: int) -> int:
        """Delete conversations not updated in ``days`` days.

        Returns:
            Number of conversations deleted
        """
        cutoff = datetime.utcnow().timestamp() - days * 24 * 60 * 60
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM conversations WHERE updated_at < ?",
                (datetime.utcfromtimestamp(cutoff).isoformat(),),
            )
            conn.commit()
            return cursor.rowcount
