"""Security context for the current request."""

from dataclasses import dataclass, field
from typing import Any

WILDCARD = "*"


@dataclass(frozen=True)
class SecurityContext:
    """Who is asking and which tables/actions they may touch.

    ``permissions`` maps a table (or ``*``) to allowed action names (or
    ``*``). ``allowed_tables`` grants every action on the listed tables.
    An empty context (no tables, no permissions) allows everything.
    """

    user_id: str | None = None
    user_role: str | None = None
    allowed_tables: list[str] = field(default_factory=list)
    permissions: dict[str, list[str]] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def can(self, table: str, action: str) -> bool:
        if not self.permissions and not self.allowed_tables:
            return True

        for key in (table, WILDCARD):
            if key in self.permissions:
                actions = self.permissions[key]
                return action in actions or WILDCARD in actions

        return table in self.allowed_tables or WILDCARD in self.allowed_tables

    @property
    def accessible_tables(self) -> list[str]:
        tables = list(self.allowed_tables)
        tables.extend(name for name in self.permissions if name not in tables)
        return tables

    def allowed_actions(self, table: str) -> list[str]:
        return self.permissions.get(table, [WILDCARD])

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @classmethod
    def guest(cls) -> "SecurityContext":
        return cls()

    @classmethod
    def admin(cls, user_id: str) -> "SecurityContext":
        return cls(
            user_id=user_id,
            user_role="admin",
            allowed_tables=[WILDCARD],
            permissions={WILDCARD: [WILDCARD]},
        )

    def to_prompt_context(self) -> str:
        """User section of the system prompt."""
        if self.is_guest:
            return "CURRENT USER: Guest (unauthenticated)"

        lines = ["CURRENT USER:", f"- Role: {self.user_role or 'unknown'}"]
        if self.metadata.get("user_name"):
            lines.append(f"- Name: {self.metadata['user_name']}")

        tables = self.accessible_tables
        if WILDCARD in tables:
            lines.append("- Access: Full access to all tables")
        else:
            lines.append(f"- Accessible tables: {', '.join(tables)}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "user_role": self.user_role,
            "allowed_tables": self.allowed_tables,
            "permissions": self.permissions,
        }
