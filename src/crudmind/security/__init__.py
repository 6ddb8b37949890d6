"""Request-level authorization context."""

from crudmind.security.context import SecurityContext

__all__ = ["SecurityContext"]
