"""Database action execution."""

from crudmind.db.executor import ActionExecutor, ActionResult, ExecutorError, SQLiteExecutor

__all__ = ["ActionExecutor", "ActionResult", "ExecutorError", "SQLiteExecutor"]
