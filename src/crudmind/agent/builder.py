"""Orchestrator builder for constructing the agent stack from configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from crudmind.agent.orchestrator import AgentOrchestrator
from crudmind.conversation.store import (
    ConversationStore,
    InMemoryConversationStore,
    SQLiteConversationStore,
)
from crudmind.db.executor import SQLiteExecutor
from crudmind.llm.factory import create_llm_client
from crudmind.schema.discovery import discover_sqlite_schema
from crudmind.tools.crud import build_crud_tools
from crudmind.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from crudmind.config.schema import ConversationConfig, CrudmindConfig
    from crudmind.llm.client import LLMClient
    from crudmind.security.context import SecurityContext

logger = logging.getLogger(__name__)


def create_conversation_store(config: ConversationConfig) -> ConversationStore:
    """Create the conversation store selected by configuration."""
    if config.backend == "sqlite":
        return SQLiteConversationStore(config.storage_path)
    return InMemoryConversationStore()


def build_orchestrator(
    config: CrudmindConfig,
    security: SecurityContext | None = None,
    llm: LLMClient | None = None,
) -> AgentOrchestrator:
    """Wire schema discovery, database tools, LLM client and store.

    Args:
        config: crudmind configuration
        security: Permissions applied to tools and described to the agent
        llm: LLM client override (created from config if omitted)

    Returns:
        Ready-to-use orchestrator
    """
    schema = discover_sqlite_schema(
        config.database.path,
        tables=config.database.tables or None,
        read_only_tables=config.database.read_only_tables,
    )
    logger.info("Discovered %d tables in %s", len(schema.tables), config.database.path)

    executor = SQLiteExecutor(config.database.path, schema)
    tools = ToolRegistry(build_crud_tools(executor, schema, security))

    return AgentOrchestrator(
        llm=llm or create_llm_client(config),
        tools=tools,
        schema=schema,
        store=create_conversation_store(config.conversation),
        security=security,
        locale=config.agent.locale,
        max_steps=config.agent.max_steps,
        confirmation_step_grant=config.agent.confirmation_step_grant,
        assistant_name=config.agent.assistant_name,
    )
