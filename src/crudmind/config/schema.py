"""Pydantic models for crudmind.yaml configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class ModelConfig(BaseModel):
    """LLM model configuration."""

    name: str = Field(default="gpt-4o-mini", description="Model name served by the backend")
    temperature: float = Field(default=0.2, description="Sampling temperature", ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, description="Maximum tokens per response", ge=1)


class InferenceConfig(BaseModel):
    """Inference backend configuration."""

    backend: Literal["openai", "ollama", "vllm", "anthropic"] = Field(
        default="openai",
        description="Inference backend to use",
    )
    base_url: str | None = Field(
        default=None,
        description="Endpoint override; defaults depend on the backend",
    )
    api_key: str | None = Field(default=None, description="API key for the backend")
    timeout: int = Field(default=120, description="Request timeout in seconds", ge=1)


class AgentConfig(BaseModel):
    """Agent loop configuration."""

    max_steps: int = Field(default=10, description="Maximum agent reasoning steps", ge=1, le=50)
    confirmation_step_grant: int = Field(
        default=5,
        description="Extra steps granted after a confirmed write so the agent can summarize",
        ge=1,
        le=20,
    )
    locale: Literal["en", "tr"] = Field(default="en", description="Language of internal messages")
    assistant_name: str = Field(default="crudmind", description="Name the agent introduces itself with")


class DatabaseConfig(BaseModel):
    """Target database configuration."""

    path: str = Field(default="crudmind.db", description="Path to the SQLite database")
    tables: list[str] = Field(
        default_factory=list,
        description="Tables exposed to the agent (empty exposes all)",
    )
    read_only_tables: list[str] = Field(
        default_factory=list,
        description="Tables the agent may read but never modify",
    )


class ConversationConfig(BaseModel):
    """Conversation persistence configuration."""

    backend: Literal["memory", "sqlite"] = Field(default="memory", description="Store backend")
    storage_path: str = Field(
        default="~/.crudmind/conversations.db",
        description="SQLite file for the sqlite backend",
    )


class ServerConfig(BaseModel):
    """API server configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins (use ['*'] for development only)",
    )


class CrudmindConfig(BaseModel):
    """Root configuration."""

    model: ModelConfig = Field(default_factory=ModelConfig)
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    conversation: ConversationConfig = Field(default_factory=ConversationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
