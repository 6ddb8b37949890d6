"""LLM client implementations."""

from .anthropic import AnthropicClient
from .client import CompletionResponse, LLMClient, Message, ToolCall
from .factory import create_llm_client
from .openai_compat import OpenAICompatibleClient

__all__ = [
    "AnthropicClient",
    "CompletionResponse",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "ToolCall",
    "create_llm_client",
]
