"""Factory function for creating LLM clients from configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from crudmind.llm.anthropic import ANTHROPIC_API_URL, AnthropicClient
from crudmind.llm.openai_compat import OpenAICompatibleClient

if TYPE_CHECKING:
    from crudmind.config.schema import CrudmindConfig
    from crudmind.llm.client import LLMClient

DEFAULT_BASE_URLS = {
    "openai": None,
    "ollama": "http://localhost:11434/v1",
    "vllm": "http://localhost:8000/v1",
}


def create_llm_client(config: CrudmindConfig) -> LLMClient:
    """Create an LLM client based on configuration.

    API keys fall back to ``OPENAI_API_KEY`` / ``ANTHROPIC_API_KEY``.

    Args:
        config: crudmind configuration.

    Returns:
        An LLM client for the configured backend.

    Raises:
        ValueError: If the backend is not recognised or a key is missing.
    """
    inference = config.inference
    backend = inference.backend

    if backend == "anthropic":
        api_key = inference.api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("Anthropic backend requires inference.api_key or ANTHROPIC_API_KEY")
        return AnthropicClient(
            api_key=api_key,
            model=config.model.name,
            max_tokens=config.model.max_tokens,
            timeout=inference.timeout,
            temperature=config.model.temperature,
            base_url=inference.base_url or ANTHROPIC_API_URL,
        )
    elif backend in DEFAULT_BASE_URLS:
        api_key = inference.api_key
        if api_key is None:
            api_key = os.environ.get("OPENAI_API_KEY", "none") if backend == "openai" else backend
        return OpenAICompatibleClient(
            model=config.model.name,
            base_url=inference.base_url or DEFAULT_BASE_URLS[backend],
            api_key=api_key,
            timeout=inference.timeout,
            temperature=config.model.temperature,
        )
    else:
        raise ValueError(f"Unknown inference backend: {backend}")
