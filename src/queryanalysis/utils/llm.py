"""LLM construction for query analysis components."""

import os
from typing import Any

from langchain_groq import ChatGroq


class LLMHelper:
    """Helper for building the chat model shared by analysis components."""

    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    @classmethod
    def create_llm(cls, config: dict[str, Any]) -> ChatGroq:
        """Create ChatGroq LLM from config.

        Query analysis wants deterministic structured output, so the
        temperature defaults to 0.0 rather than a generation-style value.

        Args:
            config: Configuration dictionary with an ``llm`` section.

        Returns:
            ChatGroq instance.
        """
        llm_config = config.get("llm", {}) or {}

        model = llm_config.get("model", cls.DEFAULT_MODEL)
        api_key = llm_config.get("api_key") or os.environ.get("GROQ_API_KEY")
        temperature = llm_config.get("temperature", 0.0)
        max_tokens = llm_config.get("max_tokens", 1024)

        return ChatGroq(
            model=model,
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
        )
