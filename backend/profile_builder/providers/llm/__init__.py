"""LLM provider module.

LLM provider interface and adapters.
"""

from profile_builder.providers.llm.base import (
    DocumentAttachment,
    LLMMessage,
    LLMProvider,
    LLMResponse,
    TaskType,
)
from profile_builder.providers.llm.gemini_adapter import GeminiAdapter
from profile_builder.providers.llm.mock_adapter import MockLLMProvider

__all__ = [
    # Base types
    "DocumentAttachment",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "TaskType",
    # Adapters
    "GeminiAdapter",
    "MockLLMProvider",
]
