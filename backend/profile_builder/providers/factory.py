"""Provider factory functions.

Singleton pattern for provider instances.
"""

from profile_builder.providers.config import ProviderConfig
from profile_builder.providers.llm.base import LLMProvider
from profile_builder.providers.llm.gemini_adapter import GeminiAdapter
from profile_builder.providers.llm.mock_adapter import MockLLMProvider

_llm_provider: LLMProvider | None = None


def get_llm_provider(config: ProviderConfig | None = None) -> LLMProvider:
    """Get or create the LLM provider singleton.

    WHY SINGLETON:
    - Reuses HTTP connections
    - Consistent configuration across app

    Args:
        config: Optional provider configuration. If None and no provider
            exists, loads from environment.

    Returns:
        LLMProvider instance.

    Raises:
        ValueError: If the configured provider is unknown.
    """
    global _llm_provider

    if _llm_provider is None:
        if config is None:
            config = ProviderConfig.from_env()

        if config.llm_provider == "gemini":
            _llm_provider = GeminiAdapter(config)
        elif config.llm_provider == "mock":
            _llm_provider = MockLLMProvider()
        else:
            raise ValueError(f"Unknown LLM provider: {config.llm_provider}")

    return _llm_provider


def reset_providers() -> None:
    """Reset provider singletons.

    Used in tests to ensure isolation between test cases.
    """
    global _llm_provider
    _llm_provider = None
