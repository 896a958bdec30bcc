"""Provider abstraction layer.

Exports:
    Error classes for provider error handling
    ProviderConfig for configuration
    Factory functions for provider instances
"""

from profile_builder.providers.config import ProviderConfig
from profile_builder.providers.errors import (
    AuthenticationError,
    ContentFilterError,
    ContextLengthError,
    ProviderError,
    RateLimitError,
    TransientError,
)
from profile_builder.providers.factory import get_llm_provider, reset_providers

__all__ = [
    # Config
    "ProviderConfig",
    # Errors
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ContentFilterError",
    "ContextLengthError",
    "TransientError",
    # Factory
    "get_llm_provider",
    "reset_providers",
]
