"""Provider configuration management."""

import os
from dataclasses import dataclass


@dataclass
class ProviderConfig:
    """Centralized provider configuration.

    Attributes:
        llm_provider: Which LLM provider to use ("gemini" or "mock").
        google_api_key: Google AI API key (loaded from environment).
        gemini_model_routing: Override model routing for Gemini.
        default_max_tokens: Default max output tokens.
        default_temperature: Default sampling temperature.
    """

    # Provider selection
    llm_provider: str = "gemini"

    # API keys (loaded from environment)
    google_api_key: str | None = None

    # Model routing (can override defaults)
    gemini_model_routing: dict[str, str] | None = None

    # Defaults. Document tasks are extraction, so keep temperature low.
    default_max_tokens: int = 8192
    default_temperature: float = 0.1

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        """Load configuration from environment variables.

        Returns:
            ProviderConfig instance with values from environment.
        """
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "gemini"),
            google_api_key=os.getenv("GOOGLE_API_KEY"),
            default_max_tokens=int(os.getenv("DEFAULT_MAX_TOKENS", "8192")),
            default_temperature=float(os.getenv("DEFAULT_TEMPERATURE", "0.1")),
        )
