"""Tests for provider configuration and the provider factory."""

from unittest.mock import patch

import pytest

from profile_builder.providers import factory
from profile_builder.providers.config import ProviderConfig
from profile_builder.providers.llm.gemini_adapter import GeminiAdapter
from profile_builder.providers.llm.mock_adapter import MockLLMProvider


class TestProviderConfig:
    """Tests for ProviderConfig."""

    def test_defaults(self):
        config = ProviderConfig()
        assert config.llm_provider == "gemini"
        assert config.google_api_key is None
        assert config.default_max_tokens == 8192
        assert config.default_temperature == 0.1

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "mock")
        monkeypatch.setenv("GOOGLE_API_KEY", "key-123")
        monkeypatch.setenv("DEFAULT_MAX_TOKENS", "1024")
        monkeypatch.setenv("DEFAULT_TEMPERATURE", "0.0")

        config = ProviderConfig.from_env()

        assert config.llm_provider == "mock"
        assert config.google_api_key == "key-123"
        assert config.default_max_tokens == 1024
        assert config.default_temperature == 0.0


class TestGetLLMProvider:
    """Tests for get_llm_provider."""

    def test_mock_provider(self):
        provider = factory.get_llm_provider(ProviderConfig(llm_provider="mock"))
        assert isinstance(provider, MockLLMProvider)
        assert provider.provider_name == "mock"

    def test_gemini_provider(self):
        with patch("profile_builder.providers.llm.gemini_adapter.genai"):
            provider = factory.get_llm_provider(
                ProviderConfig(llm_provider="gemini", google_api_key="key")
            )
        assert isinstance(provider, GeminiAdapter)

    def test_singleton(self):
        first = factory.get_llm_provider(ProviderConfig(llm_provider="mock"))
        assert factory.get_llm_provider() is first

    def test_reset(self):
        first = factory.get_llm_provider(ProviderConfig(llm_provider="mock"))
        factory.reset_providers()
        second = factory.get_llm_provider(ProviderConfig(llm_provider="mock"))
        assert second is not first

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM provider: openai"):
            factory.get_llm_provider(ProviderConfig(llm_provider="openai"))

    def test_loads_from_env_when_no_config(self, monkeypatch):
        monkeypatch.setenv("LLM_PROVIDER", "mock")
        assert isinstance(factory.get_llm_provider(), MockLLMProvider)
