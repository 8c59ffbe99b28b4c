"""
Tests for blueprint_ai/providers/registry.py - provider lookup table.
"""

import pytest

from blueprint_ai.core.errors import ProviderNotFoundError
from blueprint_ai.providers.anthropic_provider import AnthropicProvider
from blueprint_ai.providers.ollama_provider import OllamaProvider
from blueprint_ai.providers.registry import ProviderRegistry, get_provider, get_provider_registry


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_built_in_providers(self, settings_manager):
        registry = ProviderRegistry(settings=settings_manager)

        assert registry.available() == ["anthropic", "ollama", "openai"]
        assert "ollama" in registry
        assert "gemini" not in registry

    def test_instances_are_cached(self, settings_manager):
        """Test one adapter instance is built per provider id."""
        registry = ProviderRegistry(settings=settings_manager)

        first = registry.get("ollama")

        assert isinstance(first, OllamaProvider)
        assert first.model == "llama3"
        assert first.base_url == "http://localhost:11434"
        assert registry.get("ollama") is first

    def test_settings_flow_into_adapter(self, settings_manager, monkeypatch):
        """Test API key falls back to the environment variable."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")
        registry = ProviderRegistry(settings=settings_manager)

        provider = registry.get("anthropic")

        assert isinstance(provider, AnthropicProvider)
        assert provider.api_key == "sk-ant-env"

    def test_unknown_provider(self, settings_manager):
        registry = ProviderRegistry(settings=settings_manager)

        with pytest.raises(ProviderNotFoundError, match="Unknown provider 'gemini'"):
            registry.get("gemini")

    def test_set_instance(self, settings_manager, fake_provider_class):
        """Test a ready-made instance can be installed under any id."""
        registry = ProviderRegistry(settings=settings_manager)
        fake = fake_provider_class()

        registry.set_instance("fake", fake)

        assert registry.get("fake") is fake
        assert "fake" in registry.available()

    def test_global_helpers(self):
        assert get_provider_registry() is get_provider_registry()
        assert isinstance(get_provider("ollama"), OllamaProvider)
