"""
Provider lookup table.

Maps provider ids ("openai", "anthropic", "ollama") to adapter classes and
hands out one configured instance per id. Adapters are built lazily from
the settings the first time they are requested.
"""

import logging
from typing import Dict, List, Optional, Type

from blueprint_ai.core.errors import ProviderNotFoundError
from blueprint_ai.core.settings import SettingsManager, get_settings_manager
from blueprint_ai.providers.anthropic_provider import AnthropicProvider
from blueprint_ai.providers.base import ChatProvider
from blueprint_ai.providers.ollama_provider import OllamaProvider
from blueprint_ai.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """
    Registry of chat provider implementations.

    Example:
        >>> registry = ProviderRegistry()
        >>> registry.get("ollama").model
        'llama3'
    """

    def __init__(self, settings: Optional[SettingsManager] = None):
        self._settings = settings
        self._classes: Dict[str, Type[ChatProvider]] = {}
        self._instances: Dict[str, ChatProvider] = {}

        for provider_class in (OpenAIProvider, AnthropicProvider, OllamaProvider):
            self.register(provider_class.name, provider_class)

    def register(self, name: str, provider_class: Type[ChatProvider]) -> None:
        """Register (or replace) an adapter class under a provider id."""
        self._classes[name] = provider_class
        self._instances.pop(name, None)
        logger.debug(f"Registered chat provider: {name}")

    def set_instance(self, name: str, provider: ChatProvider) -> None:
        """Install a ready-made adapter instance under a provider id."""
        self._instances[name] = provider

    def get(self, name: str) -> ChatProvider:
        """
        Get the adapter instance for a provider id.

        Raises:
            ProviderNotFoundError: If no adapter is registered under `name`.
        """
        if name in self._instances:
            return self._instances[name]

        provider_class = self._classes.get(name)
        if provider_class is None:
            raise ProviderNotFoundError(
                f"Unknown provider '{name}'. Available: {', '.join(self.available())}"
            )

        settings = self._settings or get_settings_manager()
        instance = provider_class.from_settings(settings)
        self._instances[name] = instance
        logger.info(f"Chat provider ready: {name}")
        return instance

    def available(self) -> List[str]:
        return sorted(set(self._classes) | set(self._instances))

    def __contains__(self, name: object) -> bool:
        return name in self._classes or name in self._instances


# ============================================================================
# GLOBAL SINGLETON
# ============================================================================

_provider_registry: Optional[ProviderRegistry] = None


def get_provider_registry() -> ProviderRegistry:
    global _provider_registry
    if _provider_registry is None:
        _provider_registry = ProviderRegistry()
    return _provider_registry


def get_provider(name: str) -> ChatProvider:
    """Shortcut for get_provider_registry().get(name)."""
    return get_provider_registry().get(name)


def reset_provider_registry() -> None:
    """
    Drop cached adapters (after settings change, or in tests).
    """
    global _provider_registry
    _provider_registry = None


__all__ = [
    "ProviderRegistry",
    "get_provider_registry",
    "get_provider",
    "reset_provider_registry",
]
