r"""
User settings for Blueprint AI.

One JSON file in the platformdirs user config directory:

- Windows: %APPDATA%\BlueprintAI\config.json
- Linux: ~/.config/BlueprintAI/config.json
- macOS: ~/Library/Application Support/BlueprintAI/config.json

The file may be partial or missing; every read is merged over
DEFAULT_SETTINGS. Blank API keys fall back to OPENAI_API_KEY /
ANTHROPIC_API_KEY from the environment.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Optional, Dict, Any, Union

from platformdirs import user_config_dir

logger = logging.getLogger(__name__)


class SettingsManager:
    """
    Reads and writes the settings file.

    Sections:
    - api_keys: per hosted provider
    - providers: model / max_tokens / base_url per provider id
    - agent: default_provider for new sessions, max_rounds per turn

    Every getter re-reads the file, so edits made while the server runs
    apply to the next turn.
    """

    APP_NAME = "BlueprintAI"
    APP_AUTHOR = "BlueprintAI"
    CONFIG_FILE_NAME = "config.json"

    API_KEY_ENV_VARS = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
    }

    DEFAULT_SETTINGS = {
        "api_keys": {
            "openai": "",
            "anthropic": "",
        },
        "providers": {
            "openai": {
                "model": "gpt-4o",
                "max_tokens": 4096,
                "base_url": "https://api.openai.com/v1",
            },
            "anthropic": {
                "model": "claude-sonnet-4-20250514",
                "max_tokens": 4096,
                "base_url": "https://api.anthropic.com",
            },
            "ollama": {
                "model": "llama3",
                "base_url": "http://localhost:11434",
            },
        },
        "agent": {
            "default_provider": "anthropic",
            "max_rounds": 10,
        },
    }

    def __init__(self, config_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            config_dir: Directory holding config.json. Defaults to the
                platformdirs user config dir; created if missing.
        """
        self.config_dir = Path(config_dir or user_config_dir(self.APP_NAME, self.APP_AUTHOR))
        self.config_file = self.config_dir / self.CONFIG_FILE_NAME
        self.config_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Settings directory: {self.config_dir}")

    # ========================================================================
    # FILE I/O
    # ========================================================================

    def _defaults(self) -> Dict[str, Any]:
        return copy.deepcopy(self.DEFAULT_SETTINGS)

    def load_settings(self) -> Dict[str, Any]:
        """
        Current settings, merged over the defaults.

        A missing or unreadable file yields the defaults; the error is logged.
        """
        if not self.config_file.exists():
            logger.debug("No settings file yet, using defaults")
            return self._defaults()

        try:
            raw = json.loads(self.config_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Settings file is not valid JSON ({e}), using defaults")
            return self._defaults()
        except OSError as e:
            logger.error(f"Could not read settings file: {e}")
            return self._defaults()

        if not isinstance(raw, dict):
            logger.error("Settings file does not hold a JSON object, using defaults")
            return self._defaults()
        return self._merge_with_defaults(raw)

    def save_settings(self, settings: Dict[str, Any]) -> bool:
        """
        Write settings (merged over the defaults) via a temp file and rename.

        Returns:
            False if the file could not be written.
        """
        payload = self._merge_with_defaults(settings)
        staging = self.config_file.with_suffix(".tmp")
        try:
            staging.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            staging.replace(self.config_file)
        except (OSError, TypeError) as e:
            logger.error(f"Could not write settings file: {e}")
            return False

        logger.info(f"Settings written to {self.config_file}")
        return True

    def _update(self, section: str, *path_and_value: Any) -> bool:
        """Set settings[section][k1][k2]... = value and save."""
        *keys, value = path_and_value
        settings = self.load_settings()
        target = settings.setdefault(section, {})
        for key in keys[:-1]:
            target = target.setdefault(key, {})
        target[keys[-1]] = value
        return self.save_settings(settings)

    def _merge_with_defaults(self, settings: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overlay user settings on the defaults.

        api_keys and agent merge key by key; providers merge one level
        deeper so a partial provider block keeps its remaining defaults.
        Unknown provider ids are kept.
        """
        merged = self._defaults()

        for section in ("api_keys", "agent"):
            if isinstance(settings.get(section), dict):
                merged[section].update(settings[section])

        for provider, options in (settings.get("providers") or {}).items():
            if isinstance(options, dict):
                merged["providers"].setdefault(provider, {}).update(options)

        return merged

    # ========================================================================
    # PROVIDERS
    # ========================================================================

    def get_api_key(self, provider: str) -> Optional[str]:
        """
        API key for a hosted provider.

        The settings file wins; a blank entry falls back to the provider's
        environment variable. None when neither is set.
        """
        api_key = self.load_settings()["api_keys"].get(provider) or ""
        if not api_key and provider in self.API_KEY_ENV_VARS:
            api_key = os.environ.get(self.API_KEY_ENV_VARS[provider], "")
        return api_key or None

    def set_api_key(self, provider: str, api_key: str) -> bool:
        return self._update("api_keys", provider, api_key)

    def get_provider_config(self, provider: str) -> Dict[str, Any]:
        """Copy of one provider block ({} for an unknown id)."""
        return dict(self.load_settings()["providers"].get(provider, {}))

    def set_provider_option(self, provider: str, key: str, value: Any) -> bool:
        return self._update("providers", provider, key, value)

    # ========================================================================
    # AGENT
    # ========================================================================

    def get_agent_option(self, key: str, default: Any = None) -> Any:
        return self.load_settings()["agent"].get(key, default)

    def set_agent_option(self, key: str, value: Any) -> bool:
        return self._update("agent", key, value)

    def get_max_rounds(self) -> int:
        """Model round trips allowed in one turn."""
        return int(self.get_agent_option("max_rounds", self.DEFAULT_SETTINGS["agent"]["max_rounds"]))

    def get_default_provider(self) -> str:
        """Provider id assigned to new sessions."""
        return self.get_agent_option("default_provider", self.DEFAULT_SETTINGS["agent"]["default_provider"])

    # ========================================================================
    # MAINTENANCE
    # ========================================================================

    def reset_to_defaults(self) -> bool:
        logger.warning("Resetting settings to defaults")
        return self.save_settings(self._defaults())

    def get_config_file_path(self) -> Path:
        return self.config_file


_settings_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """Process-wide SettingsManager (created on first use)."""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


def reset_settings_manager() -> None:
    """
    Drop the process-wide SettingsManager.

    WARNING: Only use in tests.
    """
    global _settings_manager
    _settings_manager = None


__all__ = ["SettingsManager", "get_settings_manager", "reset_settings_manager"]
