"""
Tests for blueprint_ai/core/settings.py - SettingsManager.

All tests use a temporary config directory.
"""

import json

from blueprint_ai.core.settings import SettingsManager, get_settings_manager, reset_settings_manager


class TestSettingsManager:
    """Tests for loading, saving and defaults."""

    def test_defaults_without_file(self, settings_manager):
        """Test defaults are returned when no config file exists."""
        settings = settings_manager.load_settings()

        assert settings["agent"] == {"default_provider": "anthropic", "max_rounds": 10}
        assert settings["providers"]["ollama"]["base_url"] == "http://localhost:11434"
        assert not settings_manager.get_config_file_path().exists()

    def test_defaults_are_not_shared(self, settings_manager):
        settings = settings_manager.load_settings()
        settings["agent"]["max_rounds"] = 99

        assert settings_manager.load_settings()["agent"]["max_rounds"] == 10
        assert SettingsManager.DEFAULT_SETTINGS["agent"]["max_rounds"] == 10

    def test_save_and_reload(self, settings_manager, tmp_path):
        settings_manager.set_api_key("openai", "sk-saved")

        reloaded = SettingsManager(config_dir=tmp_path / "config")

        assert reloaded.get_api_key("openai") == "sk-saved"
        data = json.loads(settings_manager.get_config_file_path().read_text(encoding="utf-8"))
        assert data["api_keys"]["openai"] == "sk-saved"

    def test_partial_file_merged_with_defaults(self, settings_manager):
        """Test a partial provider block keeps the remaining defaults."""
        settings_manager.get_config_file_path().write_text(
            json.dumps({"providers": {"openai": {"model": "gpt-4.1"}}}),
            encoding="utf-8",
        )

        config = settings_manager.get_provider_config("openai")

        assert config["model"] == "gpt-4.1"
        assert config["max_tokens"] == 4096
        assert settings_manager.get_max_rounds() == 10

    def test_corrupt_file_falls_back_to_defaults(self, settings_manager):
        settings_manager.get_config_file_path().write_text("{not json", encoding="utf-8")

        assert settings_manager.get_default_provider() == "anthropic"

    def test_unknown_provider_config_is_empty(self, settings_manager):
        assert settings_manager.get_provider_config("gemini") == {}


class TestApiKeys:
    """Tests for API key resolution."""

    def test_missing_key_is_none(self, settings_manager):
        assert settings_manager.get_api_key("anthropic") is None

    def test_env_var_fallback(self, settings_manager, monkeypatch):
        """Test the environment variable is used when the file has no key."""
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-env")

        assert settings_manager.get_api_key("anthropic") == "sk-ant-env"

    def test_file_key_wins_over_env(self, settings_manager, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        settings_manager.set_api_key("openai", "sk-file")

        assert settings_manager.get_api_key("openai") == "sk-file"

    def test_ollama_has_no_key(self, settings_manager):
        assert settings_manager.get_api_key("ollama") is None


class TestAgentOptions:
    """Tests for agent options."""

    def test_max_rounds(self, settings_manager):
        settings_manager.set_agent_option("max_rounds", "3")

        assert settings_manager.get_max_rounds() == 3

    def test_default_provider(self, settings_manager):
        settings_manager.set_agent_option("default_provider", "ollama")

        assert settings_manager.get_default_provider() == "ollama"
        assert settings_manager.get_agent_option("missing", "fallback") == "fallback"

    def test_reset_to_defaults(self, settings_manager):
        settings_manager.set_agent_option("max_rounds", 2)
        settings_manager.set_api_key("openai", "sk-file")

        assert settings_manager.reset_to_defaults() is True
        assert settings_manager.get_max_rounds() == 10
        assert settings_manager.get_api_key("openai") is None


class TestGlobalSettings:
    """Tests for the module singleton."""

    def test_singleton(self):
        assert get_settings_manager() is get_settings_manager()

    def test_reset(self, monkeypatch, tmp_path):
        """Test reset builds a fresh manager on next access."""
        first = get_settings_manager()
        reset_settings_manager()
        monkeypatch.setattr(
            "blueprint_ai.core.settings.user_config_dir",
            lambda *args: str(tmp_path / "platform"),
        )

        second = get_settings_manager()

        assert second is not first
        assert second.config_dir == tmp_path / "platform"
