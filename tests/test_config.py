"""Tests for encrypted configuration management.

Run with: pytest tests/test_config.py -v
"""

import tempfile
from pathlib import Path

import pytest

from config import AppConfig, ConfigError, ConfigManager, MetaConfig


@pytest.fixture
def config_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "config"


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_save_and_load(self, config_dir):
        """Test a saved configuration is encrypted and loads back."""
        manager = ConfigManager(config_dir)
        manager.save(AppConfig(meta=MetaConfig(access_token="EAAB-secret", batch_size=25)))

        assert b"EAAB-secret" not in manager.config_path.read_bytes()

        loaded = ConfigManager(config_dir).load()
        assert loaded.meta.access_token.get_secret_value() == "EAAB-secret"
        assert loaded.meta.batch_size == 25

    def test_load_missing_raises(self, config_dir):
        """Test loading without a saved configuration fails."""
        with pytest.raises(ConfigError):
            ConfigManager(config_dir).load()

    def test_load_or_default(self, config_dir):
        """Test defaults are used when nothing is saved."""
        config = ConfigManager(config_dir).load_or_default()

        assert config.search.default_limit == 24
        assert config.search.debounce_seconds == 0.5
        assert config.meta.access_token is None

    def test_yaml_overlay(self, config_dir):
        """Test settings.yaml is merged over the stored configuration."""
        manager = ConfigManager(config_dir)
        manager.save(AppConfig(meta=MetaConfig(access_token="tok")))
        manager.settings_path.write_text(
            "search:\n  default_limit: 48\nmeta:\n  batch_pause_seconds: 1.5\n",
            encoding="utf-8",
        )

        config = ConfigManager(config_dir).load()

        assert config.search.default_limit == 48
        assert config.meta.batch_pause_seconds == 1.5
        assert config.meta.access_token.get_secret_value() == "tok"

    def test_invalid_overlay_values(self, config_dir):
        """Test out-of-range overlay values raise ConfigError."""
        manager = ConfigManager(config_dir)
        manager._ensure_config_dir()
        manager.settings_path.write_text("meta:\n  batch_size: 500\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            manager.load_or_default()

    def test_overlay_must_be_mapping(self, config_dir):
        """Test a YAML list is rejected."""
        manager = ConfigManager(config_dir)
        manager._ensure_config_dir()
        manager.settings_path.write_text("- one\n- two\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            manager.load_or_default()

    def test_wrong_key_raises(self, config_dir):
        """Test a configuration encrypted with another key cannot be read."""
        manager = ConfigManager(config_dir)
        manager.save(AppConfig())
        manager.key_path.unlink()

        with pytest.raises(ConfigError):
            ConfigManager(config_dir).load()

    def test_access_token(self, config_dir):
        """Test the token getter requires a configured token."""
        manager = ConfigManager(config_dir)
        manager.save(AppConfig())

        with pytest.raises(ConfigError):
            manager.get_access_token()

        manager.update(meta={"access_token": "EAAB"})
        assert manager.get_access_token() == "EAAB"

    def test_reset(self, config_dir):
        """Test reset removes the stored configuration and key."""
        manager = ConfigManager(config_dir)
        manager.save(AppConfig())

        manager.reset()

        assert manager.is_configured() is False
        assert not manager.key_path.exists()
