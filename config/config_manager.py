"""Encrypted configuration management for Creative Insights.

This module provides secure storage and retrieval of the Meta access token
and application settings using Fernet symmetric encryption. Configuration is
stored in ~/.creative-insights/ directory. Non-secret tuning can be placed
in a plain ``settings.yaml`` next to it, which is merged over the decrypted
configuration on load.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel, Field, SecretStr, ValidationError

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


class MetaConfig(BaseModel):
    """Meta Graph API configuration."""

    access_token: Optional[SecretStr] = None
    api_version: str = "v21.0"
    graph_url: str = "https://graph.facebook.com"
    batch_size: int = Field(default=50, ge=1, le=50)
    batch_pause_seconds: float = Field(default=0.2, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    base_delay: float = Field(default=1.0, ge=0)


class SearchConfig(BaseModel):
    """Creative search defaults."""

    default_limit: int = Field(default=24, ge=1)
    debounce_seconds: float = Field(default=0.5, ge=0)
    default_level: str = "ad"


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = Field(default="~/.creative-insights/insights.db")


class AppConfig(BaseModel):
    """Application configuration."""

    meta: MetaConfig = Field(default_factory=MetaConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    log_level: str = "INFO"
    api_host: str = "0.0.0.0"
    api_port: int = 8000


def _deep_merge(base: dict, overlay: dict) -> dict:
    """Merge ``overlay`` into a copy of ``base``, recursing into dicts."""
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Manages encrypted configuration storage.

    Configuration is stored in ~/.creative-insights/ with encryption keys
    managed separately for security.

    Attributes:
        config_dir: Path to the configuration directory.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".creative-insights"
    CONFIG_FILE = "config.enc"
    KEY_FILE = ".key"
    SETTINGS_FILE = "settings.yaml"

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_dir: Custom configuration directory path.
        """
        self.config_dir = Path(config_dir) if config_dir else self.DEFAULT_CONFIG_DIR
        self._fernet: Optional[Fernet] = None
        self._config: Optional[AppConfig] = None

    def _ensure_config_dir(self) -> None:
        """Create the configuration directory if it doesn't exist."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.config_dir, 0o700)

    @property
    def key_path(self) -> Path:
        """Path to the encryption key file."""
        return self.config_dir / self.KEY_FILE

    @property
    def config_path(self) -> Path:
        """Path to the encrypted configuration file."""
        return self.config_dir / self.CONFIG_FILE

    @property
    def settings_path(self) -> Path:
        """Path to the optional plain YAML settings overlay."""
        return self.config_dir / self.SETTINGS_FILE

    def _get_or_create_key(self) -> bytes:
        """Get existing encryption key or create a new one.

        Returns:
            The Fernet encryption key bytes.
        """
        self._ensure_config_dir()

        if self.key_path.exists():
            key = self.key_path.read_bytes()
        else:
            key = Fernet.generate_key()
            self.key_path.write_bytes(key)
            os.chmod(self.key_path, 0o600)
            logger.info(f"Generated new encryption key at {self.key_path}")

        return key

    def _get_fernet(self) -> Fernet:
        """Get or create the Fernet cipher instance."""
        if self._fernet is None:
            key = self._get_or_create_key()
            self._fernet = Fernet(key)
        return self._fernet

    def _encrypt(self, data: str) -> bytes:
        fernet = self._get_fernet()
        return fernet.encrypt(data.encode("utf-8"))

    def _decrypt(self, data: bytes) -> str:
        """Decrypt Fernet-encrypted bytes.

        Raises:
            ConfigError: If decryption fails.
        """
        fernet = self._get_fernet()
        try:
            return fernet.decrypt(data).decode("utf-8")
        except InvalidToken as e:
            raise ConfigError("Failed to decrypt configuration. Invalid key.") from e

    def _serialize_config(self, config: AppConfig) -> str:
        """Serialize configuration to JSON, exposing secrets."""
        data = config.model_dump()
        self._expose_secrets(data)
        return json.dumps(data, indent=2)

    def _expose_secrets(self, data: dict) -> None:
        """Recursively expose SecretStr values in a dict."""
        for key, value in data.items():
            if isinstance(value, dict):
                self._expose_secrets(value)
            elif hasattr(value, "get_secret_value"):
                data[key] = value.get_secret_value()

    def _load_settings_overlay(self) -> dict:
        """Read the plain YAML settings overlay, if present.

        Raises:
            ConfigError: If the file is not a YAML mapping.
        """
        if not self.settings_path.exists():
            return {}
        try:
            data = yaml.safe_load(self.settings_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid settings file {self.settings_path}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {self.settings_path} must contain a mapping")
        return data

    def _build_config(self, data: dict) -> AppConfig:
        merged = _deep_merge(data, self._load_settings_overlay())
        try:
            return AppConfig(**merged)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration values: {e}") from e

    def save(self, config: AppConfig) -> None:
        """Save configuration to encrypted storage.

        Args:
            config: The configuration to save.

        Raises:
            ConfigError: If save operation fails.
        """
        self._ensure_config_dir()

        try:
            serialized = self._serialize_config(config)
            encrypted = self._encrypt(serialized)
            self.config_path.write_bytes(encrypted)
            os.chmod(self.config_path, 0o600)
            self._config = config
            logger.info(f"Configuration saved to {self.config_path}")
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}") from e

    def load(self) -> AppConfig:
        """Load configuration from encrypted storage plus the YAML overlay.

        Returns:
            The loaded AppConfig.

        Raises:
            ConfigError: If configuration doesn't exist or can't be loaded.
        """
        if not self.config_path.exists():
            raise ConfigError(
                f"Configuration not found at {self.config_path}. "
                "Save a configuration with ConfigManager.save() first."
            )

        try:
            encrypted = self.config_path.read_bytes()
        except OSError as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        decrypted = self._decrypt(encrypted)
        try:
            data = json.loads(decrypted)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration format: {e}") from e

        self._config = self._build_config(data)
        return self._config

    def load_or_default(self) -> AppConfig:
        """Load the saved configuration, or defaults plus the YAML overlay.

        Returns:
            The AppConfig to run with.
        """
        if self.is_configured():
            return self.load()
        self._config = self._build_config({})
        return self._config

    def get_config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def update(self, **kwargs: Any) -> AppConfig:
        """Update specific configuration values.

        Args:
            **kwargs: Top-level configuration fields to update.

        Returns:
            The updated AppConfig.
        """
        config = self.get_config()
        config_dict = config.model_dump()

        for key, value in kwargs.items():
            if key in config_dict:
                config_dict[key] = value

        try:
            new_config = AppConfig(**config_dict)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration values: {e}") from e
        self.save(new_config)
        return new_config

    def get_access_token(self) -> str:
        """Get the Meta access token.

        Raises:
            ConfigError: If no token is configured.
        """
        token = self.get_config().meta.access_token
        if token is None or not token.get_secret_value():
            raise ConfigError("Meta access token not set")
        return token.get_secret_value()

    def is_configured(self) -> bool:
        """Check if configuration exists."""
        return self.config_path.exists()

    def reset(self) -> None:
        """Delete all configuration files.

        Warning: This will delete the encryption key and all stored credentials.
        """
        if self.config_path.exists():
            self.config_path.unlink()
        if self.key_path.exists():
            self.key_path.unlink()
        self._config = None
        self._fernet = None
        logger.info("Configuration reset complete")
