"""Creative Insights - Configuration Module.

This module provides secure configuration management with
Fernet encryption for the Meta access token.
"""

from .config_manager import (
    AppConfig,
    ConfigError,
    ConfigManager,
    DatabaseConfig,
    MetaConfig,
    SearchConfig,
)

__all__ = [
    "AppConfig",
    "ConfigError",
    "ConfigManager",
    "DatabaseConfig",
    "MetaConfig",
    "SearchConfig",
]
