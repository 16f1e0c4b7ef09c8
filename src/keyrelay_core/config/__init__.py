"""Keyrelay configuration - config loading and effective settings."""

from .loader import (
    ConfigLoader,
    deep_merge,
    get_config_loader,
    load_config,
    resolve_env_vars,
)
from .models import (
    LoggingConfig,
    RelayConfig,
    SystemSettings,
    TelemetryConfig,
)
from .settings import SystemSettingsManager

__all__ = [
    # Config models
    "RelayConfig",
    "SystemSettings",
    "LoggingConfig",
    "TelemetryConfig",
    # Effective settings
    "SystemSettingsManager",
    # Loader
    "ConfigLoader",
    "get_config_loader",
    "load_config",
    # Utilities
    "resolve_env_vars",
    "deep_merge",
]
