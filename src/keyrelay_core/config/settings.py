"""System settings manager - resolves a group's effective configuration."""

import logging
from collections.abc import Mapping
from dataclasses import fields
from typing import Any

from keyrelay_core.types import EffectiveConfig, KeyParsingMethod

from .models import SystemSettings

logger = logging.getLogger(__name__)

# Group override keys that map onto EffectiveConfig fields
_OVERRIDABLE = {f.name for f in fields(EffectiveConfig)}


class SystemSettingsManager:
    """Merges system settings with per-group overrides.

    get_effective_config is pure for a given settings snapshot, so
    recomputing it for the same group is always safe.
    """

    def __init__(self, settings: SystemSettings | None = None):
        """Initialize settings manager.

        Args:
            settings: System-wide settings (defaults to SystemSettings())
        """
        self._settings = settings or SystemSettings()

    @property
    def settings(self) -> SystemSettings:
        """Current system settings."""
        return self._settings

    def update_settings(self, settings: SystemSettings) -> None:
        """Replace system settings (affects configs resolved afterwards)."""
        self._settings = settings

    def get_effective_config(self, group_config: Mapping[str, Any] | None) -> EffectiveConfig:
        """Resolve the effective configuration for a group.

        Args:
            group_config: The group's raw override mapping (may be None)

        Returns:
            EffectiveConfig with group overrides applied over system settings
        """
        values: dict[str, Any] = {
            "app_url": self._settings.app_url,
            "key_validation_timeout_seconds": self._settings.key_validation_timeout_seconds,
            "blacklist_threshold": self._settings.blacklist_threshold,
            "key_parsing_method": self._settings.key_parsing_method,
        }

        for name, raw in (group_config or {}).items():
            if name not in _OVERRIDABLE:
                logger.warning(f"Ignoring unknown group config key '{name}'")
                continue
            if raw is None:
                continue
            try:
                values[name] = self._coerce(name, raw)
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring invalid value for group config key '{name}': {e}")

        return EffectiveConfig(
            app_url=str(values["app_url"]),
            key_validation_timeout_seconds=int(values["key_validation_timeout_seconds"]),
            blacklist_threshold=int(values["blacklist_threshold"]),
            key_parsing_method=KeyParsingMethod.from_value(values["key_parsing_method"]),
        )

    def _coerce(self, name: str, raw: Any) -> Any:
        if name in ("key_validation_timeout_seconds", "blacklist_threshold"):
            if isinstance(raw, bool):
                raise TypeError(f"expected integer, got {raw!r}")
            value = int(raw)
            if value < 0:
                raise ValueError(f"must not be negative, got {value}")
            return value
        if name == "key_parsing_method":
            return KeyParsingMethod.from_value(str(raw))
        return str(raw)
