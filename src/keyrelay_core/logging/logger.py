"""Keyrelay Logger - Colored or JSON logging for key validation events."""

import json
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from keyrelay_core.logging.colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from keyrelay_core.types import APIKey, LogFormat, LogLevel


def mask_key(value: str) -> str:
    """Short, non-reversible preview of a key for logs.

    Example:
        mask_key("sk-abcdefghijklmnop") -> "sk-a...mnop"
    """
    if len(value) <= 12:
        return "***"
    return f"{value[:4]}...{value[-4:]}"


@dataclass
class LogConfig:
    """Logger configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_context: bool = True
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)
    output: TextIO = field(default=sys.stdout)

    def __post_init__(self) -> None:
        # An empty mapping means every component is on
        if not self.components:
            self.components = dict.fromkeys(("validator", "channel", "batch"), True)


_LEVEL_RANK = {LogLevel.DEBUG: 0, LogLevel.INFO: 1, LogLevel.WARN: 2, LogLevel.ERROR: 3}
_LEVEL_COLORS = {
    LogLevel.DEBUG: LIGHT_BLUE,
    LogLevel.INFO: CYAN,
    LogLevel.WARN: YELLOW,
    LogLevel.ERROR: RED,
}
_COMPONENT_COLORS = {"validator": GREEN, "channel": ORANGE, "batch": MAGENTA}


class RelayLogger:
    """Writes keyrelay events to a stream, colored for terminals or as JSON lines.

    Components (validator, channel, batch) can be silenced individually
    through LogConfig.components.
    """

    def __init__(self, config: LogConfig | None = None):
        self.config = config or LogConfig()

    def validation(self, group_name: str) -> "ValidationLogger":
        """Get a logger scoped to validations within one group."""
        return ValidationLogger(self, group_name)

    def configure(self, config: LogConfig) -> None:
        """Swap in a new configuration, e.g. after a config reload."""
        self.config = config

    def _enabled(self, level: LogLevel, component: str) -> bool:
        if _LEVEL_RANK.get(level, 0) < _LEVEL_RANK.get(self.config.level, 1):
            return False
        return self.config.components.get(component, True)

    def _log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        if not self._enabled(level, component):
            return

        if self.config.format == LogFormat.JSON:
            line = self._as_json(level, component, message, context or {})
        else:
            line = self._as_colored(level, component, message, context or {})
        print(line, file=self.config.output)

    def _as_json(
        self, level: LogLevel, component: str, message: str, context: dict[str, Any]
    ) -> str:
        now = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        entry = {"timestamp": now, "level": level.value, "component": component}
        entry["message"] = message
        entry.update(context)
        return json.dumps(entry, default=str)

    def _as_colored(
        self, level: LogLevel, component: str, message: str, context: dict[str, Any]
    ) -> str:
        tag = f"{_COMPONENT_COLORS.get(component, RESET)}[{component.upper()}]{RESET}"
        line = f"{tag} {_LEVEL_COLORS.get(level, RESET)}{message}{RESET}"

        if context and self.config.show_context:
            shown = str(context)
            limit = self.config.truncate_at
            if len(shown) > limit:
                shown = shown[:limit] + "..."
            line = f"{line} {LIGHT_BLUE}{shown}{RESET}"
        return line


class ValidationLogger:
    """Logger for key validation events within one group.

    Never logs a full key, only its id and a masked preview.
    """

    def __init__(self, parent: RelayLogger, group_name: str):
        self.parent = parent
        self.group_name = group_name

    def _key_context(self, key: APIKey, event: str) -> dict[str, Any]:
        return {
            "group": self.group_name,
            "key_id": key.id,
            "key": mask_key(key.key_value),
            "event": event,
        }

    def started(self, key: APIKey, timeout_seconds: int) -> None:
        """Log the start of a remote validation."""
        context = self._key_context(key, "validation_started")
        context["timeout_seconds"] = timeout_seconds

        self.parent._log(
            LogLevel.DEBUG, "validator", f"Validating key {key.id} in '{self.group_name}'", context
        )

    def succeeded(self, key: APIKey, duration_ms: int) -> None:
        """Log an accepted key."""
        context = self._key_context(key, "validation_succeeded")
        context["duration_ms"] = duration_ms

        message = f"Key {key.id} is valid ({duration_ms / 1000:.2f}s) ✓"
        self.parent._log(LogLevel.DEBUG, "validator", message, context)

    def failed(self, key: APIKey, error: Exception, duration_ms: int) -> None:
        """Log a rejected key or a failed remote check."""
        context = self._key_context(key, "validation_failed")
        context.update(
            {
                "duration_ms": duration_ms,
                "error": str(error),
                "error_code": getattr(error, "code", type(error).__name__),
            }
        )

        message = f"Key {key.id} validation failed: {error}"
        self.parent._log(LogLevel.DEBUG, "validator", message, context)

    def channel_unavailable(self, key: APIKey, error: Exception) -> None:
        """Log that no channel could be obtained for the group."""
        context = self._key_context(key, "channel_unavailable")
        context["error"] = str(error)

        message = f"No channel for group '{self.group_name}': {error}"
        self.parent._log(LogLevel.ERROR, "channel", message, context)

    def batch_completed(self, total: int, valid: int, missing: int) -> None:
        """Log a summary of a batch key test."""
        context = {
            "group": self.group_name,
            "event": "batch_completed",
            "total": total,
            "valid": valid,
            "missing": missing,
        }

        message = (
            f"Tested {total} keys in '{self.group_name}': "
            f"{valid} valid, {total - valid - missing} invalid, {missing} not found"
        )
        self.parent._log(LogLevel.INFO, "batch", message, context)
