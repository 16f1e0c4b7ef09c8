"""Keyrelay configuration loader.

Reads a YAML document with three optional sections:

    settings:      # system-wide key pool defaults (SystemSettings)
    logging:       # RelayLogger output (LoggingConfig)
    telemetry:     # OpenTelemetry setup (TelemetryConfig)

String values may reference environment variables; header template
variables such as ${API_KEY} are kept for request-time resolution.
"""

import logging
import os
import re
import typing
from collections.abc import Callable
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from keyrelay_core.errors import create_error
from keyrelay_core.types import KeyParsingMethod, ValidationIssue, ValidationResult

from .models import RelayConfig

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "KEYRELAY_CONFIG_PATH"
DEFAULT_CONFIG_FILE = "keyrelay.yaml"

SECTIONS = ("settings", "logging", "telemetry")

# ${NAME}, ${NAME:-fallback}, ${NAME:?message}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([?-])([^}]*))?\}")

# Resolved per request by the header resolver, never from the environment
_HEADER_VARIABLES = frozenset({"CLIENT_IP", "TIMESTAMP_MS", "TIMESTAMP_S", "GROUP_NAME", "API_KEY"})


def resolve_env_vars(value: str) -> str:
    """Substitute environment references in a string.

    ${NAME} must be set; ${NAME:-fallback} uses the fallback when unset;
    ${NAME:?message} fails with the given message when unset. Bare header
    template variables (${API_KEY}, ${CLIENT_IP}, ...) are left in place.

    Raises:
        KeyRelayError(CONFIG_INVALID) when a required variable is unset
    """

    def substitute(match: re.Match[str]) -> str:
        name, operator, operand = match.groups()

        if operator is None and name in _HEADER_VARIABLES:
            return match.group(0)

        if name in os.environ:
            return os.environ[name]
        if operator == "-":
            return operand or ""

        message = f"Required environment variable {name} not set"
        if operator == "?" and operand:
            message = operand
        raise create_error("CONFIG_INVALID", detail=message)

    return ENV_VAR_PATTERN.sub(substitute, value)


def _resolve_tree(node: Any) -> Any:
    if isinstance(node, str):
        return resolve_env_vars(node)
    if isinstance(node, list):
        return [_resolve_tree(item) for item in node]
    if isinstance(node, dict):
        return {key: _resolve_tree(item) for key, item in node.items()}
    return node


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base; nested mappings merge recursively."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _coerce_enum(enum_type: type[Enum], value: Any) -> Enum:
    if isinstance(value, enum_type) or not isinstance(value, str):
        return enum_type(value)
    for candidate in (value, value.upper(), value.lower()):
        try:
            return enum_type(candidate)
        except ValueError:
            pass
    raise ValueError(f"'{value}' is not a valid {enum_type.__name__}")


def _build(target: Any, value: Any) -> Any:
    """Build a value of the annotated type from plain YAML data."""
    if value is None:
        return None

    if is_dataclass(target) and isinstance(value, dict):
        hints = typing.get_type_hints(target)
        known = {f.name for f in fields(target)}
        return target(**{k: _build(hints[k], v) for k, v in value.items() if k in known})

    if isinstance(target, type) and issubclass(target, Enum):
        return _coerce_enum(target, value)

    if typing.get_origin(target) is dict and isinstance(value, dict):
        _, item_type = typing.get_args(target)
        return {k: _build(item_type, v) for k, v in value.items()}

    return value


class ConfigLoader:
    """Loads, validates and reloads the keyrelay configuration."""

    def __init__(self) -> None:
        self._config: RelayConfig | None = None
        self._config_path: Path | None = None
        self._change_callbacks: list[Callable[[RelayConfig], None]] = []

    @property
    def config_path(self) -> Path | None:
        """File the current configuration came from, if any."""
        return self._config_path

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> RelayConfig:
        """Load configuration from a YAML file.

        Without an explicit path, $KEYRELAY_CONFIG_PATH is used, then
        ./keyrelay.yaml.

        Args:
            path: Config file to read
            use_defaults: Fall back to built-in defaults when no file exists

        Raises:
            KeyRelayError(CONFIG_INVALID) for missing (without defaults),
            unreadable or invalid files
        """
        config_path = Path(path) if path is not None else self._find_config_file()

        if not config_path.exists():
            if not use_defaults:
                raise create_error(
                    "CONFIG_INVALID", detail=f"Configuration file not found: {config_path}"
                )
            logger.info(f"No config file at {config_path}, using defaults")
            return self.load_defaults()

        try:
            raw = yaml.safe_load(config_path.read_text())
        except yaml.YAMLError as e:
            raise create_error("CONFIG_INVALID", detail=f"Invalid YAML in {config_path}: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise create_error("CONFIG_INVALID", detail="Configuration root must be a mapping")

        return self.load_from_dict(_resolve_tree(raw), config_path)

    def load_defaults(self) -> RelayConfig:
        """Load the built-in default configuration."""
        return self.load_from_dict({})

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> RelayConfig:
        """Validate and build configuration from an already-parsed mapping.

        Raises:
            KeyRelayError(CONFIG_INVALID) if validation fails
        """
        result = self.validate(data)
        for issue in result.warnings:
            logger.warning(f"Config {issue.path}: {issue.message}")
        if not result.valid:
            problems = "\n".join(f"- {issue.path}: {issue.message}" for issue in result.errors)
            raise create_error("CONFIG_INVALID", detail=f"Invalid configuration:\n{problems}")

        try:
            config = _build(RelayConfig, {k: v for k, v in data.items() if k in SECTIONS})
        except (TypeError, ValueError) as e:
            raise create_error("CONFIG_INVALID", detail=f"Cannot build configuration: {e}") from e

        self._config = config
        self._config_path = config_path
        logger.debug(f"Configuration loaded from {config_path or 'defaults'}")
        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Check a configuration mapping without loading it."""
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        for key in data:
            if key not in SECTIONS:
                warnings.append(
                    ValidationIssue(key, f"Unknown configuration key: {key}", severity="warning")
                )

        for section in SECTIONS:
            if section in data and not isinstance(data[section], dict):
                errors.append(ValidationIssue(section, f"{section} must be a mapping"))

        settings = data.get("settings")
        if isinstance(settings, dict):
            self._validate_settings(settings, errors, warnings)

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def _validate_settings(
        self,
        settings: dict[str, Any],
        errors: list[ValidationIssue],
        warnings: list[ValidationIssue],
    ) -> None:
        timeout = settings.get("key_validation_timeout_seconds")
        if timeout is not None and not (_is_int(timeout) and timeout > 0):
            errors.append(
                ValidationIssue(
                    "settings.key_validation_timeout_seconds",
                    "key_validation_timeout_seconds must be a positive integer",
                )
            )

        threshold = settings.get("blacklist_threshold")
        if threshold is not None and not (_is_int(threshold) and threshold >= 0):
            errors.append(
                ValidationIssue(
                    "settings.blacklist_threshold",
                    "blacklist_threshold must be a non-negative integer",
                )
            )

        method = settings.get("key_parsing_method")
        if method and str(method) not in {m.value for m in KeyParsingMethod}:
            warnings.append(
                ValidationIssue(
                    "settings.key_parsing_method",
                    f"Unknown key_parsing_method '{method}', keys will be used as-is",
                    severity="warning",
                )
            )

    def get(self) -> RelayConfig:
        """Current configuration.

        Raises:
            KeyRelayError(CONFIG_INVALID) if nothing has been loaded yet
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def reload(self) -> RelayConfig:
        """Re-read the current config file and notify change listeners."""
        if self._config_path is None:
            raise create_error("CONFIG_INVALID", detail="Configuration was not loaded from a file")

        config = self.load(self._config_path)
        for callback in list(self._change_callbacks):
            try:
                callback(config)
            except Exception as e:
                logger.error(f"Config change listener failed: {e}")
        return config

    def on_change(self, callback: Callable[[RelayConfig], None]) -> None:
        """Call callback with the new configuration after every reload."""
        self._change_callbacks.append(callback)

    def _find_config_file(self) -> Path:
        return Path(os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_FILE)


_default_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Process-wide ConfigLoader."""
    global _default_loader  # noqa: PLW0603
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_config(path: str | Path | None = None) -> RelayConfig:
    """Load configuration through the process-wide loader."""
    return get_config_loader().load(path)
