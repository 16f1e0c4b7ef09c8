"""Keyrelay configuration data models."""

from dataclasses import dataclass, field

from keyrelay_core.logging import LogConfig
from keyrelay_core.types import (
    DEFAULT_APP_URL,
    DEFAULT_BLACKLIST_THRESHOLD,
    DEFAULT_KEY_VALIDATION_TIMEOUT_SECONDS,
    KeyParsingMethod,
    LogFormat,
    LogLevel,
)


@dataclass
class SystemSettings:
    """System-wide defaults every group inherits unless it overrides them."""

    app_url: str = DEFAULT_APP_URL
    key_validation_timeout_seconds: int = DEFAULT_KEY_VALIDATION_TIMEOUT_SECONDS
    blacklist_threshold: int = DEFAULT_BLACKLIST_THRESHOLD
    key_parsing_method: str = KeyParsingMethod.NONE.value


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_context: bool = True
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)

    def to_log_config(self) -> LogConfig:
        """Build the RelayLogger configuration for this section."""
        return LogConfig(
            level=self.level,
            format=self.format,
            show_context=self.show_context,
            truncate_at=self.truncate_at,
            components=dict(self.components),
        )


@dataclass
class TelemetryConfig:
    """Telemetry configuration."""

    enabled: bool = True
    service_name: str = "keyrelay"
    service_version: str = "0.1.0"
    metrics_enabled: bool = True
    traces_enabled: bool = False
    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class RelayConfig:
    """Root configuration document."""

    settings: SystemSettings = field(default_factory=SystemSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
