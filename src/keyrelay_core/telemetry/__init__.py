"""Keyrelay telemetry - OpenTelemetry-based metrics and spans."""

from keyrelay_core.config.models import TelemetryConfig

from .instrumentation import instrument_key_validation, record_parse_fallback
from .metrics import METRIC_PREFIX, MetricLabels, RelayMetrics
from .setup import get_telemetry, reset_telemetry, setup_telemetry

__all__ = [
    # Metrics
    "RelayMetrics",
    "MetricLabels",
    "METRIC_PREFIX",
    # Setup
    "TelemetryConfig",
    "setup_telemetry",
    "get_telemetry",
    "reset_telemetry",
    # Instrumentation
    "instrument_key_validation",
    "record_parse_fallback",
]
