"""Keyrelay metrics schema - OpenTelemetry conventions.

Metrics:
- keyrelay_key_validations_total: remote key validations by group and outcome
- keyrelay_key_validation_duration_seconds: remote validation latency
- keyrelay_key_parse_fallbacks_total: raw keys used as-is after a parse failure

Labels/Attributes:
- group: Group name
- status: valid, invalid, timeout, error
- error_code: KeyRelayError code when status != valid
- method: Key parsing method
"""

from dataclasses import dataclass

from opentelemetry import metrics
from opentelemetry.metrics import Counter, Histogram

# Metric prefix for all keyrelay metrics
METRIC_PREFIX = "keyrelay"


@dataclass
class MetricLabels:
    """Standard metric labels/attributes."""

    GROUP = "group"
    STATUS = "status"
    ERROR_CODE = "error_code"
    METHOD = "method"

    # Status values
    STATUS_VALID = "valid"
    STATUS_INVALID = "invalid"
    STATUS_TIMEOUT = "timeout"
    STATUS_ERROR = "error"


class RelayMetrics:
    """Keyrelay metrics collection."""

    def __init__(self, meter: metrics.Meter):
        """Initialize metrics.

        Args:
            meter: OpenTelemetry Meter instance
        """
        self._meter = meter

        self.key_validations_total: Counter = meter.create_counter(
            name=f"{METRIC_PREFIX}_key_validations_total",
            description="Total number of remote key validations",
            unit="1",
        )
        self.key_parse_fallbacks_total: Counter = meter.create_counter(
            name=f"{METRIC_PREFIX}_key_parse_fallbacks_total",
            description="Keys used unparsed because decoding failed",
            unit="1",
        )
        self.key_validation_duration_seconds: Histogram = meter.create_histogram(
            name=f"{METRIC_PREFIX}_key_validation_duration_seconds",
            description="Remote key validation duration in seconds",
            unit="s",
        )

    def record_validation(
        self,
        group: str,
        duration_seconds: float,
        status: str,
        error_code: str | None = None,
    ) -> None:
        """Record one remote validation.

        Args:
            group: Group name
            duration_seconds: Time spent in the remote call
            status: One of the MetricLabels.STATUS_* values
            error_code: Error code for non-valid outcomes
        """
        attributes = {
            MetricLabels.GROUP: group,
            MetricLabels.STATUS: status,
        }
        if error_code:
            attributes[MetricLabels.ERROR_CODE] = error_code

        self.key_validations_total.add(1, attributes)
        self.key_validation_duration_seconds.record(
            duration_seconds,
            {MetricLabels.GROUP: group, MetricLabels.STATUS: status},
        )

    def record_parse_fallback(self, method: str) -> None:
        """Record a key that fell back to its raw form."""
        self.key_parse_fallbacks_total.add(1, {MetricLabels.METHOD: method})
