"""Keyrelay telemetry setup - OpenTelemetry initialization.

Configures the OpenTelemetry SDK with:
- MeterProvider with PrometheusMetricReader (or caller-supplied readers)
- TracerProvider for validation spans (when traces are enabled)

Providers are kept local to keyrelay rather than installed globally, so
embedding services keep control of their own OpenTelemetry setup.
"""

from collections.abc import Sequence
from typing import Any

from opentelemetry.exporter.prometheus import PrometheusMetricReader
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import MetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider

from keyrelay_core.config.models import TelemetryConfig

from .metrics import RelayMetrics

# Global telemetry state
_telemetry: dict[str, Any] | None = None


def setup_telemetry(
    config: TelemetryConfig | None = None,
    metric_readers: Sequence[MetricReader] | None = None,
) -> dict[str, Any]:
    """Set up OpenTelemetry instrumentation.

    Args:
        config: Telemetry configuration (uses defaults if None)
        metric_readers: Readers to attach instead of the Prometheus reader

    Returns:
        Dictionary with meter, tracer, metrics and config entries
    """
    global _telemetry  # noqa: PLW0603

    if _telemetry is not None:
        return _telemetry

    config = config or TelemetryConfig()

    if not config.enabled:
        _telemetry = {
            "meter": None,
            "tracer": None,
            "metrics": None,
            "config": config,
            "providers": [],
        }
        return _telemetry

    resource = Resource.create(
        {
            SERVICE_NAME: config.service_name,
            SERVICE_VERSION: config.service_version,
            **config.attributes,
        }
    )

    providers: list[Any] = []
    meter = None
    relay_metrics = None
    if config.metrics_enabled:
        readers = list(metric_readers) if metric_readers is not None else [PrometheusMetricReader()]
        meter_provider = MeterProvider(metric_readers=readers, resource=resource)
        providers.append(meter_provider)
        meter = meter_provider.get_meter("keyrelay", config.service_version)
        relay_metrics = RelayMetrics(meter)

    tracer = None
    if config.traces_enabled:
        tracer_provider = TracerProvider(resource=resource)
        providers.append(tracer_provider)
        tracer = tracer_provider.get_tracer("keyrelay", config.service_version)

    _telemetry = {
        "meter": meter,
        "tracer": tracer,
        "metrics": relay_metrics,
        "config": config,
        "providers": providers,
    }
    return _telemetry


def get_telemetry() -> dict[str, Any] | None:
    """Get telemetry instances, None if setup_telemetry was never called."""
    return _telemetry


def reset_telemetry() -> None:
    """Shut down providers and clear telemetry state (for tests)."""
    global _telemetry  # noqa: PLW0603

    if _telemetry is not None:
        for provider in _telemetry.get("providers", []):
            provider.shutdown()
    _telemetry = None
