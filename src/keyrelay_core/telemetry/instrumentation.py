"""Keyrelay telemetry instrumentation helpers."""

import time
from contextlib import asynccontextmanager

from opentelemetry.trace import Status, StatusCode

from .metrics import MetricLabels
from .setup import get_telemetry


@asynccontextmanager
async def instrument_key_validation(group_name: str, key_id: int | None = None):
    """Context manager for instrumenting one remote key validation.

    The caller sets result["status"] (and result["error_code"]) to the
    outcome; an escaping exception records STATUS_ERROR.

    Records:
    - Validation counter
    - Validation duration histogram
    - Trace span for the validation (when tracing is enabled)

    Args:
        group_name: Group name
        key_id: Optional key identifier for the span

    Yields:
        Dictionary to store validation status
    """
    telemetry = get_telemetry()
    start_time = time.time()
    result: dict[str, str | None] = {"status": MetricLabels.STATUS_VALID, "error_code": None}

    tracer = telemetry["tracer"] if telemetry else None
    metrics = telemetry["metrics"] if telemetry else None

    span = None
    if tracer:
        span = tracer.start_span(f"key_validation:{group_name}")
        span.set_attribute("keyrelay.group", group_name)
        if key_id is not None:
            span.set_attribute("keyrelay.key_id", key_id)

    try:
        yield result
    except Exception as e:
        result["status"] = MetricLabels.STATUS_ERROR
        result["error_code"] = type(e).__name__
        if span:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
        raise
    finally:
        duration = time.time() - start_time

        if metrics:
            metrics.record_validation(
                group=group_name,
                duration_seconds=duration,
                status=str(result["status"]),
                error_code=result.get("error_code"),
            )

        if span:
            if result["status"] == MetricLabels.STATUS_VALID:
                span.set_status(Status(StatusCode.OK))
            span.set_attribute("keyrelay.status", str(result["status"]))
            span.end()


def record_parse_fallback(method: str) -> None:
    """Count a key that was used unparsed (no-op without telemetry)."""
    telemetry = get_telemetry()
    metrics = telemetry["metrics"] if telemetry else None
    if metrics:
        metrics.record_parse_fallback(method)
