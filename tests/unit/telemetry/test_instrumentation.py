"""Unit tests for keyrelay telemetry instrumentation."""

import pytest
from opentelemetry.sdk.metrics.export import InMemoryMetricReader

from keyrelay_core.keypool import parse_key_or_identity
from keyrelay_core.telemetry import (
    MetricLabels,
    TelemetryConfig,
    instrument_key_validation,
    record_parse_fallback,
    reset_telemetry,
    setup_telemetry,
)


def counter_points(reader: InMemoryMetricReader, name: str) -> list:
    data = reader.get_metrics_data()
    if data is None:
        return []
    return [
        point
        for resource_metrics in data.resource_metrics
        for scope_metrics in resource_metrics.scope_metrics
        for metric in scope_metrics.metrics
        if metric.name == name
        for point in metric.data.data_points
    ]


class TestInstrumentKeyValidation:
    """Tests for instrument_key_validation context manager."""

    def setup_method(self):
        """Reset telemetry before each test."""
        reset_telemetry()
        self.reader = InMemoryMetricReader()
        setup_telemetry(metric_readers=[self.reader])

    def teardown_method(self):
        """Reset telemetry after each test."""
        reset_telemetry()

    @pytest.mark.asyncio
    async def test_yields_result_dict(self):
        """Test that instrument_key_validation yields a result dictionary."""
        async with instrument_key_validation("primary", key_id=1) as result:
            assert result["status"] == MetricLabels.STATUS_VALID
            assert result["error_code"] is None

    @pytest.mark.asyncio
    async def test_records_caller_status(self):
        """Test the status set by the caller is recorded."""
        async with instrument_key_validation("primary") as result:
            result["status"] = MetricLabels.STATUS_TIMEOUT
            result["error_code"] = "KEY_VALIDATION_TIMEOUT"

        (point,) = counter_points(self.reader, "keyrelay_key_validations_total")
        assert point.attributes[MetricLabels.STATUS] == "timeout"
        assert point.attributes[MetricLabels.ERROR_CODE] == "KEY_VALIDATION_TIMEOUT"
        assert point.attributes[MetricLabels.GROUP] == "primary"

    @pytest.mark.asyncio
    async def test_error(self):
        """Test an escaping exception is recorded as an error."""
        with pytest.raises(ValueError):
            async with instrument_key_validation("primary") as result:
                raise ValueError("Test error")

        assert result["status"] == MetricLabels.STATUS_ERROR
        assert result["error_code"] == "ValueError"

    @pytest.mark.asyncio
    async def test_with_tracing(self):
        """Test instrumentation works with tracing enabled."""
        reset_telemetry()
        self.reader = InMemoryMetricReader()
        setup_telemetry(TelemetryConfig(traces_enabled=True), metric_readers=[self.reader])

        async with instrument_key_validation("primary", key_id=7) as result:
            result["status"] = MetricLabels.STATUS_INVALID

        assert len(counter_points(self.reader, "keyrelay_key_validations_total")) == 1

    @pytest.mark.asyncio
    async def test_without_telemetry(self):
        """Test instrumentation is a no-op when telemetry is not set up."""
        reset_telemetry()
        async with instrument_key_validation("primary") as result:
            pass
        assert result["status"] == MetricLabels.STATUS_VALID


class TestRecordParseFallback:
    """Tests for parse fallback recording."""

    def setup_method(self):
        """Reset telemetry before each test."""
        reset_telemetry()
        self.reader = InMemoryMetricReader()
        setup_telemetry(metric_readers=[self.reader])

    def teardown_method(self):
        """Reset telemetry after each test."""
        reset_telemetry()

    def test_parser_fallback_is_counted(self):
        """Test a key used unparsed increments the fallback counter."""
        parse_key_or_identity("key=", "urlencode")

        (point,) = counter_points(self.reader, "keyrelay_key_parse_fallbacks_total")
        assert point.value == 1
        assert point.attributes[MetricLabels.METHOD] == "urlencode"

    def test_successful_parse_not_counted(self):
        """Test well-formed keys do not touch the fallback counter."""
        parse_key_or_identity("key=sk-abc", "urlencode")
        assert counter_points(self.reader, "keyrelay_key_parse_fallbacks_total") == []

    def test_without_telemetry(self):
        """Test recording is a no-op when telemetry is not set up."""
        reset_telemetry()
        record_parse_fallback("urlencode")
