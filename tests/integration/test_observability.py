"""
Integration tests for core/observability.py

Tests structured logging, correlation IDs, and metrics collection.
"""
import asyncio
import json
import logging
import time as time_module

import pytest

from core.observability import (
    generate_correlation_id,
    correlation_context,
    get_correlation_id,
    Timer,
    timed,
    metrics,
    MetricsCollector,
    StructuredFormatter,
    HumanReadableFormatter,
    get_logger,
)


def _record(msg: str = "Test message", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationId:
    """Tests for correlation ID management."""

    def test_generate_correlation_id_not_empty(self):
        """Generated ID is a 12 character hex string."""
        cid = generate_correlation_id()
        assert len(cid) == 12
        int(cid, 16)

    def test_context_binds_and_resets(self):
        """The id is visible inside the block and cleared after it."""
        with correlation_context("req-123") as cid:
            assert cid == "req-123"
            assert get_correlation_id() == "req-123"
        assert get_correlation_id() is None

    def test_context_generates_id_when_missing(self):
        """A missing id is replaced by a generated one."""
        with correlation_context(None) as cid:
            assert cid
            assert get_correlation_id() == cid

    @pytest.mark.asyncio
    async def test_correlation_id_isolation(self):
        """Concurrent tasks see their own correlation id."""
        async def worker(name: str) -> str:
            with correlation_context(name):
                await asyncio.sleep(0.01)
                return get_correlation_id()

        results = await asyncio.gather(worker("a"), worker("b"))
        assert results == ["a", "b"]


class TestTimer:
    """Tests for Timer context manager."""

    def test_measures_elapsed_time(self):
        """Timer measures elapsed time correctly."""
        with Timer("test_operation") as timer:
            time_module.sleep(0.05)

        assert timer.elapsed_ms >= 45
        assert timer.elapsed_ms < 1000

    def test_slow_operation_logs_warning(self, caplog):
        """Exceeding the threshold logs at WARNING level."""
        logger = get_logger("test.timer")
        with caplog.at_level(logging.DEBUG, logger="test.timer"):
            with Timer("slow_query", logger, warn_threshold_ms=0):
                time_module.sleep(0.001)

        assert any(r.levelno == logging.WARNING and "Slow query" in r.message for r in caplog.records)


class TestTimedDecorator:
    """Tests for the timed decorator."""

    @pytest.mark.asyncio
    async def test_async_function_timed(self):
        """Async functions keep their result and record a timing sample."""
        metrics.reset()

        @timed("load_report")
        async def load_report():
            return 42

        assert await load_report() == 42
        assert metrics.get_stats()["timing"]["load_report"]["count"] == 1

    def test_sync_function_timed(self):
        """Sync functions are timed under their own name by default."""
        metrics.reset()

        @timed()
        def render_csv():
            return "a,b"

        assert render_csv() == "a,b"
        assert "render_csv" in metrics.get_stats()["timing"]


class TestMetricsCollector:
    """Tests for MetricsCollector class."""

    def test_record_request(self):
        """Records request counts by endpoint."""
        collector = MetricsCollector()
        collector.record_request("GET /api/health")
        collector.record_request("GET /api/health")
        collector.record_request("GET /api/orders")

        stats = collector.get_stats()
        assert stats["requests"]["GET /api/health"] == 2
        assert stats["requests"]["GET /api/orders"] == 1

    def test_record_error(self):
        """Records error counts by type."""
        collector = MetricsCollector()
        collector.record_error("QueryTimeoutError")
        collector.record_error("HTTP_404")
        collector.record_error("QueryTimeoutError")

        stats = collector.get_stats()
        assert stats["errors"]["QueryTimeoutError"] == 2
        assert stats["errors"]["HTTP_404"] == 1

    def test_record_timing(self):
        """Records timing statistics."""
        collector = MetricsCollector()
        for value in (100.0, 200.0, 150.0):
            collector.record_timing("query:fetch_all", value)

        timings = collector.get_stats()["timing"]["query:fetch_all"]
        assert timings["count"] == 3
        assert timings["avg_ms"] == 150.0
        assert timings["min_ms"] == 100.0
        assert timings["max_ms"] == 200.0
        assert timings["p95_ms"] is None

    def test_samples_capped(self):
        """Only the most recent samples are kept."""
        collector = MetricsCollector(max_samples=5)
        for value in range(10):
            collector.record_timing("op", float(value))

        timings = collector.get_stats()["timing"]["op"]
        assert timings["count"] == 5
        assert timings["min_ms"] == 5.0

    def test_reset_stats(self):
        """Reset clears all statistics."""
        collector = MetricsCollector()
        collector.record_request("GET /api/test")
        collector.record_error("Error")
        collector.record_timing("GET /api/test", 100.0)

        collector.reset()
        stats = collector.get_stats()

        assert stats == {"requests": {}, "errors": {}, "timing": {}}


class TestFormatters:
    """Tests for log formatters."""

    def test_structured_formats_as_json(self):
        """Outputs one JSON object with the standard fields."""
        parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["message"] == "Test message"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test.logger"
        assert parsed["timestamp"].endswith("Z")

    def test_structured_includes_extras(self):
        """Fields passed through extra= are included."""
        parsed = json.loads(StructuredFormatter().format(_record(path="/api/orders", status_code=200)))

        assert parsed["path"] == "/api/orders"
        assert parsed["status_code"] == 200

    def test_structured_includes_correlation_id(self):
        """JSON includes correlation ID when bound."""
        with correlation_context("test-correlation-456"):
            parsed = json.loads(StructuredFormatter().format(_record()))

        assert parsed["correlation_id"] == "test-correlation-456"

    def test_human_readable_format(self):
        """Human format carries level, logger, correlation id and extras."""
        with correlation_context("abc123"):
            line = HumanReadableFormatter().format(_record(duration_ms=1.5))

        assert "INFO" in line
        assert "test.logger [abc123]" in line
        assert "Test message" in line
        assert "duration_ms" in line


class TestGetLogger:
    """Tests for get_logger function."""

    def test_returns_logger(self):
        """Returns a named logger instance."""
        logger = get_logger("test.module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test.module"
