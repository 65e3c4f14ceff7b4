"""Unit tests for Prometheus metrics helpers."""

import prometheus_client
import pytest

from assistant_chat_service.platform.observability.metrics import (
    HTTPLabels,
    RunLabels,
    ToolCallLabels,
    http_status_nxx,
    metrics,
    setup_run_metrics,
)


class TestHttpStatusNxx:
    """Tests for http_status_nxx()."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [(101, "1XX"), (200, "2XX"), (204, "2XX"), (302, "3XX"), (409, "4XX"), (504, "5XX")],
    )
    def test_buckets(self, status, expected):
        assert http_status_nxx(status) == expected


class TestLabels:
    """Tests for the label NamedTuples."""

    def test_label_names(self):
        assert HTTPLabels._fields == ("method", "path", "http_status")
        assert RunLabels._fields == ("strategy", "status")
        assert ToolCallLabels._fields == ("tool", "outcome")

    def test_immutable(self):
        labels = RunLabels(strategy="polling", status="completed")
        with pytest.raises(AttributeError):
            labels.status = "failed"  # type: ignore


class TestRunMetrics:
    """Tests for setup_run_metrics()."""

    def test_counters_record_by_label(self):
        """Runs and tool calls are counted per label set."""
        registry = prometheus_client.CollectorRegistry()
        runs, tool_calls, poll_attempts = setup_run_metrics(registry)

        runs.labels(*RunLabels("polling", "completed")).inc()
        runs.labels(*RunLabels("polling", "completed")).inc()
        tool_calls.labels(*ToolCallLabels("search_messages", "ok")).inc()
        poll_attempts.observe(3)

        assert (
            registry.get_sample_value(
                "assistant_runs_total", {"strategy": "polling", "status": "completed"}
            )
            == 2
        )
        assert (
            registry.get_sample_value(
                "assistant_tool_calls_total", {"tool": "search_messages", "outcome": "ok"}
            )
            == 1
        )
        assert registry.get_sample_value("assistant_poll_attempts_count") == 1
        assert registry.get_sample_value("assistant_poll_attempts_sum") == 3


class TestMetricsEndpoint:
    """Tests for metrics()."""

    def test_exposition(self):
        body, content_type = metrics()

        assert content_type == prometheus_client.CONTENT_TYPE_LATEST
        assert b"http_request_duration_seconds" in body
        assert b"assistant_runs_total" in body
