"""Unit tests for LoadTestResult and statistics aggregation."""

import json
from io import StringIO

import pytest
from rich.console import Console

from api_inspector.core.results import LoadTestResult, aggregate_statistics


@pytest.mark.unit
class TestAggregateStatistics:

    def test_basic_statistics(self):
        result = aggregate_statistics(
            [10.0, 20.0, 30.0, 40.0],
            total_requests=4,
            success_count=3,
            error_count=1,
            duration_ms=200.0,
        )

        assert result.avg_latency_ms == 25.0
        assert result.min_latency_ms == 10.0
        assert result.max_latency_ms == 40.0
        assert result.requests_per_second == 20.0
        assert result.success_rate_percent == 75.0
        assert result.cancelled is False

    def test_empty_latencies_default_to_zero(self):
        result = aggregate_statistics([], total_requests=0, success_count=0, error_count=0, duration_ms=0)
        assert (result.avg_latency_ms, result.min_latency_ms, result.max_latency_ms) == (0.0, 0.0, 0.0)
        assert result.requests_per_second == 0.0
        assert result.success_rate_percent == 0.0

    def test_zero_duration_gives_zero_throughput(self):
        result = aggregate_statistics([1.0], total_requests=1, success_count=1, error_count=0, duration_ms=0)
        assert result.requests_per_second == 0.0
        assert result.success_rate_percent == 100.0

    def test_order_independent(self):
        samples = [5.0, 1.0, 9.0, 3.0]
        a = aggregate_statistics(samples, 4, 4, 0, 100.0)
        b = aggregate_statistics(list(reversed(samples)), 4, 4, 0, 100.0)
        assert a == b

    def test_all_failures_still_have_latency(self):
        result = aggregate_statistics([12.0, 8.0], total_requests=2, success_count=0, error_count=2, duration_ms=15.0)
        assert result.success_rate_percent == 0.0
        assert result.avg_latency_ms == 10.0


@pytest.mark.unit
class TestLoadTestResult:

    def test_failed_result(self):
        result = LoadTestResult.failed("cannot reach config")
        assert result.error_count == 1
        assert result.total_requests == 0
        assert result.success_count == 0
        assert result.duration_ms == 0
        assert result.is_failed_run
        assert result.to_event()["error"] == "cannot reach config"

    def test_event_keys(self):
        event = aggregate_statistics([1.0], 1, 1, 0, 10.0).to_event()
        assert list(event) == [
            "totalRequests",
            "successCount",
            "errorCount",
            "durationMs",
            "avgLatencyMs",
            "minLatencyMs",
            "maxLatencyMs",
            "requestsPerSecond",
            "successRatePercent",
        ]

    def test_is_immutable(self):
        result = LoadTestResult()
        with pytest.raises(AttributeError):
            result.success_count = 5

    def test_summary(self):
        text = aggregate_statistics([10.0, 30.0], 2, 1, 1, 50.0).summary()
        assert "Total Requests: 2" in text
        assert "Success Rate: 50.0%" in text
        assert "Throughput: 40.00 req/s" in text

    def test_print_summary(self):
        buffer = StringIO()
        out = Console(file=buffer, width=120)
        aggregate_statistics([10.0], 1, 1, 0, 10.0).print_summary(out=out)
        assert "Load Test Results" in buffer.getvalue()

    def test_save_json(self, tmp_path):
        result = aggregate_statistics([10.0, 20.0], 2, 2, 0, 40.0)
        path = result.save_json(
            str(tmp_path / "nested" / "run.json"),
            config={"endpoint": "/x"},
            insights={"grade": "A"},
        )

        data = json.loads((tmp_path / "nested" / "run.json").read_text(encoding="utf-8"))
        assert path.endswith("run.json")
        assert data["config"] == {"endpoint": "/x"}
        assert data["result"]["avgLatencyMs"] == 15.0
        assert data["insights"] == {"grade": "A"}

    def test_save_json_generates_path(self, tmp_path):
        path = LoadTestResult().save_json(output_dir=str(tmp_path))
        assert path.startswith(str(tmp_path))
        assert path.endswith(".json")
