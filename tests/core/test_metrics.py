"""Tests for metrics collector."""

from gemini_proxy.core.metrics import MAX_LATENCY_SAMPLES, _Metrics, _percentile


def test_percentile_empty_list():
    assert _percentile([], 0.5) == 0


def test_percentile_single_value():
    assert _percentile([100], 0.5) == 100


def test_percentile_multiple_values():
    values = [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
    assert _percentile(values, 0.50) in [50, 60]
    assert _percentile(values, 0.95) in [90, 100]


def test_metrics_counters():
    m = _Metrics()
    m.increment_requests()
    m.increment_errors()
    assert m.total_requests == 1
    assert m.total_errors == 1


def test_latency_samples_are_capped():
    m = _Metrics()
    for i in range(MAX_LATENCY_SAMPLES + 50):
        m.record_latency(i)
    assert len(m._latencies) == MAX_LATENCY_SAMPLES
    assert m._latencies[0] == 50


def test_record_call_counts_retries():
    m = _Metrics()
    m.record_call(3, "success")
    m.record_call(1, "upstream_client_error")
    m.record_call(0, "configuration_error")

    snap = m.snapshot()
    assert snap["upstream_calls"] == 4
    assert snap["upstream_retries"] == 2
    assert snap["results"] == {
        "success": 1,
        "upstream_client_error": 1,
        "configuration_error": 1,
    }


def test_snapshot_keys():
    snap = _Metrics().snapshot()
    for key in ("total_requests", "total_errors", "p50_ms", "p95_ms"):
        assert snap[key] == 0
