"""
In-memory metrics for /metrics (rough p50/p95 plus upstream counters).
Why: quick visibility without running Prometheus next to a serverless function.
"""

from collections import Counter, deque
from typing import Any, Deque, Dict, Iterable

MAX_LATENCY_SAMPLES = 1000


def _percentile(values: Iterable[int], p: float) -> int:
    ordered = sorted(values)
    if not ordered:
        return 0
    idx = max(0, min(len(ordered) - 1, int(len(ordered) * p)))
    return ordered[idx]


class _Metrics:
    def __init__(self) -> None:
        self.total_requests = 0
        self.total_errors = 0
        self.upstream_calls = 0
        self.upstream_retries = 0
        self.results: Counter = Counter()
        self._latencies: Deque[int] = deque(maxlen=MAX_LATENCY_SAMPLES)

    def increment_requests(self) -> None:
        self.total_requests += 1

    def increment_errors(self) -> None:
        self.total_errors += 1

    def record_latency(self, ms: int) -> None:
        self._latencies.append(ms)

    def record_call(self, attempts: int, outcome: str) -> None:
        """Account for one executor invocation that made ``attempts`` calls."""
        self.upstream_calls += attempts
        self.upstream_retries += max(0, attempts - 1)
        self.results[outcome] += 1

    def snapshot(self) -> Dict[str, Any]:
        lat = list(self._latencies)
        return {
            "total_requests": self.total_requests,
            "total_errors": self.total_errors,
            "p50_ms": _percentile(lat, 0.50),
            "p95_ms": _percentile(lat, 0.95),
            "upstream_calls": self.upstream_calls,
            "upstream_retries": self.upstream_retries,
            "results": dict(self.results),
        }


metrics = _Metrics()
