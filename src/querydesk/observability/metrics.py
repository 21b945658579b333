"""
QueryDesk - Client metrics.

Counters fed by the API client and the history store:
- per remote operation: call count, failures by error code, latency
  (median / p95 / max over a bounded window) and bytes uploaded
- per storage backend: failed reads and writes

One process-wide store is shared through ``get_metrics_store``; tests build
their own ``MetricsStore``.
"""

from __future__ import annotations

import math
import statistics
import threading
from collections import Counter, deque
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

LATENCY_WINDOW = 500


def _nearest_rank(ordered: list[float], fraction: float) -> float:
    rank = max(1, math.ceil(fraction * len(ordered)))
    return ordered[rank - 1]


class _OperationStats:
    __slots__ = ("calls", "failures", "latencies", "bytes_sent")

    def __init__(self) -> None:
        self.calls = 0
        self.failures: Counter[str] = Counter()
        self.latencies: deque[float] = deque(maxlen=LATENCY_WINDOW)
        self.bytes_sent = 0

    def as_dict(self) -> dict[str, Any]:
        latency: dict[str, float] = {}
        if self.latencies:
            ordered = sorted(self.latencies)
            latency = {
                "median": statistics.median(ordered),
                "p95": _nearest_rank(ordered, 0.95),
                "max": ordered[-1],
            }
        return {
            "calls": self.calls,
            "failures": dict(self.failures),
            "latency_ms": latency,
            "bytes_sent": self.bytes_sent,
        }


class MetricsStore:
    def __init__(self):
        self._lock = threading.Lock()
        self._operations: dict[str, _OperationStats] = {}
        self._storage_errors: Counter[str] = Counter()
        self._since = datetime.now(timezone.utc)

    def _stats(self, operation: str) -> _OperationStats:
        stats = self._operations.get(operation)
        if stats is None:
            stats = self._operations[operation] = _OperationStats()
        return stats

    def observe(self, operation: str, elapsed_ms: float, error_code: str | None = None) -> None:
        """Record one finished remote call."""
        with self._lock:
            stats = self._stats(operation)
            stats.calls += 1
            stats.latencies.append(elapsed_ms)
            if error_code:
                stats.failures[error_code] += 1

    def count_failure(self, operation: str, error_code: str) -> None:
        """Failure detected after the call completed (e.g. an unparseable body)."""
        with self._lock:
            self._stats(operation).failures[error_code] += 1

    def add_bytes_sent(self, operation: str, size: int) -> None:
        with self._lock:
            self._stats(operation).bytes_sent += size

    def record_storage_error(self, backend: str) -> None:
        with self._lock:
            self._storage_errors[backend] += 1

    def summary(self) -> dict[str, Any]:
        with self._lock:
            failures_by_code: Counter[str] = Counter()
            for stats in self._operations.values():
                failures_by_code.update(stats.failures)
            return {
                "since": self._since.isoformat(),
                "operations": {name: s.as_dict() for name, s in self._operations.items()},
                "failures_by_code": dict(failures_by_code),
                "storage_errors": dict(self._storage_errors),
            }

    def reset(self) -> None:
        with self._lock:
            self._operations.clear()
            self._storage_errors.clear()
            self._since = datetime.now(timezone.utc)


@lru_cache(maxsize=1)
def get_metrics_store() -> MetricsStore:
    return MetricsStore()
