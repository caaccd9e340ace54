"""In-process metrics collection.

Recent values are kept in a bounded list for inspection. Per-name totals
(count, sum, min, max) are cumulative and feed the /metrics and /health
endpoints.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Iterator


@dataclass
class MetricPoint:
    name: str
    value: float
    timestamp: float
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class MetricSummary:
    count: int
    sum: float
    min: float
    max: float

    @property
    def avg(self) -> float:
        return self.sum / self.count if self.count else 0.0

    def add(self, value: float) -> None:
        self.count += 1
        self.sum += value
        self.min = min(self.min, value)
        self.max = max(self.max, value)

    def to_dict(self) -> dict[str, float]:
        return {
            "count": self.count,
            "sum": self.sum,
            "avg": self.avg,
            "min": self.min,
            "max": self.max,
        }


class MetricsCollector:
    """Bounded metrics buffer with running totals.

    Once more than `max_points` values are held, the oldest points are
    dropped. Totals are never trimmed.
    """

    def __init__(self, max_points: int = 1000):
        self.max_points = max_points
        self._points: list[MetricPoint] = []
        self._totals: dict[str, MetricSummary] = {}

    def record(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        value = float(value)
        self._points.append(MetricPoint(name, value, time.time(), tags or {}))
        if len(self._points) > self.max_points:
            self._points = self._points[-self.max_points :]

        totals = self._totals.get(name)
        if totals is None:
            self._totals[name] = MetricSummary(count=1, sum=value, min=value, max=value)
        else:
            totals.add(value)

    def increment(self, name: str, tags: dict[str, str] | None = None) -> None:
        self.record(name, 1.0, tags)

    @contextmanager
    def timer(self, name: str, tags: dict[str, str] | None = None) -> Iterator[None]:
        """Record the elapsed milliseconds of the wrapped block."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record(name, (time.perf_counter() - start) * 1000, tags)

    def recent(self, name: str | None = None, limit: int = 100) -> list[MetricPoint]:
        points = [p for p in self._points if name is None or p.name == name]
        return points[-limit:]

    def summarize(self, name: str) -> MetricSummary | None:
        """Totals for one metric since start (or the last clear)."""
        totals = self._totals.get(name)
        return replace(totals) if totals is not None else None

    def summary(self) -> dict[str, dict[str, float]]:
        """Per-metric-name summary: count, sum, avg, min, max."""
        return {name: self._totals[name].to_dict() for name in sorted(self._totals)}

    def clear(self) -> None:
        self._points.clear()
        self._totals.clear()
