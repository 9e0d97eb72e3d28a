"""Metric log with per-name rolling aggregates."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from trustlayer.observability.models import Metric

AGGREGATE_WINDOW = 1000


@dataclass(frozen=True)
class MetricStats:
    count: int
    min: float
    max: float
    mean: float
    p50: float
    p95: float
    p99: float

    def to_dict(self) -> dict[str, float]:
        return {
            "count": self.count,
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "p50": self.p50,
            "p95": self.p95,
            "p99": self.p99,
        }


def percentile(sorted_values: list[float], fraction: float) -> float:
    """Nearest-rank percentile: ``sorted_values[floor(n * fraction)]``, clamped to the last index."""

    index = min(math.floor(len(sorted_values) * fraction), len(sorted_values) - 1)
    return sorted_values[index]


def compute_stats(values: Iterable[float]) -> Optional[MetricStats]:
    ordered = sorted(values)
    if not ordered:
        return None
    count = len(ordered)
    return MetricStats(
        count=count,
        min=ordered[0],
        max=ordered[-1],
        mean=sum(ordered) / count,
        p50=percentile(ordered, 0.5),
        p95=percentile(ordered, 0.95),
        p99=percentile(ordered, 0.99),
    )


class MetricStore:
    """
    Append-only metric log plus a FIFO window of the last values per name.

    The log is trimmed only by retention; the aggregate windows feed
    ``stats`` and are never rebuilt from the log. Not thread-safe on its own;
    the engine serializes access.
    """

    def __init__(self, window: int = AGGREGATE_WINDOW) -> None:
        self.window = window
        self._metrics: list[Metric] = []
        self._aggregates: dict[str, deque[float]] = {}

    def append(self, metric: Metric) -> None:
        self._metrics.append(metric)
        values = self._aggregates.get(metric.name)
        if values is None:
            values = self._aggregates[metric.name] = deque(maxlen=self.window)
        values.append(metric.value)

    def latest_value(self, name: str, tags: Optional[dict[str, str]] = None) -> float:
        """Latest value recorded for ``name`` whose tags include ``tags``; 0 if none."""

        for metric in reversed(self._metrics):
            if metric.name == name and metric.matches_tags(tags):
                return metric.value
        return 0

    def query(self, name: Optional[str] = None, since: Optional[datetime] = None) -> list[Metric]:
        return [
            m
            for m in self._metrics
            if (name is None or m.name == name) and (since is None or m.timestamp >= since)
        ]

    def stats(self, name: str) -> Optional[MetricStats]:
        return compute_stats(self._aggregates.get(name, ()))

    def purge_before(self, cutoff: datetime) -> int:
        before = len(self._metrics)
        self._metrics = [m for m in self._metrics if m.timestamp > cutoff]
        return before - len(self._metrics)

    def load(self, metrics: Iterable[Metric]) -> None:
        """Restore the metric log from a snapshot; aggregates start empty."""

        self._metrics = list(metrics)

    def clear(self) -> None:
        self._metrics.clear()
        self._aggregates.clear()

    def __len__(self) -> int:
        return len(self._metrics)
