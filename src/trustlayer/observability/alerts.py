"""
Alert storage and the metric threshold rules that raise alerts.

Recording a metric is the one telemetry operation with a side effect beyond
storage: ``evaluate_thresholds`` decides which alerts a freshly recorded
metric raises, and the engine creates them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from trustlayer.config import AlertThresholds
from trustlayer.observability.models import Alert, AlertCategory, AlertSeverity, Metric
from trustlayer.observability.tracing import generate_id

LATENCY_MARKERS = ("duration", "latency")
PLACEHOLDER_COUNT_METRIC = "placeholder.count"
DATA_QUALITY_SCORE_METRIC = "data_quality.score"


@dataclass(frozen=True)
class AlertSpec:
    """An alert a threshold rule wants raised."""

    severity: AlertSeverity
    title: str
    message: str
    category: AlertCategory
    metadata: dict[str, Any] = field(default_factory=dict)


def _fmt(value: float) -> str:
    return f"{value:g}"


def evaluate_thresholds(metric: Metric, thresholds: AlertThresholds) -> list[AlertSpec]:
    """Return the alerts raised by ``metric`` under ``thresholds``."""

    specs = []

    if any(marker in metric.name for marker in LATENCY_MARKERS) and metric.value > thresholds.latency_ms:
        specs.append(
            AlertSpec(
                severity=AlertSeverity.WARNING,
                title="High Latency Detected",
                message=(
                    f"{metric.name}: {_fmt(metric.value)}{metric.unit or ''} exceeds threshold "
                    f"of {_fmt(thresholds.latency_ms)}ms"
                ),
                category=AlertCategory.PERFORMANCE,
                metadata={"metric": metric.to_dict(), "threshold": thresholds.latency_ms},
            )
        )

    if metric.name == PLACEHOLDER_COUNT_METRIC and metric.value > 0:
        specs.append(
            AlertSpec(
                severity=(
                    AlertSeverity.ERROR
                    if metric.value > thresholds.placeholder_count
                    else AlertSeverity.WARNING
                ),
                title="Placeholder Data Detected",
                message=f"{_fmt(metric.value)} placeholder(s) detected in data",
                category=AlertCategory.PLACEHOLDER,
                metadata={"count": metric.value},
            )
        )

    if metric.name == DATA_QUALITY_SCORE_METRIC and metric.value < thresholds.data_quality_score:
        specs.append(
            AlertSpec(
                severity=AlertSeverity.WARNING,
                title="Low Data Quality Score",
                message=(
                    f"Data quality score {_fmt(metric.value)} below threshold "
                    f"{_fmt(thresholds.data_quality_score)}"
                ),
                category=AlertCategory.DATA_QUALITY,
                metadata={"score": metric.value, "threshold": thresholds.data_quality_score},
            )
        )

    return specs


class AlertManager:
    """Manage alerts raised by the engine."""

    def __init__(self) -> None:
        self._alerts: list[Alert] = []

    def add(
        self,
        severity: AlertSeverity,
        title: str,
        message: str,
        category: AlertCategory,
        now: datetime,
        metadata: Optional[dict[str, Any]] = None,
        *,
        store: bool = True,
    ) -> Alert:
        """Build an alert; ``store=False`` returns it without keeping it."""
        alert = Alert(
            id=generate_id(),
            severity=AlertSeverity(severity),
            title=title,
            message=message,
            timestamp=now,
            category=AlertCategory(category),
            metadata=dict(metadata or {}),
        )
        if store:
            self._alerts.append(alert)
        return alert

    def resolve(self, alert_id: str, now: datetime) -> Optional[Alert]:
        """Resolve an alert. Returns it only when this call changed it."""
        for alert in self._alerts:
            if alert.id == alert_id:
                if alert.resolved:
                    return None
                alert.resolved = True
                alert.resolved_at = now
                return alert
        return None

    def get(self, alert_id: str) -> Optional[Alert]:
        return next((a for a in self._alerts if a.id == alert_id), None)

    def get_active_alerts(self) -> list[Alert]:
        """Get all unresolved alerts."""
        return [a for a in self._alerts if not a.resolved]

    def get_alerts_by_category(self, category: AlertCategory) -> list[Alert]:
        """Get unresolved alerts in one category."""
        category = AlertCategory(category)
        return [a for a in self._alerts if a.category is category and not a.resolved]

    def get_summary(self) -> dict[str, int]:
        """Get active alert counts by severity."""
        active = self.get_active_alerts()
        return {severity.value: sum(1 for a in active if a.severity is severity) for severity in AlertSeverity}

    def purge_before(self, cutoff: datetime) -> int:
        """Drop resolved alerts by resolution time and open alerts by creation time."""
        before = len(self._alerts)
        self._alerts = [
            a
            for a in self._alerts
            if (a.resolved_at if a.resolved and a.resolved_at else a.timestamp) > cutoff
        ]
        return before - len(self._alerts)

    def all(self) -> list[Alert]:
        return list(self._alerts)

    def load(self, alerts: list[Alert]) -> None:
        self._alerts = list(alerts)

    def clear(self) -> None:
        self._alerts.clear()

    def __len__(self) -> int:
        return len(self._alerts)
