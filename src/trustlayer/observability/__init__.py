"""
Runtime telemetry for trust layer operations.

Provides:
- Metrics with rolling percentile stats and threshold alerts
- Structured log entries forwarded to structlog
- Spans grouped into traces
- Alerts and health checks
- Bounded JSON snapshot persistence
"""

from trustlayer.observability.decorators import traced, with_observability
from trustlayer.observability.engine import ObservabilityEngine
from trustlayer.observability.metrics import MetricStats
from trustlayer.observability.models import (
    Alert,
    AlertCategory,
    AlertSeverity,
    HealthCheck,
    HealthCheckResult,
    HealthStatus,
    LogEntry,
    LogLevel,
    Metric,
    Span,
    SpanStatus,
)

__all__ = [
    "Alert",
    "AlertCategory",
    "AlertSeverity",
    "HealthCheck",
    "HealthCheckResult",
    "HealthStatus",
    "LogEntry",
    "LogLevel",
    "Metric",
    "MetricStats",
    "ObservabilityEngine",
    "Span",
    "SpanStatus",
    "traced",
    "with_observability",
]
