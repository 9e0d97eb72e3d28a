"""Hook event payload definitions for trust layer subscribers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from trustlayer.results import utc_now

EVENT_VERSION = "1.0"

METRIC_EVENT = "telemetry.metric"
LOG_EVENT = "telemetry.log"
SPAN_END_EVENT = "span.end"
ALERT_CREATED_EVENT = "alert.created"
ALERT_RESOLVED_EVENT = "alert.resolved"
HEALTH_CHECK_EVENT = "health.check"
SAFETY_CHECK_EVENT = "safety.check"
QUALITY_RESULT_EVENT = "quality.result"


@dataclass(kw_only=True)
class HookEvent:
    """Base event payload shared by all hook events."""

    event_type: str
    version: str = EVENT_VERSION
    timestamp: datetime = field(default_factory=utc_now)
    tags: dict[str, str] = field(default_factory=dict)


@dataclass(kw_only=True)
class TelemetryEvent(HookEvent):
    """Event emitted for recorded metrics and log entries."""

    name: str
    value: Any | None = None
    level: str | None = None
    unit: str | None = None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class SpanEvent(HookEvent):
    """Event emitted when a span ends."""

    name: str
    trace_id: str
    span_id: str
    status: str
    duration_ms: float | None = None
    error: str | None = None


@dataclass(kw_only=True)
class AlertEvent(HookEvent):
    """Event emitted when an alert is raised or resolved."""

    name: str
    alert_id: str
    severity: str
    category: str
    message: str
    resolved: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class HealthCheckEvent(HookEvent):
    """Event emitted with each health check result."""

    name: str
    status: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(kw_only=True)
class SafetyCheckEvent(HookEvent):
    """Event emitted after a guarded write passes or fails its safety gate."""

    name: str
    is_safe: bool
    environment: str
    blocked_actions: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)


@dataclass(kw_only=True)
class QualityResultEvent(HookEvent):
    """Event emitted with data quality analysis outcomes."""

    name: str
    overall_score: int
    anomalies: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)
