"""Telemetry record types: metrics, log entries, spans, alerts and health checks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class SpanStatus(str, Enum):
    OK = "ok"
    ERROR = "error"


class AlertSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AlertCategory(str, Enum):
    DATA_QUALITY = "data_quality"
    PERFORMANCE = "performance"
    SECURITY = "security"
    SCHEMA_VIOLATION = "schema_violation"
    PLACEHOLDER = "placeholder"


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class Metric:
    name: str
    value: float
    timestamp: datetime
    tags: dict[str, str] = field(default_factory=dict)
    unit: Optional[str] = None

    def matches_tags(self, tags: Optional[dict[str, str]]) -> bool:
        """True when every requested tag is present with the same value."""

        if not tags:
            return True
        return all(self.tags.get(key) == value for key, value in tags.items())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "timestamp": _ts(self.timestamp),
            "tags": dict(self.tags),
            "unit": self.unit,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Metric":
        return cls(
            name=data["name"],
            value=data["value"],
            timestamp=_parse_ts(data["timestamp"]),
            tags=dict(data.get("tags") or {}),
            unit=data.get("unit"),
        )


@dataclass(frozen=True)
class LogEntry:
    level: LogLevel
    message: str
    timestamp: datetime
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level.value,
            "message": self.message,
            "timestamp": _ts(self.timestamp),
            "context": dict(self.context),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEntry":
        return cls(
            level=LogLevel(data["level"]),
            message=data["message"],
            timestamp=_parse_ts(data["timestamp"]),
            context=dict(data.get("context") or {}),
        )


@dataclass
class Span:
    """A timed unit of work. Only the end fields are set after creation."""

    trace_id: str
    span_id: str
    operation: str
    start_time: datetime
    parent_span_id: Optional[str] = None
    tags: dict[str, str] = field(default_factory=dict)
    status: SpanStatus = SpanStatus.OK
    end_time: Optional[datetime] = None
    duration: Optional[float] = None
    error: Optional[str] = None

    @property
    def recording(self) -> bool:
        """False for the inert spans handed out while tracing is disabled."""

        return bool(self.span_id)

    @property
    def ended(self) -> bool:
        return self.end_time is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "trace_id": self.trace_id,
            "span_id": self.span_id,
            "parent_span_id": self.parent_span_id,
            "operation": self.operation,
            "start_time": _ts(self.start_time),
            "end_time": _ts(self.end_time),
            "duration": self.duration,
            "tags": dict(self.tags),
            "status": self.status.value,
            "error": self.error,
        }


@dataclass
class Alert:
    """An alert; only ``resolved`` and ``resolved_at`` change, and only once."""

    id: str
    severity: AlertSeverity
    title: str
    message: str
    timestamp: datetime
    category: AlertCategory
    metadata: dict[str, Any] = field(default_factory=dict)
    resolved: bool = False
    resolved_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "timestamp": _ts(self.timestamp),
            "category": self.category.value,
            "metadata": dict(self.metadata),
            "resolved": self.resolved,
            "resolved_at": _ts(self.resolved_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        return cls(
            id=data["id"],
            severity=AlertSeverity(data["severity"]),
            title=data["title"],
            message=data["message"],
            timestamp=_parse_ts(data["timestamp"]),
            category=AlertCategory(data["category"]),
            metadata=dict(data.get("metadata") or {}),
            resolved=bool(data.get("resolved", False)),
            resolved_at=_parse_ts(data.get("resolved_at")),
        )


@dataclass(frozen=True)
class HealthCheckResult:
    """What a health check function returns; the monitor adds the timestamp."""

    status: HealthStatus
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class HealthCheck:
    name: str
    status: HealthStatus
    message: str
    timestamp: datetime
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return self.status is HealthStatus.HEALTHY

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "timestamp": _ts(self.timestamp),
            "details": dict(self.details),
        }
