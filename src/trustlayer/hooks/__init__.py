"""Subscribe/notify channel for trust layer events."""

from trustlayer.hooks.bus import (
    FailurePolicy,
    HookBus,
    HookFilter,
    HookHandler,
    HookRegistration,
)
from trustlayer.hooks.events import (
    ALERT_CREATED_EVENT,
    ALERT_RESOLVED_EVENT,
    EVENT_VERSION,
    HEALTH_CHECK_EVENT,
    LOG_EVENT,
    METRIC_EVENT,
    QUALITY_RESULT_EVENT,
    SAFETY_CHECK_EVENT,
    SPAN_END_EVENT,
    AlertEvent,
    HealthCheckEvent,
    HookEvent,
    QualityResultEvent,
    SafetyCheckEvent,
    SpanEvent,
    TelemetryEvent,
)

__all__ = [
    "ALERT_CREATED_EVENT",
    "ALERT_RESOLVED_EVENT",
    "EVENT_VERSION",
    "HEALTH_CHECK_EVENT",
    "LOG_EVENT",
    "METRIC_EVENT",
    "QUALITY_RESULT_EVENT",
    "SAFETY_CHECK_EVENT",
    "SPAN_END_EVENT",
    "AlertEvent",
    "FailurePolicy",
    "HealthCheckEvent",
    "HookBus",
    "HookEvent",
    "HookFilter",
    "HookHandler",
    "HookRegistration",
    "QualityResultEvent",
    "SafetyCheckEvent",
    "SpanEvent",
    "TelemetryEvent",
]
