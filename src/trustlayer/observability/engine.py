"""
Observability engine.

Composes the metric store, tracer, alert manager and health monitor behind one
re-entrant lock, and owns the two background sweeps (retention cleanup and
health checks).

Recording a metric has a side effect beyond storage: threshold rules may raise
alerts (see ``trustlayer.observability.alerts.evaluate_thresholds``). Ending a
span records ``span.duration``, so slow spans raise latency alerts too.

Every mutation is written to a bounded JSON snapshot when ``snapshot_path`` is
configured and announced on the engine's HookBus.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Callable, Iterator, Optional

from trustlayer.config import ObservabilityConfig
from trustlayer.exceptions import TrustError, TrustErrorCode
from trustlayer.hooks import (
    ALERT_CREATED_EVENT,
    ALERT_RESOLVED_EVENT,
    HEALTH_CHECK_EVENT,
    LOG_EVENT,
    METRIC_EVENT,
    SPAN_END_EVENT,
    AlertEvent,
    HealthCheckEvent,
    HookBus,
    SpanEvent,
    TelemetryEvent,
)
from trustlayer.logging import get_logger
from trustlayer.observability.alerts import AlertManager, evaluate_thresholds
from trustlayer.observability.health import (
    DURABLE_STORAGE_CHECK,
    EPHEMERAL_STORAGE_CHECK,
    ERROR_RATE_CHECK,
    HealthCheckFn,
    HealthMonitor,
    durable_storage_check,
    ephemeral_storage_check,
    error_rate_result,
)
from trustlayer.observability.metrics import MetricStats, MetricStore
from trustlayer.observability.models import (
    Alert,
    AlertCategory,
    AlertSeverity,
    HealthCheck,
    HealthCheckResult,
    LogEntry,
    LogLevel,
    Metric,
    Span,
)
from trustlayer.observability.scheduler import PeriodicJob
from trustlayer.observability.storage import SnapshotStore
from trustlayer.observability.tracing import Tracer, inert_span
from trustlayer.results import utc_now

logger = get_logger(__name__)
telemetry_logger = get_logger("trustlayer.observability")

_STRUCTLOG_METHODS = {
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARN: "warning",
    LogLevel.ERROR: "error",
}

ERROR_RATE_WINDOW = timedelta(hours=1)


class ObservabilityEngine:
    """In-process metrics, logs, traces, alerts and health checks."""

    def __init__(
        self,
        config: Optional[ObservabilityConfig] = None,
        *,
        bus: Optional[HookBus] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config or ObservabilityConfig()
        self.bus = bus if bus is not None else HookBus()
        self._clock = clock
        self._lock = threading.RLock()

        self._metrics = MetricStore()
        self._logs: list[LogEntry] = []
        self._tracer = Tracer()
        self._alerts = AlertManager()
        self._health = HealthMonitor()
        self._closed = False

        self._store = SnapshotStore(self.config.snapshot_path) if self.config.snapshot_path else None
        self._load_snapshot()

        self._cleanup_job = PeriodicJob("cleanup", self.config.cleanup_interval_seconds, self.cleanup)
        self._health_job = PeriodicJob(
            "health-checks", self.config.health_check_interval_seconds, self.run_health_checks
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the retention sweep and, if enabled, the health sweep."""
        if self._closed:
            raise TrustError(
                "Observability engine has been shut down",
                code=TrustErrorCode.ENGINE_SHUT_DOWN,
                suggestions=["Create a new engine instead of restarting a closed one"],
            )
        self._cleanup_job.start()
        if self.config.enable_health_checks:
            self._health_job.start()
        logger.info("observability_started", snapshot_path=str(self.config.snapshot_path))

    def shutdown(self) -> None:
        """Stop both sweeps (a running sweep completes first) and flush the snapshot."""
        self._cleanup_job.stop()
        self._health_job.stop()
        with self._lock:
            self._persist()
            self._closed = True
        logger.info("observability_stopped")

    @property
    def running(self) -> bool:
        return self._cleanup_job.running or self._health_job.running

    def reset(self) -> None:
        """Clear all telemetry and delete the snapshot."""
        with self._lock:
            self._metrics.clear()
            self._logs.clear()
            self._tracer.clear()
            self._alerts.clear()
            self._health.clear()
            if self._store is not None:
                self._store.delete()

    def get_config(self) -> ObservabilityConfig:
        return self.config.model_copy(deep=True)

    def update_config(self, **updates: Any) -> ObservabilityConfig:
        with self._lock:
            self.config = ObservabilityConfig.model_validate({**self.config.model_dump(), **updates})
        return self.get_config()

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def record_metric(
        self,
        name: str,
        value: float,
        tags: Optional[dict[str, str]] = None,
        unit: Optional[str] = None,
    ) -> Optional[Metric]:
        """Record a metric and raise any alerts its thresholds call for."""
        if not self.config.enable_metrics:
            return None

        with self._lock:
            metric = Metric(
                name=name,
                value=value,
                timestamp=self._clock(),
                tags=dict(tags or {}),
                unit=unit,
            )
            self._metrics.append(metric)

            for spec in evaluate_thresholds(metric, self.config.alert_thresholds):
                self.create_alert(spec.severity, spec.title, spec.message, spec.category, spec.metadata)

            self._persist()
            self.bus.emit(
                TelemetryEvent(
                    event_type=METRIC_EVENT,
                    name=name,
                    value=value,
                    unit=unit,
                    tags=dict(metric.tags),
                    timestamp=metric.timestamp,
                )
            )
        return metric

    def increment(self, name: str, tags: Optional[dict[str, str]] = None) -> Optional[Metric]:
        with self._lock:
            return self.record_metric(name, self._metrics.latest_value(name, tags) + 1, tags)

    def decrement(self, name: str, tags: Optional[dict[str, str]] = None) -> Optional[Metric]:
        with self._lock:
            return self.record_metric(name, self._metrics.latest_value(name, tags) - 1, tags)

    def timing(
        self, name: str, duration_ms: float, tags: Optional[dict[str, str]] = None
    ) -> Optional[Metric]:
        return self.record_metric(name, duration_ms, tags, "ms")

    def get_metrics(self, name: Optional[str] = None, since: Optional[datetime] = None) -> list[Metric]:
        with self._lock:
            return self._metrics.query(name, since)

    def get_metric_stats(self, name: str) -> Optional[MetricStats]:
        with self._lock:
            return self._metrics.stats(name)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def debug(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self.log(LogLevel.DEBUG, message, context)

    def info(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self.log(LogLevel.INFO, message, context)

    def warn(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self.log(LogLevel.WARN, message, context)

    def error(
        self,
        message: str,
        err: Optional[BaseException] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        """Log at error level and count it in ``error.count``."""
        merged = dict(context or {})
        if err is not None:
            merged["error"] = str(err)
        self.log(LogLevel.ERROR, message, merged)
        self.record_metric("error.count", 1, {"level": "error"})

    def log(self, level: LogLevel, message: str, context: Optional[dict[str, Any]] = None) -> None:
        if not self.config.enable_logging:
            return

        level = LogLevel(level)
        with self._lock:
            entry = LogEntry(
                level=level,
                message=message,
                timestamp=self._clock(),
                context=dict(context or {}),
            )
            self._logs.append(entry)
            getattr(telemetry_logger, _STRUCTLOG_METHODS[level])(message, context=entry.context)
            self._persist()
            self.bus.emit(
                TelemetryEvent(
                    event_type=LOG_EVENT,
                    name=message,
                    level=level.value,
                    payload=dict(entry.context),
                    timestamp=entry.timestamp,
                )
            )

    def get_logs(self, level: Optional[LogLevel] = None, since: Optional[datetime] = None) -> list[LogEntry]:
        with self._lock:
            wanted = LogLevel(level) if level is not None else None
            return [
                entry
                for entry in self._logs
                if (wanted is None or entry.level is wanted) and (since is None or entry.timestamp >= since)
            ]

    # ------------------------------------------------------------------
    # Tracing
    # ------------------------------------------------------------------

    def start_span(
        self,
        operation: str,
        parent_span_id: Optional[str] = None,
        tags: Optional[dict[str, str]] = None,
    ) -> Span:
        if not self.config.enable_tracing:
            return inert_span(operation, self._clock(), tags)
        with self._lock:
            return self._tracer.start(operation, self._clock(), parent_span_id, tags)

    def end_span(self, span: Span, error: Optional[BaseException] = None) -> Span:
        """End a span once; inert or already-ended spans are left untouched."""
        if not self.config.enable_tracing or not span.recording or span.ended:
            return span

        with self._lock:
            self._tracer.finish(span, self._clock(), error)
            if error is not None:
                self.record_metric("span.errors", 1, {"operation": span.operation})
            else:
                self.record_metric("span.duration", span.duration, {"operation": span.operation}, "ms")
            self._persist()
            self.bus.emit(
                SpanEvent(
                    event_type=SPAN_END_EVENT,
                    name=span.operation,
                    trace_id=span.trace_id,
                    span_id=span.span_id,
                    status=span.status.value,
                    duration_ms=span.duration,
                    error=span.error,
                    tags=dict(span.tags),
                )
            )
        return span

    @contextmanager
    def span(
        self,
        operation: str,
        parent_span_id: Optional[str] = None,
        tags: Optional[dict[str, str]] = None,
    ) -> Iterator[Span]:
        """Context manager form of start_span/end_span; exceptions end the span with an error."""
        current = self.start_span(operation, parent_span_id, tags)
        try:
            yield current
        except BaseException as exc:
            self.end_span(current, exc)
            raise
        self.end_span(current)

    def get_trace(self, trace_id: str) -> Optional[list[Span]]:
        with self._lock:
            return self._tracer.get_trace(trace_id)

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    def create_alert(
        self,
        severity: AlertSeverity,
        title: str,
        message: str,
        category: AlertCategory,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Alert:
        """Create an alert. With alerting disabled the alert is returned but not kept."""
        if not self.config.enable_alerts:
            return self._alerts.add(severity, title, message, category, self._clock(), metadata, store=False)

        with self._lock:
            alert = self._alerts.add(severity, title, message, category, self._clock(), metadata)
            self.record_metric(
                "alert.count", 1, {"severity": alert.severity.value, "category": alert.category.value}
            )
            level = (
                LogLevel.ERROR
                if alert.severity in (AlertSeverity.CRITICAL, AlertSeverity.ERROR)
                else LogLevel.WARN
            )
            self.log(level, f"[ALERT] {title}: {message}", alert.metadata)
            self._persist()
            self.bus.emit(_alert_event(ALERT_CREATED_EVENT, alert))
        return alert

    def resolve_alert(self, alert_id: str) -> Optional[Alert]:
        """Resolve an alert; resolving twice keeps the first ``resolved_at``."""
        with self._lock:
            changed = self._alerts.resolve(alert_id, self._clock())
            if changed is not None:
                self._persist()
                self.bus.emit(_alert_event(ALERT_RESOLVED_EVENT, changed))
            return self._alerts.get(alert_id)

    def get_active_alerts(self) -> list[Alert]:
        with self._lock:
            return self._alerts.get_active_alerts()

    def get_alerts_by_category(self, category: AlertCategory) -> list[Alert]:
        with self._lock:
            return self._alerts.get_alerts_by_category(category)

    def get_alert_summary(self) -> dict[str, int]:
        with self._lock:
            return self._alerts.get_summary()

    # ------------------------------------------------------------------
    # Health checks
    # ------------------------------------------------------------------

    def register_health_check(self, name: str, check_fn: HealthCheckFn) -> Optional[HealthCheck]:
        """Register a check, run it now and keep the timestamped result."""
        if not self.config.enable_health_checks:
            return None
        with self._lock:
            result = self._health.register(name, check_fn, self._clock())
            self._after_health_check(result)
        return result

    def run_health_checks(self) -> list[HealthCheck]:
        """Run the built-in checks and every registered check."""
        if not self.config.enable_health_checks:
            return []
        with self._lock:
            self._ensure_builtin_checks()
            results = []
            for name in self._health.names():
                result = self._health.run(name, self._clock())
                self._after_health_check(result)
                results.append(result)
            return results

    def get_health_checks(self) -> list[HealthCheck]:
        with self._lock:
            return self._health.results()

    def is_system_healthy(self) -> bool:
        with self._lock:
            return self._health.is_healthy()

    def _ensure_builtin_checks(self) -> None:
        registered = set(self._health.names())
        builtin = {
            DURABLE_STORAGE_CHECK: durable_storage_check(self.config.snapshot_path),
            EPHEMERAL_STORAGE_CHECK: ephemeral_storage_check,
            ERROR_RATE_CHECK: self._error_rate_check,
        }
        for name, check_fn in builtin.items():
            if name not in registered:
                self._health.register(name, check_fn, self._clock())

    def _error_rate_check(self) -> HealthCheckResult:
        with self._lock:
            cutoff = self._clock() - ERROR_RATE_WINDOW
            errors = sum(
                1 for entry in self._logs if entry.level is LogLevel.ERROR and entry.timestamp > cutoff
            )
            return error_rate_result(errors, len(self._logs), self.config.alert_thresholds.error_rate)

    def _after_health_check(self, result: HealthCheck) -> None:
        self.record_metric("health.check", 1 if result.healthy else 0, {"name": result.name})
        self._persist()
        self.bus.emit(
            HealthCheckEvent(
                event_type=HEALTH_CHECK_EVENT,
                name=result.name,
                status=result.status.value,
                message=result.message,
                details=dict(result.details),
                timestamp=result.timestamp,
            )
        )

    # ------------------------------------------------------------------
    # Retention and persistence
    # ------------------------------------------------------------------

    def cleanup(self) -> dict[str, int]:
        """Purge records that are older than their retention windows."""
        with self._lock:
            now = self._clock()
            metric_cutoff = now - timedelta(days=self.config.metric_retention_days)
            log_cutoff = now - timedelta(days=self.config.log_retention_days)

            logs_before = len(self._logs)
            self._logs = [entry for entry in self._logs if entry.timestamp > log_cutoff]
            removed = {
                "metrics": self._metrics.purge_before(metric_cutoff),
                "logs": logs_before - len(self._logs),
                "alerts": self._alerts.purge_before(metric_cutoff),
                "traces": self._tracer.purge_before(metric_cutoff),
            }
            self._persist()
        logger.debug("observability_cleanup", **removed)
        return removed

    def snapshot(self) -> dict[str, Any]:
        """Summary of current state, in the shape the CLI status command prints."""
        with self._lock:
            return {
                "healthy": self._health.is_healthy(),
                "metrics": len(self._metrics),
                "logs": len(self._logs),
                "traces": len(self._tracer),
                "active_alerts": [a.to_dict() for a in self._alerts.get_active_alerts()],
                "health_checks": [check.to_dict() for check in self._health.results()],
            }

    def _persist(self) -> None:
        if self._store is None:
            return
        self._store.save(self._metrics.query(), self._logs, self._alerts.all())

    def _load_snapshot(self) -> None:
        if self._store is None:
            return
        snapshot = self._store.load()
        self._metrics.load(snapshot.metrics)
        self._logs = list(snapshot.logs)
        self._alerts.load(snapshot.alerts)
        logger.debug(
            "snapshot_loaded",
            metrics=len(snapshot.metrics),
            logs=len(snapshot.logs),
            alerts=len(snapshot.alerts),
        )


def _alert_event(event_type: str, alert: Alert) -> AlertEvent:
    return AlertEvent(
        event_type=event_type,
        name=alert.title,
        alert_id=alert.id,
        severity=alert.severity.value,
        category=alert.category.value,
        message=alert.message,
        resolved=alert.resolved,
        metadata=dict(alert.metadata),
    )
