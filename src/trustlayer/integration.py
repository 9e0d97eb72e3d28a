"""
Trust layer context object.

``TrustLayer`` owns one ProductionSafety and one ObservabilityEngine and is
passed to every host write path. ``guarded_write`` brackets a host write: span,
safety gate, optional contract validation, commit, metrics.

Example:
    >>> with TrustLayer() as trust:
    ...     trust.register_default_contracts()
    ...     outcome = trust.guarded_write("addTask", task, store.save, contract_key="task")
    ...     if not outcome.committed:
    ...         show(outcome.errors)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Optional

from trustlayer.config import TrustConfig, load_config
from trustlayer.exceptions import SafetyGateError
from trustlayer.contracts.builtin import default_contracts
from trustlayer.contracts.registry import QualityCheckOutcome
from trustlayer.contracts.schema import DataContract
from trustlayer.hooks import (
    QUALITY_RESULT_EVENT,
    SAFETY_CHECK_EVENT,
    HookBus,
    QualityResultEvent,
    SafetyCheckEvent,
)
from trustlayer.logging import get_logger, setup_logging
from trustlayer.observability.engine import ObservabilityEngine
from trustlayer.observability.health import HealthCheckFn
from trustlayer.observability.metrics import MetricStats
from trustlayer.observability.models import (
    Alert,
    AlertCategory,
    AlertSeverity,
    HealthCheck,
    LogEntry,
    LogLevel,
    Metric,
    Span,
)
from trustlayer.quality.analyzer import DataQualityMetrics
from trustlayer.results import ValidationError, ValidationResult, utc_now
from trustlayer.safety.orchestrator import ProductionSafety, SafetyCheckResult

logger = get_logger(__name__)


@dataclass
class WriteOutcome:
    """What happened to one guarded write."""

    committed: bool
    result: Any = None
    safety: Optional[SafetyCheckResult] = None
    validation: Optional[ValidationResult] = None
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AlertBanner:
    """Host-facing view of an active alert."""

    id: str
    level: str
    title: str
    message: str
    dismissible: bool


def _banner_level(severity: AlertSeverity) -> str:
    if severity in (AlertSeverity.CRITICAL, AlertSeverity.ERROR):
        return "error"
    if severity is AlertSeverity.WARNING:
        return "warning"
    return "info"


class TrustLayer:
    """Explicit context object for contracts, safety gating and telemetry."""

    def __init__(
        self,
        config: Optional[TrustConfig] = None,
        *,
        bus: Optional[HookBus] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config or TrustConfig()
        self.bus = bus if bus is not None else HookBus()
        self.safety = ProductionSafety(self.config.safety)
        self.observability = ObservabilityEngine(self.config.observability, bus=self.bus, clock=clock)

    @classmethod
    def from_project(cls, project_root: Optional[Path] = None, *, configure_logging: bool = True) -> "TrustLayer":
        """Build a layer from trust.yaml and TRUST_* overrides."""
        config = load_config(project_root)
        if configure_logging:
            setup_logging(config.logging)
        return cls(config)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> "TrustLayer":
        self.observability.start()
        return self

    def shutdown(self) -> None:
        self.observability.shutdown()

    def __enter__(self) -> "TrustLayer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Contracts and safety
    # ------------------------------------------------------------------

    def register_contract(self, key: str, contract: DataContract) -> DataContract:
        return self.safety.register_contract(key, contract)

    def register_default_contracts(self) -> list[str]:
        """Register the built-in document, task and settings contracts."""
        keys = []
        for key, contract in default_contracts().items():
            self.register_contract(key, contract)
            keys.append(key)
        return keys

    def validate(self, key: str, data: Any) -> ValidationResult:
        return self.safety.validate(key, data)

    def run_quality_checks(self, key: str, data: Any) -> list[QualityCheckOutcome]:
        return self.safety.run_quality_checks(key, data)

    def detect_placeholders(self, data: Any) -> list[ValidationError]:
        return self.safety.detect_placeholders(data)

    def perform_safety_check(self, operation: str, data: Any = None) -> SafetyCheckResult:
        return self.safety.perform_safety_check(operation, data)

    def analyze_quality(self, dataset: Iterable[Any], schema: Any = None, **kwargs: Any) -> DataQualityMetrics:
        """Analyze a dataset and record its score as ``data_quality.score``."""
        metrics = self.safety.analyze_quality(dataset, schema, **kwargs)
        self.observability.record_metric("data_quality.score", metrics.overall_score)
        self.bus.emit(
            QualityResultEvent(
                event_type=QUALITY_RESULT_EVENT,
                name="data_quality",
                overall_score=metrics.overall_score,
                anomalies=len(metrics.anomalies_detected),
            )
        )
        return metrics

    def guarded_write(
        self,
        operation: str,
        data: Any,
        commit: Callable[[Any], Any],
        contract_key: Optional[str] = None,
    ) -> WriteOutcome:
        """
        Run ``commit(data)`` only if the safety gate (and contract, when given) allows it.

        Args:
            operation: Name of the host operation, e.g. ``"addTask"``
            data: The value about to be persisted
            commit: Host callable that performs the write
            contract_key: Registered contract to validate ``data`` against

        Returns:
            WriteOutcome; exceptions raised by ``commit`` propagate
        """
        obs = self.observability
        span = obs.start_span(operation, tags={"operation": operation})

        safety = self.safety.perform_safety_check(operation, data)
        self._emit_safety(operation, safety)
        if not safety.is_safe:
            if safety.placeholder_errors:
                obs.record_metric(
                    "placeholder.count", len(safety.placeholder_errors), {"operation": operation}
                )
            obs.record_metric("write.blocked", 1, {"operation": operation})
            obs.error(
                f"{operation} blocked by safety check",
                context={
                    "blocked_actions": safety.blocked_actions,
                    "recommendations": safety.recommendations,
                },
            )
            obs.end_span(span, safety.blocked_error())
            return WriteOutcome(committed=False, safety=safety, errors=list(safety.recommendations))

        validation = None
        if contract_key is not None:
            validation = self.safety.validate(contract_key, data)
            if not validation.is_valid:
                messages = validation.error_messages()
                if self.config.safety.enable_strict_validation:
                    obs.record_metric("write.blocked", 1, {"operation": operation})
                    obs.error(
                        f"{operation} schema validation failed",
                        context={"contract": contract_key, "errors": messages},
                    )
                    obs.end_span(
                        span,
                        SafetyGateError(
                            f"{operation} failed contract {contract_key!r}",
                            blocked_actions=[operation],
                            suggestions=messages,
                        ),
                    )
                    return WriteOutcome(
                        committed=False, safety=safety, validation=validation, errors=messages
                    )
                obs.warn(
                    f"{operation} schema validation failed (not enforced)",
                    {"contract": contract_key, "errors": messages},
                )

        try:
            result = commit(data)
        except Exception as exc:
            obs.end_span(span, exc)
            obs.error(f"Failed to {operation}", exc)
            raise

        obs.record_metric("write.committed", 1, {"operation": operation})
        obs.end_span(span)
        return WriteOutcome(committed=True, result=result, safety=safety, validation=validation)

    def _emit_safety(self, operation: str, safety: SafetyCheckResult) -> None:
        self.bus.emit(
            SafetyCheckEvent(
                event_type=SAFETY_CHECK_EVENT,
                name=operation,
                is_safe=safety.is_safe,
                environment=safety.environment,
                blocked_actions=list(safety.blocked_actions),
                recommendations=list(safety.recommendations),
            )
        )

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    def record_metric(
        self, name: str, value: float, tags: Optional[dict[str, str]] = None, unit: Optional[str] = None
    ) -> Optional[Metric]:
        return self.observability.record_metric(name, value, tags, unit)

    def increment(self, name: str, tags: Optional[dict[str, str]] = None) -> Optional[Metric]:
        return self.observability.increment(name, tags)

    def decrement(self, name: str, tags: Optional[dict[str, str]] = None) -> Optional[Metric]:
        return self.observability.decrement(name, tags)

    def timing(self, name: str, duration_ms: float, tags: Optional[dict[str, str]] = None) -> Optional[Metric]:
        return self.observability.timing(name, duration_ms, tags)

    def get_metrics(self, name: Optional[str] = None, since: Optional[datetime] = None) -> list[Metric]:
        return self.observability.get_metrics(name, since)

    def get_metric_stats(self, name: str) -> Optional[MetricStats]:
        return self.observability.get_metric_stats(name)

    def debug(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self.observability.debug(message, context)

    def info(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self.observability.info(message, context)

    def warn(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self.observability.warn(message, context)

    def error(
        self, message: str, err: Optional[BaseException] = None, context: Optional[dict[str, Any]] = None
    ) -> None:
        self.observability.error(message, err, context)

    def get_logs(self, level: Optional[LogLevel] = None, since: Optional[datetime] = None) -> list[LogEntry]:
        return self.observability.get_logs(level, since)

    def start_span(
        self, operation: str, parent_span_id: Optional[str] = None, tags: Optional[dict[str, str]] = None
    ) -> Span:
        return self.observability.start_span(operation, parent_span_id, tags)

    def end_span(self, span: Span, error: Optional[BaseException] = None) -> Span:
        return self.observability.end_span(span, error)

    def get_trace(self, trace_id: str) -> Optional[list[Span]]:
        return self.observability.get_trace(trace_id)

    def create_alert(
        self,
        severity: AlertSeverity,
        title: str,
        message: str,
        category: AlertCategory,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Alert:
        return self.observability.create_alert(severity, title, message, category, metadata)

    def resolve_alert(self, alert_id: str) -> Optional[Alert]:
        return self.observability.resolve_alert(alert_id)

    def get_active_alerts(self) -> list[Alert]:
        return self.observability.get_active_alerts()

    def get_alerts_by_category(self, category: AlertCategory) -> list[Alert]:
        return self.observability.get_alerts_by_category(category)

    def alert_banners(self) -> list[AlertBanner]:
        """Active alerts as banners; placeholder alerts cannot be dismissed while blocking is off."""
        blocking = self.config.safety.block_placeholders
        return [
            AlertBanner(
                id=alert.id,
                level=_banner_level(alert.severity),
                title=alert.title,
                message=alert.message,
                dismissible=alert.category is not AlertCategory.PLACEHOLDER or blocking,
            )
            for alert in self.get_active_alerts()
        ]

    def register_health_check(self, name: str, check_fn: HealthCheckFn) -> Optional[HealthCheck]:
        return self.observability.register_health_check(name, check_fn)

    def get_health_checks(self) -> list[HealthCheck]:
        return self.observability.get_health_checks()

    def is_system_healthy(self) -> bool:
        return self.observability.is_system_healthy()
