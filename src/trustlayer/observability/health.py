"""Health check registry and the built-in storage and error-rate checks."""

from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from trustlayer.logging import get_logger
from trustlayer.observability.models import HealthCheck, HealthCheckResult, HealthStatus

logger = get_logger(__name__)

HealthCheckFn = Callable[[], Union[HealthCheckResult, Mapping[str, Any]]]

DURABLE_STORAGE_CHECK = "durable_storage"
EPHEMERAL_STORAGE_CHECK = "ephemeral_storage"
ERROR_RATE_CHECK = "error_rate"

_PROBE_NAME = ".trustlayer_health_check"


def _coerce_result(result: Union[HealthCheckResult, Mapping[str, Any]]) -> HealthCheckResult:
    if isinstance(result, HealthCheckResult):
        return result
    return HealthCheckResult(
        status=HealthStatus(result["status"]),
        message=str(result.get("message", "")),
        details=dict(result.get("details") or {}),
    )


def run_check(name: str, check_fn: HealthCheckFn, now: datetime) -> HealthCheck:
    """Run one check; an exception becomes an unhealthy result."""

    try:
        result = _coerce_result(check_fn())
    except Exception as exc:
        logger.warning("health_check_raised", check=name, error=str(exc))
        result = HealthCheckResult(
            status=HealthStatus.UNHEALTHY,
            message=f"Health check raised {type(exc).__name__}: {exc}",
        )
    return HealthCheck(
        name=name,
        status=result.status,
        message=result.message,
        timestamp=now,
        details=dict(result.details),
    )


def durable_storage_check(snapshot_path: Optional[Path]) -> HealthCheckFn:
    """Check that the snapshot directory accepts writes."""

    def check() -> HealthCheckResult:
        if snapshot_path is None:
            return HealthCheckResult(HealthStatus.HEALTHY, "Persistence disabled")
        directory = Path(snapshot_path).parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            probe = directory / _PROBE_NAME
            probe.write_text("ok", encoding="utf-8")
            probe.unlink()
        except OSError as exc:
            return HealthCheckResult(
                HealthStatus.UNHEALTHY,
                f"Durable storage error: {exc}",
                {"path": str(directory)},
            )
        return HealthCheckResult(
            HealthStatus.HEALTHY, "Durable storage available", {"path": str(directory)}
        )

    return check


def ephemeral_storage_check() -> HealthCheckResult:
    """Check that the temporary directory is writable."""

    try:
        with tempfile.TemporaryFile() as handle:
            handle.write(b"ok")
            handle.seek(0)
            handle.read()
    except OSError as exc:
        return HealthCheckResult(HealthStatus.UNHEALTHY, f"Ephemeral storage error: {exc}")
    return HealthCheckResult(
        HealthStatus.HEALTHY, "Ephemeral storage functional", {"path": tempfile.gettempdir()}
    )


def error_rate_result(error_count: int, total_logs: int, threshold: float) -> HealthCheckResult:
    """Degraded when recent errors make up at least ``threshold`` of all retained logs."""

    error_rate = error_count / max(total_logs, 1)
    return HealthCheckResult(
        status=HealthStatus.HEALTHY if error_rate < threshold else HealthStatus.DEGRADED,
        message=f"Error rate: {error_rate * 100:.2f}% ({error_count} errors)",
        details={"error_rate": error_rate, "error_count": error_count},
    )


class HealthMonitor:
    """Latest result per health check, plus the functions that produce them."""

    def __init__(self) -> None:
        self._checks: dict[str, HealthCheckFn] = {}
        self._results: dict[str, HealthCheck] = {}

    def register(self, name: str, check_fn: HealthCheckFn, now: datetime) -> HealthCheck:
        self._checks[name] = check_fn
        return self.run(name, now)

    def run(self, name: str, now: datetime) -> HealthCheck:
        result = run_check(name, self._checks[name], now)
        self._results[name] = result
        return result

    def names(self) -> list[str]:
        return list(self._checks)

    def results(self) -> list[HealthCheck]:
        return list(self._results.values())

    def is_healthy(self) -> bool:
        return all(check.healthy for check in self._results.values())

    def clear(self) -> None:
        self._checks.clear()
        self._results.clear()
