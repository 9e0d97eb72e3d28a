"""Bounded JSON snapshot of metrics, logs and alerts.

Persistence is best effort: read and write failures are logged and never
propagate into the instrumented write path.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

from trustlayer.logging import get_logger
from trustlayer.observability.models import Alert, LogEntry, Metric

logger = get_logger(__name__)

SNAPSHOT_METRIC_LIMIT = 1000
SNAPSHOT_LOG_LIMIT = 500
SNAPSHOT_ALERT_LIMIT = 100


@dataclass
class Snapshot:
    metrics: list[Metric] = field(default_factory=list)
    logs: list[LogEntry] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)


def _default_path() -> Path:
    """Return the default snapshot path."""

    env_path = os.environ.get("TRUST_SNAPSHOT_PATH")
    if env_path:
        return Path(env_path)
    return Path.cwd() / ".trustlayer" / "observability.json"


def get_snapshot_path(path: Optional[Path] = None) -> Path:
    """Resolve the snapshot path."""

    return path or _default_path()


class SnapshotStore:
    def __init__(self, path: Path) -> None:
        """Create a store that overwrites a single JSON snapshot file."""

        self.path = Path(path)

    def save(
        self,
        metrics: Iterable[Metric],
        logs: Iterable[LogEntry],
        alerts: Iterable[Alert],
    ) -> bool:
        """Write the latest records, bounded per collection. Returns False on failure."""

        payload = {
            "metrics": [m.to_dict() for m in list(metrics)[-SNAPSHOT_METRIC_LIMIT:]],
            "logs": [entry.to_dict() for entry in list(logs)[-SNAPSHOT_LOG_LIMIT:]],
            "alerts": [a.to_dict() for a in list(alerts)[-SNAPSHOT_ALERT_LIMIT:]],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(f"{self.path.name}.tmp")
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, default=str)
            tmp_path.replace(self.path)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("snapshot_save_failed", path=str(self.path), error=str(exc))
            return False
        return True

    def load(self) -> Snapshot:
        """Read the snapshot; a missing or unreadable file yields an empty one."""

        if not self.path.exists():
            return Snapshot()
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
            return _parse_snapshot(payload)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.error("snapshot_load_failed", path=str(self.path), error=str(exc))
            return Snapshot()

    def delete(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("snapshot_delete_failed", path=str(self.path), error=str(exc))


def _parse_snapshot(payload: Any) -> Snapshot:
    if not isinstance(payload, dict):
        raise ValueError("snapshot must be a JSON object")
    return Snapshot(
        metrics=[Metric.from_dict(item) for item in payload.get("metrics") or []],
        logs=[LogEntry.from_dict(item) for item in payload.get("logs") or []],
        alerts=[Alert.from_dict(item) for item in payload.get("alerts") or []],
    )


def read_snapshot(path: Optional[Path] = None) -> Snapshot:
    """Load a snapshot without constructing an engine (used by the CLI)."""

    return SnapshotStore(get_snapshot_path(path)).load()
