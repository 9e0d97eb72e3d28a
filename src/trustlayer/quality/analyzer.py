"""
Data quality analysis over collections of records.

Scores five dimensions (completeness, uniqueness, consistency, validity,
timeliness), folds them into a weighted 0-100 score and reports anomalies for
the structural dimensions.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel

from trustlayer.contracts.schema import coerce_schema
from trustlayer.results import Severity, utc_now

QUALITY_THRESHOLDS = {
    "MIN_COMPLETENESS": 0.95,
    "MAX_DUPLICATES": 0.05,
    "MIN_UNIQUE_RATIO": 0.90,
    "MIN_CONSISTENCY": 0.90,
    "MAX_ANOMALY_SCORE": 0.3,
    "MIN_DATA_FRESHNESS_HOURS": 24,
}

# Fixed weights; the score is reproducible across callers by construction.
SCORE_WEIGHTS = {
    "completeness": 0.30,
    "uniqueness": 0.25,
    "consistency": 0.20,
    "validity": 0.15,
    "timeliness": 0.10,
}

TIMESTAMP_FIELDS = ("updatedAt", "createdAt", "timestamp", "date")


class AnomalyType(str, Enum):
    STATISTICAL = "statistical"
    SEMANTIC = "semantic"
    STRUCTURAL = "structural"
    TEMPORAL = "temporal"


@dataclass(frozen=True)
class Anomaly:
    type: AnomalyType
    severity: Severity
    description: str
    field: Optional[str] = None
    value: Any = None
    expected_value: Any = None


@dataclass
class DataQualityMetrics:
    completeness: float
    uniqueness: float
    consistency: float
    validity: float
    timeliness: float
    overall_score: int
    anomalies_detected: list[Anomaly] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload = dataclasses.asdict(self)
        payload["anomalies_detected"] = [
            {**dataclasses.asdict(a), "type": a.type.value, "severity": a.severity.value}
            for a in self.anomalies_detected
        ]
        return payload


def as_record(item: Any) -> Optional[Mapping[str, Any]]:
    """Return a mapping view of a record, or None for scalars."""

    if isinstance(item, Mapping):
        return item
    if isinstance(item, BaseModel):
        return item.model_dump(by_alias=True)
    if dataclasses.is_dataclass(item) and not isinstance(item, type):
        return dataclasses.asdict(item)
    return None


def _is_populated(value: Any) -> bool:
    return value is not None and value != ""


def _type_name(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return "number"
    return type(value).__name__


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse datetimes, ISO-8601 strings and epoch milliseconds; None if unparseable."""

    parsed: Optional[datetime] = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DataQualityAnalyzer:
    """Computes DataQualityMetrics for a homogeneous collection of records."""

    def __init__(self, clock=utc_now) -> None:
        self._clock = clock

    def analyze(
        self,
        dataset: Iterable[Any],
        schema: Any = None,
        *,
        id_field: str = "id",
        freshness_hours: float = QUALITY_THRESHOLDS["MIN_DATA_FRESHNESS_HOURS"],
    ) -> DataQualityMetrics:
        """
        Analyze a dataset.

        Args:
            dataset: Records (mappings, pydantic models or dataclasses)
            schema: Optional structural schema used for the validity dimension
            id_field: Identifier field used for uniqueness
            freshness_hours: Window within which a record counts as timely

        Returns:
            DataQualityMetrics with the five dimensions, score and anomalies
        """
        items = list(dataset)
        anomalies: list[Anomaly] = []

        completeness = self.check_completeness(items)
        if completeness < QUALITY_THRESHOLDS["MIN_COMPLETENESS"]:
            anomalies.append(
                Anomaly(
                    type=AnomalyType.STRUCTURAL,
                    severity=Severity.HIGH,
                    description=(
                        f"Data completeness ({completeness * 100:.1f}%) below threshold "
                        f"({QUALITY_THRESHOLDS['MIN_COMPLETENESS'] * 100:.1f}%)"
                    ),
                    value=completeness,
                    expected_value=QUALITY_THRESHOLDS["MIN_COMPLETENESS"],
                )
            )

        uniqueness = self.check_uniqueness(items, id_field)
        if uniqueness < QUALITY_THRESHOLDS["MIN_UNIQUE_RATIO"]:
            anomalies.append(
                Anomaly(
                    type=AnomalyType.STRUCTURAL,
                    severity=Severity.HIGH,
                    description=f"High duplicate rate detected: {(1 - uniqueness) * 100:.1f}%",
                    field=id_field,
                    value=uniqueness,
                    expected_value=QUALITY_THRESHOLDS["MIN_UNIQUE_RATIO"],
                )
            )

        consistency = self.check_consistency(items)
        if consistency < QUALITY_THRESHOLDS["MIN_CONSISTENCY"]:
            anomalies.append(
                Anomaly(
                    type=AnomalyType.SEMANTIC,
                    severity=Severity.MEDIUM,
                    description=f"Data consistency score: {consistency * 100:.1f}%",
                    value=consistency,
                    expected_value=QUALITY_THRESHOLDS["MIN_CONSISTENCY"],
                )
            )

        # Validity and timeliness only feed the score; they never raise anomalies.
        validity = self.check_validity(items, schema) if schema is not None else 1.0
        timeliness = self.check_timeliness(items, freshness_hours)

        return DataQualityMetrics(
            completeness=completeness,
            uniqueness=uniqueness,
            consistency=consistency,
            validity=validity,
            timeliness=timeliness,
            overall_score=self.overall_score(
                completeness=completeness,
                uniqueness=uniqueness,
                consistency=consistency,
                validity=validity,
                timeliness=timeliness,
            ),
            anomalies_detected=anomalies,
        )

    @staticmethod
    def overall_score(**dimensions: float) -> int:
        raw = 100 * sum(SCORE_WEIGHTS[name] * dimensions[name] for name in SCORE_WEIGHTS)
        # Halves round up, not to even; float noise is snapped off first.
        return math.floor(round(raw, 9) + 0.5)

    def check_completeness(self, items: list[Any]) -> float:
        total = 0
        populated = 0
        for item in items:
            record = as_record(item)
            if record is None:
                continue
            values = list(record.values())
            total += len(values)
            populated += sum(1 for value in values if _is_populated(value))
        return populated / total if total else 1.0

    def check_uniqueness(self, items: list[Any], id_field: str) -> float:
        if not items:
            return 1.0
        ids = []
        for item in items:
            record = as_record(item)
            ids.append(str(record.get(id_field)) if record is not None else str(item))
        return len(set(ids)) / len(ids)

    def check_consistency(self, items: list[Any]) -> float:
        field_types: dict[str, set[str]] = {}
        for item in items:
            record = as_record(item)
            if record is None:
                continue
            for key, value in record.items():
                field_types.setdefault(key, set()).add(_type_name(value))
        if not field_types:
            return 1.0
        consistent = sum(1 for types in field_types.values() if len(types) == 1)
        return consistent / len(field_types)

    def check_validity(self, items: list[Any], schema: Any) -> float:
        if not items:
            return 1.0
        validator = coerce_schema(schema)
        valid = sum(1 for item in items if validator.validate(item).ok)
        return valid / len(items)

    def check_timeliness(self, items: list[Any], freshness_hours: float) -> float:
        now = self._clock()
        window = timedelta(hours=freshness_hours)
        total = 0
        recent = 0
        for item in items:
            record = as_record(item)
            if record is None:
                continue
            for name in TIMESTAMP_FIELDS:
                raw = record.get(name)
                if not raw:
                    continue
                total += 1
                stamp = parse_timestamp(raw)
                if stamp is not None and now - stamp < window:
                    recent += 1
                break
        return recent / total if total else 1.0
