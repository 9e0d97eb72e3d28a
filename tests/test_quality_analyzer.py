"""Tests for DataQualityAnalyzer."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import BaseModel, Field

from trustlayer.quality import AnomalyType, DataQualityAnalyzer
from trustlayer.quality.analyzer import parse_timestamp
from trustlayer.results import Severity

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class Doc(BaseModel):
    title: str = Field(min_length=1)


@pytest.fixture
def analyzer() -> DataQualityAnalyzer:
    return DataQualityAnalyzer(clock=lambda: NOW)


def test_empty_dataset_is_perfect(analyzer) -> None:
    metrics = analyzer.analyze([])

    assert metrics.completeness == 1.0
    assert metrics.uniqueness == 1.0
    assert metrics.consistency == 1.0
    assert metrics.validity == 1.0
    assert metrics.timeliness == 1.0
    assert metrics.overall_score == 100
    assert metrics.anomalies_detected == []


def test_clean_dataset_has_no_anomalies(analyzer) -> None:
    records = [
        {"id": "a", "title": "One", "updatedAt": (NOW - timedelta(hours=1)).isoformat()},
        {"id": "b", "title": "Two", "updatedAt": (NOW - timedelta(hours=2)).isoformat()},
    ]

    metrics = analyzer.analyze(records, Doc)

    assert metrics.overall_score == 100
    assert metrics.anomalies_detected == []


def test_completeness_counts_null_and_empty_fields(analyzer) -> None:
    metrics = analyzer.analyze([{"id": "1", "name": None}, {"id": "2", "name": ""}])

    assert metrics.completeness == 0.5
    anomaly = metrics.anomalies_detected[0]
    assert anomaly.type is AnomalyType.STRUCTURAL
    assert anomaly.severity is Severity.HIGH
    assert anomaly.description == "Data completeness (50.0%) below threshold (95.0%)"


def test_duplicate_ids_lower_uniqueness(analyzer) -> None:
    records = [{"id": "a"}, {"id": "a"}, {"id": "b"}, {"id": "c"}]

    metrics = analyzer.analyze(records)

    assert metrics.uniqueness == 0.75
    assert [(a.type, a.field) for a in metrics.anomalies_detected] == [
        (AnomalyType.STRUCTURAL, "id")
    ]
    assert metrics.anomalies_detected[0].description == "High duplicate rate detected: 25.0%"


def test_custom_id_field(analyzer) -> None:
    records = [{"key": "x", "id": "1"}, {"key": "x", "id": "2"}]

    assert analyzer.analyze(records).uniqueness == 1.0
    assert analyzer.analyze(records, id_field="key").uniqueness == 0.5


def test_mixed_types_lower_consistency(analyzer) -> None:
    metrics = analyzer.analyze([{"id": "1", "n": 1}, {"id": "2", "n": "x"}])

    assert metrics.consistency == 0.5
    assert [a.type for a in metrics.anomalies_detected] == [AnomalyType.SEMANTIC]
    assert metrics.anomalies_detected[0].severity is Severity.MEDIUM


def test_ints_and_floats_are_one_numeric_type(analyzer) -> None:
    metrics = analyzer.analyze([{"id": 1, "price": 1}, {"id": 2, "price": 1.5}])

    assert metrics.consistency == 1.0
    assert metrics.anomalies_detected == []


def test_bools_are_not_numbers(analyzer) -> None:
    metrics = analyzer.analyze([{"id": "1", "flag": True}, {"id": "2", "flag": 0}])

    assert metrics.consistency == 0.5


def test_validity_uses_schema(analyzer) -> None:
    metrics = analyzer.analyze([{"id": "1", "title": "x"}, {"id": "2", "title": None}], Doc)

    assert metrics.validity == 0.5
    assert all(a.type is not AnomalyType.STATISTICAL for a in metrics.anomalies_detected)


def test_timeliness_uses_first_timestamp_field(analyzer) -> None:
    records = [
        {"id": "1", "updatedAt": (NOW - timedelta(hours=1)).isoformat(), "createdAt": "2000-01-01"},
        {"id": "2", "createdAt": (NOW - timedelta(hours=48)).isoformat()},
        {"id": "3", "timestamp": int((NOW - timedelta(minutes=5)).timestamp() * 1000)},
        {"id": "4", "date": "not a date"},
        {"id": "5"},
    ]

    metrics = analyzer.analyze(records)

    assert metrics.timeliness == 0.5


def test_overall_score_is_weighted(analyzer) -> None:
    metrics = analyzer.analyze([{"id": "1", "name": None}])

    assert metrics.completeness == 0.5
    assert metrics.overall_score == 85


@pytest.mark.parametrize(
    ("timeliness", "expected"),
    [(0.25, 93), (0.05, 91), (0.45, 95), (0.85, 99), (0.0, 90)],
)
def test_overall_score_rounds_halves_up(timeliness, expected) -> None:
    score = DataQualityAnalyzer.overall_score(
        completeness=1.0, uniqueness=1.0, consistency=1.0, validity=1.0, timeliness=timeliness
    )

    assert score == expected


def test_models_are_analyzed_by_alias(analyzer) -> None:
    class Note(BaseModel):
        note_id: str = Field(alias="noteId")
        body: str

    notes = [Note(noteId="n1", body="One"), Note(noteId="n2", body="")]
    metrics = analyzer.analyze(notes, id_field="noteId")

    assert metrics.completeness == 0.75
    assert metrics.uniqueness == 1.0


def test_to_dict_serializes_enums(analyzer) -> None:
    payload = analyzer.analyze([{"id": "a"}, {"id": "a"}]).to_dict()

    assert payload["uniqueness"] == 0.5
    assert payload["anomalies_detected"][0]["type"] == "structural"
    assert payload["anomalies_detected"][0]["severity"] == "high"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2026-03-01T12:00:00Z", NOW),
        ("2026-03-01T12:00:00", NOW),
        (NOW.timestamp() * 1000, NOW),
        (NOW, NOW),
        ("yesterday", None),
        (True, None),
    ],
)
def test_parse_timestamp(raw, expected) -> None:
    assert parse_timestamp(raw) == expected
