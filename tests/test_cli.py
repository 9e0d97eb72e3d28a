"""Tests for the trustlayer CLI."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from trustlayer import __version__
from trustlayer.cli.main import cli
from trustlayer.config import ObservabilityConfig
from trustlayer.observability import ObservabilityEngine

VALID_TASK = {
    "id": "task-1",
    "title": "Buy groceries",
    "listId": "inbox",
    "completed": False,
    "priority": "high",
    "createdAt": "2025-01-01T10:00:00Z",
    "dueDate": None,
}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def write_json(tmp_path: Path, name: str, payload) -> str:
    path = tmp_path / name
    path.write_text(json.dumps(payload))
    return str(path)


def test_version(runner) -> None:
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_contracts_json(runner) -> None:
    result = runner.invoke(cli, ["contracts", "--format", "json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert list(payload) == [
        "documentMetadata",
        "document",
        "createDocument",
        "task",
        "taskList",
        "appSettings",
        "syncConfig",
    ]
    assert payload["task"]["schema"] == "Task"
    assert payload["task"]["validation_rules"] == ["title-not-placeholder", "due-date-in-future-or-null"]


def test_contracts_table(runner) -> None:
    result = runner.invoke(cli, ["contracts"])

    assert result.exit_code == 0
    assert "syncConfig" in result.output


def test_validate_valid_record(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "task.json", VALID_TASK)

    result = runner.invoke(cli, ["validate", "task", data_file, "--format", "json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert [item["is_valid"] for item in payload] == [True]


def test_validate_list_with_invalid_record_fails(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "tasks.json", [VALID_TASK, {**VALID_TASK, "title": "New task"}])

    result = runner.invoke(cli, ["validate", "task", data_file, "--format", "json"])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert [item["is_valid"] for item in payload] == [True, False]
    assert payload[1]["errors"][0]["location"] == "title"


def test_validate_table_output(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "task.json", {**VALID_TASK, "priority": "urgent"})

    result = runner.invoke(cli, ["validate", "task", data_file])

    assert result.exit_code == 1
    assert "SCHEMA_VALIDATION_ERROR" in result.output


def test_validate_unknown_contract(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "task.json", VALID_TASK)

    result = runner.invoke(cli, ["validate", "tasks", data_file, "--format", "json"])

    assert result.exit_code == 1
    error = json.loads(result.stdout)[0]["errors"][0]
    assert error["code"] == "SCHEMA_NOT_FOUND"
    assert "Did you mean 'task'?" in error["suggestion"]


def test_validate_rejects_malformed_json(runner, tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{oops")

    result = runner.invoke(cli, ["validate", "task", str(path)])

    assert result.exit_code == 1
    assert "Aborted" in result.output


def test_scan_defaults_to_production(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "doc.json", {"title": "TBD", "body": "Real content"})

    result = runner.invoke(cli, ["scan", data_file, "--format", "json"])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["is_safe"] is False
    assert payload["environment"] == "production"
    assert payload["blocked_actions"] == ["scan"]
    assert [(e["code"], e["severity"], e["location"]) for e in payload["placeholder_errors"]] == [
        ("PLACEHOLDER_VALUE_DETECTED", "critical", "title")
    ]


def test_scan_uses_trust_env(runner, tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("TRUST_ENV", "development")
    data_file = write_json(tmp_path, "doc.json", {"title": "TBD"})

    result = runner.invoke(cli, ["scan", data_file, "--format", "json"])

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["is_safe"] is True
    assert payload["placeholder_errors"][0]["severity"] == "high"


def test_scan_clean_file(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "doc.json", [{"title": "Quarterly report"}])

    result = runner.invoke(cli, ["scan", data_file, "--env", "staging"])

    assert result.exit_code == 0
    assert "No placeholders detected" in result.output


def test_quality_json(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "rows.json", [{"id": "a"}, {"id": "b"}])

    result = runner.invoke(cli, ["quality", data_file, "--format", "json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["overall_score"] == 100
    assert payload["anomalies_detected"] == []


def test_quality_below_min_score_fails(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "rows.json", [{"id": "a", "name": None}] * 4)

    result = runner.invoke(cli, ["quality", data_file, "--min-score", "90"])

    assert result.exit_code == 1
    assert "completeness" in result.output


def test_quality_with_contract_scores_validity(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "tasks.json", [VALID_TASK, {**VALID_TASK, "id": "task-2", "priority": "x"}])

    result = runner.invoke(cli, ["quality", data_file, "--contract", "task", "--format", "json"])

    assert json.loads(result.stdout)["validity"] == 0.5


def test_quality_requires_list(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "row.json", {"id": "a"})

    result = runner.invoke(cli, ["quality", data_file])

    assert result.exit_code == 1
    assert "JSON list" in result.output


def test_quality_unknown_contract(runner, tmp_path) -> None:
    data_file = write_json(tmp_path, "rows.json", [{"id": "a"}])

    result = runner.invoke(cli, ["quality", data_file, "--contract", "nope"])

    assert result.exit_code == 1
    assert "Unknown contract" in result.output


def test_status_reads_snapshot(runner, tmp_path) -> None:
    path = tmp_path / "obs.json"
    engine = ObservabilityEngine(ObservabilityConfig(snapshot_path=path))
    engine.record_metric("save.duration", 1500, unit="ms")
    engine.record_metric("save.duration", 500, unit="ms")
    engine.info("saved")

    result = runner.invoke(cli, ["status", "--snapshot", str(path), "--format", "json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["snapshot"] == str(path)
    assert payload["metrics"] == 3
    assert [a["title"] for a in payload["active_alerts"]] == ["High Latency Detected"]
    assert payload["metric_stats"]["save.duration"]["count"] == 2
    assert payload["metric_stats"]["save.duration"]["max"] == 1500


def test_status_table_without_snapshot(runner, tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("TRUST_SNAPSHOT_PATH", str(tmp_path / "missing.json"))

    result = runner.invoke(cli, ["status"])

    assert result.exit_code == 0
    assert "No active alerts" in result.output
