"""Tests for TrustLayer guarded writes and telemetry wiring."""

from pathlib import Path

import pytest

from trustlayer.config import ObservabilityConfig, SafetyConfig, TrustConfig
from trustlayer.hooks import METRIC_EVENT, QUALITY_RESULT_EVENT, SAFETY_CHECK_EVENT, HookBus
from trustlayer.integration import TrustLayer
from trustlayer.observability import AlertCategory, AlertSeverity, LogLevel, SpanStatus
from trustlayer.safety import PLACEHOLDER_RECOMMENDATION

VALID_TASK = {
    "id": "task-1",
    "title": "Buy groceries",
    "listId": "inbox",
    "completed": False,
    "priority": "medium",
    "createdAt": "2025-01-01T10:00:00Z",
    "dueDate": None,
}


class FakeStore:
    def __init__(self) -> None:
        self.saved = []

    def save(self, data):
        self.saved.append(data)
        return f"saved-{len(self.saved)}"


def metric_values(layer: TrustLayer, name: str) -> list:
    return [(m.value, m.tags) for m in layer.get_metrics(name)]


def test_production_placeholder_write_is_blocked(production_layer) -> None:
    store = FakeStore()
    events = []
    production_layer.bus.subscribe(SAFETY_CHECK_EVENT, events.append)

    outcome = production_layer.guarded_write("save", {"title": "TBD"}, store.save)

    assert outcome.committed is False
    assert store.saved == []
    assert outcome.errors == [PLACEHOLDER_RECOMMENDATION]
    assert outcome.safety.blocked_actions == ["save"]
    assert metric_values(production_layer, "placeholder.count") == [(1, {"operation": "save"})]
    assert metric_values(production_layer, "write.blocked") == [(1, {"operation": "save"})]
    assert production_layer.get_metrics("write.committed") == []
    assert [(e.name, e.is_safe, e.environment) for e in events] == [("save", False, "production")]

    errors = [entry.message for entry in production_layer.get_logs(LogLevel.ERROR)]
    assert "save blocked by safety check" in errors


def test_blocked_write_raises_placeholder_alert(production_layer) -> None:
    production_layer.guarded_write("save", {"title": "TBD", "notes": "N/A"}, FakeStore().save)

    alerts = production_layer.get_alerts_by_category(AlertCategory.PLACEHOLDER)
    assert [(a.severity, a.message) for a in alerts] == [
        (AlertSeverity.ERROR, "2 placeholder(s) detected in data")
    ]
    banners = production_layer.alert_banners()
    assert [(b.level, b.title, b.dismissible) for b in banners] == [
        ("error", "Placeholder Data Detected", True)
    ]


def test_blocked_write_span_ends_with_error(production_layer) -> None:
    spans = []
    production_layer.bus.subscribe("span.end", spans.append)

    production_layer.guarded_write("save", {"title": "TBD"}, FakeStore().save)

    assert [m.tags for m in production_layer.get_metrics("span.errors")] == [{"operation": "save"}]
    assert production_layer.get_metrics("span.duration") == []
    assert [(e.name, e.status) for e in spans] == [("save", "error")]
    span = production_layer.get_trace(spans[0].trace_id)[0]
    assert span.status is SpanStatus.ERROR
    assert span.error.startswith("SafetyGateError: ")


def test_contract_blocked_write_span_ends_with_error(layer) -> None:
    layer.register_default_contracts()

    layer.guarded_write("addTask", {**VALID_TASK, "priority": "urgent"}, FakeStore().save, "task")

    assert [m.tags for m in layer.get_metrics("span.errors")] == [{"operation": "addTask"}]
    assert layer.get_metrics("span.duration") == []


def test_clean_write_commits(layer, clock) -> None:
    store = FakeStore()

    outcome = layer.guarded_write("addTask", VALID_TASK, store.save)

    assert outcome.committed is True
    assert outcome.result == "saved-1"
    assert outcome.errors == []
    assert outcome.validation is None
    assert store.saved == [VALID_TASK]
    assert metric_values(layer, "write.committed") == [(1, {"operation": "addTask"})]


def test_development_allows_placeholders(layer) -> None:
    outcome = layer.guarded_write("save", {"title": "TBD"}, FakeStore().save)

    assert outcome.committed is True
    assert outcome.safety.is_safe is True


def test_strict_validation_blocks_invalid_data(layer) -> None:
    layer.register_default_contracts()
    store = FakeStore()

    outcome = layer.guarded_write("addTask", {**VALID_TASK, "priority": "urgent"}, store.save, "task")

    assert outcome.committed is False
    assert store.saved == []
    assert outcome.errors == outcome.validation.error_messages()
    assert outcome.errors[0].startswith("SCHEMA_VALIDATION_ERROR: priority")
    assert metric_values(layer, "write.blocked") == [(1, {"operation": "addTask"})]
    assert [e.message for e in layer.get_logs(LogLevel.ERROR)] == ["addTask schema validation failed"]


def test_valid_contract_data_commits(layer) -> None:
    layer.register_default_contracts()

    outcome = layer.guarded_write("addTask", VALID_TASK, FakeStore().save, "task")

    assert outcome.committed is True
    assert outcome.validation.is_valid is True


def test_lenient_validation_warns_and_commits(clock) -> None:
    layer = TrustLayer(TrustConfig(safety=SafetyConfig(enable_strict_validation=False)), clock=clock)
    layer.register_default_contracts()
    store = FakeStore()

    outcome = layer.guarded_write("addTask", {**VALID_TASK, "priority": "urgent"}, store.save, "task")

    assert outcome.committed is True
    assert outcome.validation.is_valid is False
    assert len(store.saved) == 1
    warnings = layer.get_logs(LogLevel.WARN)
    assert [w.message for w in warnings] == ["addTask schema validation failed (not enforced)"]
    assert warnings[0].context["contract"] == "task"


def test_unknown_contract_blocks_strict_write(layer) -> None:
    outcome = layer.guarded_write("addTask", VALID_TASK, FakeStore().save, "tasks")

    assert outcome.committed is False
    assert outcome.errors == ["SCHEMA_NOT_FOUND: No data contract registered for: tasks"]


def test_commit_exception_propagates(layer) -> None:
    def failing_commit(_data):
        raise OSError("disk full")

    with pytest.raises(OSError, match="disk full"):
        layer.guarded_write("save", {"title": "Report"}, failing_commit)

    errors = layer.get_logs(LogLevel.ERROR)
    assert [(e.message, e.context) for e in errors] == [("Failed to save", {"error": "disk full"})]
    assert metric_values(layer, "span.errors") == [(1, {"operation": "save"})]
    assert layer.get_metrics("write.committed") == []


def test_guarded_write_span_can_be_traced(layer) -> None:
    spans = []
    layer.bus.subscribe("span.end", spans.append)

    layer.guarded_write("save", {"title": "Report"}, FakeStore().save)

    assert [(e.name, e.status, e.tags) for e in spans] == [("save", "ok", {"operation": "save"})]
    trace = layer.get_trace(spans[0].trace_id)
    assert trace[0].status is SpanStatus.OK


def test_analyze_quality_records_score(layer) -> None:
    events = []
    layer.bus.subscribe(QUALITY_RESULT_EVENT, events.append)

    metrics = layer.analyze_quality([{"id": "a", "name": None}] * 4)

    assert metrics.overall_score < 70
    assert [m.value for m in layer.get_metrics("data_quality.score")] == [metrics.overall_score]
    assert [(e.overall_score, e.anomalies) for e in events] == [
        (metrics.overall_score, len(metrics.anomalies_detected))
    ]
    assert [a.title for a in layer.get_alerts_by_category(AlertCategory.DATA_QUALITY)] == [
        "Low Data Quality Score"
    ]


def test_layer_shares_one_bus(layer) -> None:
    assert layer.observability.bus is layer.bus


def test_fresh_layer_delivers_telemetry_to_layer_bus() -> None:
    layer = TrustLayer()
    seen = []
    layer.bus.subscribe(METRIC_EVENT, seen.append)

    layer.record_metric("x", 1)

    assert layer.observability.bus is layer.bus
    assert [(e.name, e.value) for e in seen] == [("x", 1)]


def test_explicit_empty_bus_is_kept(clock) -> None:
    bus = HookBus()

    layer = TrustLayer(bus=bus, clock=clock)

    assert len(bus) == 0
    assert layer.bus is bus
    assert layer.observability.bus is bus


def test_placeholder_banner_not_dismissible_when_blocking_disabled(clock) -> None:
    layer = TrustLayer(TrustConfig(safety=SafetyConfig(block_placeholders=False)), clock=clock)
    layer.record_metric("placeholder.count", 1)
    layer.create_alert(AlertSeverity.INFO, "FYI", "note", AlertCategory.SECURITY)

    banners = {b.title: b for b in layer.alert_banners()}

    assert banners["Placeholder Data Detected"].dismissible is False
    assert banners["Placeholder Data Detected"].level == "error"
    assert banners["FYI"].dismissible is True
    assert banners["FYI"].level == "info"


def test_from_project_reads_trust_yaml(tmp_path: Path) -> None:
    (tmp_path / "trust.yaml").write_text(
        "safety:\n  environment: production\nobservability:\n  enable_tracing: false\n"
    )

    layer = TrustLayer.from_project(tmp_path, configure_logging=False)

    assert layer.config.safety.is_production
    assert layer.safety.config.is_production
    assert layer.observability.config.enable_tracing is False


def test_disabled_observability_does_not_block_writes(clock) -> None:
    layer = TrustLayer(
        TrustConfig(
            observability=ObservabilityConfig(
                enable_metrics=False, enable_logging=False, enable_tracing=False, enable_alerts=False
            )
        ),
        clock=clock,
    )

    outcome = layer.guarded_write("save", {"title": "Report"}, FakeStore().save)

    assert outcome.committed is True
    assert layer.get_metrics() == []
    assert layer.get_logs() == []


@pytest.mark.integration
def test_context_manager_starts_and_stops(tmp_path: Path, clock) -> None:
    config = TrustConfig(observability=ObservabilityConfig(snapshot_path=tmp_path / "obs.json"))

    with TrustLayer(config, clock=clock) as layer:
        assert layer.observability.running
        layer.info("inside")

    assert not layer.observability.running
    assert (tmp_path / "obs.json").exists()
