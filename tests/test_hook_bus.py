"""Tests for hook bus behavior."""

import pytest

from trustlayer.hooks import (
    ALERT_CREATED_EVENT,
    METRIC_EVENT,
    SPAN_END_EVENT,
    FailurePolicy,
    HookBus,
    HookFilter,
    HookRegistration,
    QualityResultEvent,
    TelemetryEvent,
)


def quality_event(name: str = "tasks", **tags: str) -> QualityResultEvent:
    return QualityResultEvent(
        event_type="quality.result", name=name, overall_score=90, tags=dict(tags)
    )


def test_hook_bus_filters_and_ordering() -> None:
    bus = HookBus()
    calls: list[str] = []

    def handler_a(_event) -> None:
        calls.append("a")

    def handler_b(_event) -> None:
        calls.append("b")

    bus.register(
        HookRegistration(
            hook_name="handler_a",
            handler=handler_a,
            priority=10,
            filters=HookFilter(event_types={"quality.result"}, names={"tasks"}),
        ),
        owner="owner_a",
    )
    bus.register(
        HookRegistration(
            hook_name="handler_b",
            handler=handler_b,
            priority=5,
            filters=HookFilter(event_types={"quality.result"}),
        ),
        owner="owner_b",
    )

    bus.emit(quality_event())
    assert calls == ["b", "a"]

    calls.clear()
    bus.emit(quality_event(name="documents"))
    assert calls == ["b"]


def test_hook_bus_tag_filter() -> None:
    bus = HookBus()
    seen = []
    bus.register(
        HookRegistration(
            hook_name="prod_only",
            handler=seen.append,
            filters=HookFilter(tags={"env": "production"}),
        )
    )

    bus.emit(quality_event(env="development"))
    bus.emit(quality_event(env="production"))

    assert [event.tags["env"] for event in seen] == ["production"]


def test_hook_bus_failure_policy_raise() -> None:
    bus = HookBus()

    def handler(_event) -> None:
        raise RuntimeError("boom")

    bus.register(
        HookRegistration(
            hook_name="raise_hook",
            handler=handler,
            failure_policy=FailurePolicy.RAISE,
        ),
        owner="owner_raise",
    )

    with pytest.raises(RuntimeError, match="boom"):
        bus.emit(quality_event())


@pytest.mark.parametrize("policy", [FailurePolicy.LOG, FailurePolicy.IGNORE])
def test_hook_bus_failing_handler_does_not_stop_dispatch(policy: FailurePolicy) -> None:
    bus = HookBus()
    calls: list[str] = []

    def failing(_event) -> None:
        raise RuntimeError("boom")

    bus.register(HookRegistration(hook_name="failing", handler=failing, priority=1, failure_policy=policy))
    bus.register(HookRegistration(hook_name="after", handler=lambda _e: calls.append("after"), priority=2))

    bus.emit(quality_event())

    assert calls == ["after"]


def test_hook_bus_accepts_handler_objects() -> None:
    class Collector:
        def __init__(self) -> None:
            self.events = []

        def handle_event(self, event) -> None:
            self.events.append(event)

    bus = HookBus()
    collector = Collector()
    bus.register(HookRegistration(hook_name="collector", handler=collector))

    bus.emit(quality_event())

    assert len(collector.events) == 1


def test_subscribe_and_unregister() -> None:
    bus = HookBus()
    seen = []

    registration = bus.subscribe([METRIC_EVENT, SPAN_END_EVENT], seen.append, name="metrics")

    assert registration.hook_name == "metrics"
    assert registration.filters.event_types == {METRIC_EVENT, SPAN_END_EVENT}

    bus.emit(TelemetryEvent(event_type=METRIC_EVENT, name="write.committed", value=1))
    bus.emit(TelemetryEvent(event_type=ALERT_CREATED_EVENT, name="ignored"))
    assert [event.name for event in seen] == ["write.committed"]

    assert bus.unregister("metrics") == 1
    assert len(bus) == 0
    bus.emit(TelemetryEvent(event_type=METRIC_EVENT, name="write.committed", value=2))
    assert len(seen) == 1


def test_unregister_scoped_to_owner() -> None:
    bus = HookBus()
    bus.register(HookRegistration(hook_name="shared", handler=lambda _e: None), owner="a")
    bus.register(HookRegistration(hook_name="shared", handler=lambda _e: None), owner="b")

    assert bus.unregister("shared", owner="a") == 1
    assert len(bus) == 1

    bus.clear()
    assert len(bus) == 0
