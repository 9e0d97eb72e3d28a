"""Hook bus implementation for dispatching trust layer events to subscribers."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Protocol, runtime_checkable

from trustlayer.hooks.events import HookEvent
from trustlayer.logging import get_logger

logger = get_logger(__name__)


class FailurePolicy(str, Enum):
    """Failure handling policy for hook handlers."""

    IGNORE = "ignore"
    LOG = "log"
    RAISE = "raise"


@dataclass(frozen=True)
class HookFilter:
    """Filter criteria for deciding whether a hook should run."""

    event_types: set[str] | None = None
    names: set[str] | None = None
    tags: dict[str, str] | None = None

    def __post_init__(self) -> None:
        """Normalize iterable fields to sets for efficient matching."""

        if self.event_types is not None:
            object.__setattr__(self, "event_types", set(self.event_types))
        if self.names is not None:
            object.__setattr__(self, "names", set(self.names))


@runtime_checkable
class HookHandler(Protocol):
    """Protocol for handler objects implementing hook dispatch."""

    def handle_event(self, event: HookEvent) -> None: ...


@dataclass(frozen=True)
class HookRegistration:
    """Registration details for a hook handler."""

    hook_name: str
    handler: Callable[[HookEvent], None] | HookHandler
    priority: int = 100
    filters: HookFilter | None = None
    failure_policy: FailurePolicy = FailurePolicy.LOG


@dataclass(frozen=True)
class RegisteredHook:
    """Internal record for a registered hook handler."""

    owner: str
    hook_name: str
    handler: Callable[[HookEvent], None] | HookHandler
    priority: int
    filters: HookFilter | None
    failure_policy: FailurePolicy


class HookBus:
    """Dispatch hook events to registered handlers."""

    def __init__(self) -> None:
        self._hooks: list[RegisteredHook] = []
        self._lock = threading.Lock()

    def emit(self, event: HookEvent) -> None:
        """Emit an event to all matching hooks."""
        with self._lock:
            hooks = sorted(self._hooks, key=lambda item: (item.priority, item.owner, item.hook_name))
        for hook in hooks:
            if hook.filters and not self._matches_filters(hook.filters, event):
                continue
            try:
                self._invoke_handler(hook.handler, event)
            except Exception as exc:
                policy = hook.failure_policy
                if policy == FailurePolicy.IGNORE:
                    continue
                if policy == FailurePolicy.LOG:
                    logger.exception(
                        "hook_failed",
                        owner=hook.owner,
                        hook=hook.hook_name,
                        event_type=event.event_type,
                        error=str(exc),
                    )
                    continue
                raise

    def register(self, registration: HookRegistration, *, owner: str = "app") -> None:
        """Register a hook handler."""
        with self._lock:
            self._hooks.append(
                RegisteredHook(
                    owner=owner,
                    hook_name=registration.hook_name,
                    handler=registration.handler,
                    priority=registration.priority,
                    filters=registration.filters,
                    failure_policy=registration.failure_policy,
                )
            )

    def subscribe(
        self,
        event_types: Iterable[str] | str,
        handler: Callable[[HookEvent], None] | HookHandler,
        *,
        name: str | None = None,
        priority: int = 100,
        failure_policy: FailurePolicy = FailurePolicy.LOG,
    ) -> HookRegistration:
        """Register ``handler`` for the given event types and return its registration."""

        if isinstance(event_types, str):
            event_types = [event_types]
        registration = HookRegistration(
            hook_name=name or getattr(handler, "__name__", type(handler).__name__),
            handler=handler,
            priority=priority,
            filters=HookFilter(event_types=set(event_types)),
            failure_policy=failure_policy,
        )
        self.register(registration)
        return registration

    def unregister(self, hook_name: str, *, owner: str | None = None) -> int:
        """Remove hooks by name (optionally scoped to an owner); returns the count removed."""

        with self._lock:
            before = len(self._hooks)
            self._hooks = [
                hook
                for hook in self._hooks
                if not (hook.hook_name == hook_name and (owner is None or hook.owner == owner))
            ]
            return before - len(self._hooks)

    def clear(self) -> None:
        """Remove all registered hooks."""
        with self._lock:
            self._hooks.clear()

    def __len__(self) -> int:
        return len(self._hooks)

    @staticmethod
    def _invoke_handler(
        handler: Callable[[HookEvent], None] | HookHandler, event: HookEvent
    ) -> None:
        """Dispatch a hook handler regardless of implementation style."""

        if isinstance(handler, HookHandler):
            handler.handle_event(event)
            return
        handler(event)

    @staticmethod
    def _matches_filters(filters: HookFilter, event: HookEvent) -> bool:
        """Return whether an event satisfies the provided hook filters."""

        if filters.event_types and event.event_type not in filters.event_types:
            return False
        if filters.names:
            name = getattr(event, "name", None)
            if name not in filters.names:
                return False
        if filters.tags:
            for key, value in filters.tags.items():
                if event.tags.get(key) != value:
                    return False
        return True
