"""Wrap callables in spans, logging and recording failures."""

from __future__ import annotations

import functools
import inspect
from typing import Any, Callable, Optional, TypeVar

from trustlayer.observability.engine import ObservabilityEngine

F = TypeVar("F", bound=Callable[..., Any])


def with_observability(
    engine: ObservabilityEngine,
    operation: str,
    fn: F,
    tags: Optional[dict[str, str]] = None,
) -> F:
    """
    Return ``fn`` wrapped in a span named ``operation``.

    A raised exception ends the span with an error, is logged as
    ``Operation failed: <operation>`` and re-raised. Coroutine functions are
    awaited inside the span.
    """

    if inspect.iscoroutinefunction(fn):

        @functools.wraps(fn)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            span = engine.start_span(operation, tags=tags)
            try:
                result = await fn(*args, **kwargs)
            except Exception as exc:
                engine.end_span(span, exc)
                engine.error(f"Operation failed: {operation}", exc)
                raise
            engine.end_span(span)
            return result

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        span = engine.start_span(operation, tags=tags)
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:
            engine.end_span(span, exc)
            engine.error(f"Operation failed: {operation}", exc)
            raise
        engine.end_span(span)
        return result

    return wrapper  # type: ignore[return-value]


def traced(
    engine: ObservabilityEngine,
    operation: Optional[str] = None,
    tags: Optional[dict[str, str]] = None,
) -> Callable[[F], F]:
    """Decorator form of with_observability; the operation defaults to the function's qualname."""

    def decorator(fn: F) -> F:
        return with_observability(engine, operation or fn.__qualname__, fn, tags)

    return decorator
