"""Span bookkeeping: trace allocation, parent lookup and span completion."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import ulid

from trustlayer.observability.models import Span, SpanStatus


def generate_id() -> str:
    """Generate a sortable unique identifier for traces, spans and alerts."""
    return str(ulid.ULID())


def inert_span(operation: str, start_time: datetime, tags: Optional[dict[str, str]] = None) -> Span:
    """Span returned while tracing is disabled; it is never stored."""

    return Span(trace_id="", span_id="", operation=operation, start_time=start_time, tags=dict(tags or {}))


def duration_ms(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() * 1000


class Tracer:
    """Holds spans grouped by trace id. The engine serializes access."""

    def __init__(self) -> None:
        self._traces: dict[str, list[Span]] = {}

    def start(
        self,
        operation: str,
        now: datetime,
        parent_span_id: Optional[str] = None,
        tags: Optional[dict[str, str]] = None,
    ) -> Span:
        """Start a span; an unknown parent starts a new trace."""

        trace_id = None
        if parent_span_id:
            trace_id = self.trace_id_for(parent_span_id)
        if trace_id is None:
            trace_id = generate_id()

        span = Span(
            trace_id=trace_id,
            span_id=generate_id(),
            parent_span_id=parent_span_id,
            operation=operation,
            start_time=now,
            tags=dict(tags or {}),
        )
        self._traces.setdefault(trace_id, []).append(span)
        return span

    @staticmethod
    def finish(span: Span, now: datetime, error: Optional[BaseException] = None) -> Span:
        span.end_time = now
        span.duration = duration_ms(span.start_time, now)
        if error is not None:
            span.status = SpanStatus.ERROR
            span.error = f"{type(error).__name__}: {error}"
        return span

    def trace_id_for(self, span_id: str) -> Optional[str]:
        for trace_id, spans in self._traces.items():
            if any(span.span_id == span_id for span in spans):
                return trace_id
        return None

    def get_trace(self, trace_id: str) -> Optional[list[Span]]:
        spans = self._traces.get(trace_id)
        return list(spans) if spans is not None else None

    def purge_before(self, cutoff: datetime) -> int:
        """Drop traces whose spans all ended before ``cutoff``. Open traces are kept."""

        expired = [
            trace_id
            for trace_id, spans in self._traces.items()
            if all(span.end_time is not None and span.end_time <= cutoff for span in spans)
        ]
        for trace_id in expired:
            del self._traces[trace_id]
        return len(expired)

    def clear(self) -> None:
        self._traces.clear()

    def __len__(self) -> int:
        return len(self._traces)
