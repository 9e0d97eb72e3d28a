"""
Structured Logging for the Trust Layer

Configures structlog on top of the standard library so that trust layer
records (validation outcomes, blocked writes, alerts) carry key/value context
and can be rendered either for a console or as JSON lines for log shipping.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field
from structlog.types import Processor

_stdlib_logger = logging.getLogger(__name__)

_TEMPLATE_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")
_TEMPLATE_FORMATS = {
    "YMD": "%Y%m%d",
    "YM": "%Y%m",
    "Y": "%Y",
    "HMS": "%H%M%S",
}

_configured = False


class LoggingSettings(BaseModel):
    """Logging configuration for the trust layer."""

    level: str = Field(default="INFO", description="Root log level")
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Renderer for log records: 'console' for humans, 'json' for shipping",
    )
    service_name: str = Field(default="trustlayer", description="Bound on every record")
    log_file_template: str | None = Field(
        default=None,
        description="Optional log file path; supports {YMD}, {YM}, {Y} and {HMS} placeholders",
    )


def _render_log_file_path(template: str | None) -> Path | None:
    """Resolve a log file template into a concrete path.

    Relative templates are anchored at ``TRUST_PROJECT_PATH`` when it is set,
    otherwise at the current working directory. Unknown placeholders disable
    file logging.
    """
    if not template:
        return None

    now = datetime.now(timezone.utc)

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in _TEMPLATE_FORMATS:
            raise KeyError(key)
        return now.strftime(_TEMPLATE_FORMATS[key])

    try:
        rendered = _TEMPLATE_PLACEHOLDER.sub(_substitute, template)
    except KeyError as exc:
        _stdlib_logger.warning(
            "Unknown log file template placeholder {%s} in %r; file logging disabled",
            exc.args[0],
            template,
        )
        return None

    path = Path(rendered)
    if not path.is_absolute():
        base = os.environ.get("TRUST_PROJECT_PATH")
        path = (Path(base) if base else Path.cwd()) / path
    return path


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]


def setup_logging(settings: LoggingSettings | None = None, *, force: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger.

    Calling this more than once is a no-op unless ``force`` is set, so that
    every ``TrustLayer`` can call it without clobbering host configuration.

    Args:
        settings: Logging settings (defaults to ``LoggingSettings()``)
        force: Reconfigure even if logging was already set up
    """
    global _configured
    if _configured and not force:
        return

    settings = settings or LoggingSettings()
    shared = _shared_processors()

    renderer: Processor
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_trustlayer_handler", False):
            root.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_path = _render_log_file_path(settings.log_file_template)
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._trustlayer_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    root.setLevel(getattr(logging, settings.level.upper(), logging.INFO))

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=settings.service_name)
    _configured = True


def get_logger(name: str, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (typically __name__)
        **initial_values: Context bound to every record from this logger

    Returns:
        structlog bound logger
    """
    logger = structlog.stdlib.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger


def reset_logging() -> None:
    """Remove trust layer handlers and restore structlog defaults."""
    global _configured
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_trustlayer_handler", False):
            root.removeHandler(handler)
            handler.close()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    _configured = False
