"""
Placeholder and mock data detection.

Patterns live in a data table so new categories are additive: append a
``PlaceholderPattern`` to ``PLACEHOLDER_PATTERNS`` or a token to
``PLACEHOLDER_VALUES``. Severity is a pure function of the match kind and the
environment.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from trustlayer.config import PRODUCTION_ENVIRONMENTS
from trustlayer.quality.analyzer import as_record
from trustlayer.results import ErrorCategory, Severity, ValidationError


class MatchKind(str, Enum):
    PATTERN = "pattern"
    VALUE = "value"


@dataclass(frozen=True)
class PlaceholderPattern:
    name: str
    regex: re.Pattern[str]

    def matches(self, value: str) -> bool:
        return self.regex.search(value) is not None


def _marker(word: str) -> PlaceholderPattern:
    return PlaceholderPattern(
        name=word,
        regex=re.compile(rf"(?:^|//|/\*\*?|#)\s*{word}(?:[:\s]|$)", re.IGNORECASE),
    )


PLACEHOLDER_PATTERNS: tuple[PlaceholderPattern, ...] = (
    # Code comment markers
    _marker("TODO"),
    _marker("FIXME"),
    _marker("XXX"),
    _marker("HACK"),
    # Mock data indicators
    PlaceholderPattern(
        "MOCK_VALUE",
        re.compile(r"\b(?:mock|test|dummy|fake|placeholder|sample)\b.*\bdata?\b", re.IGNORECASE),
    ),
    PlaceholderPattern("LOREM_IPSUM", re.compile(r"lorem\s+ipsum", re.IGNORECASE)),
    PlaceholderPattern(
        "EXAMPLE_EMAIL",
        re.compile(r"example@test\.com|test@example\.com|user@example", re.IGNORECASE),
    ),
    PlaceholderPattern("EXAMPLE_PHONE", re.compile(r"\b(?:1-)?555-?\d{4}\b")),
    PlaceholderPattern(
        "DEFAULT_STRING",
        re.compile(r"^(?:default|change me|update this|enter \w+ here)$", re.IGNORECASE),
    ),
    # Incomplete values
    PlaceholderPattern("EMPTY_REQUIRED", re.compile(r"^\s*$")),
    PlaceholderPattern("NULL_FOR_REQUIRED", re.compile(r"^null\s*$", re.IGNORECASE)),
)

PLACEHOLDER_VALUES: tuple[str, ...] = (
    "N/A",
    "TBD",
    "TBC",
    "To Be Determined",
    "To Be Completed",
    "<placeholder>",
    "[placeholder]",
    "{{placeholder}}",
)

_PLACEHOLDER_VALUES_FOLDED = frozenset(value.casefold() for value in PLACEHOLDER_VALUES)


def is_production(environment: str) -> bool:
    return environment in PRODUCTION_ENVIRONMENTS


def placeholder_severity(kind: MatchKind, environment: str) -> Severity:
    """Same defect, higher cost in production: escalate one level there."""

    production = is_production(environment)
    if kind is MatchKind.VALUE:
        return Severity.CRITICAL if production else Severity.HIGH
    return Severity.HIGH if production else Severity.MEDIUM


class PlaceholderDetector:
    """Flags synthetic or incomplete values anywhere in a record graph."""

    def __init__(self, environment: str = "development") -> None:
        self.environment = environment

    def detect(self, value: Any, context: Optional[str] = None) -> list[ValidationError]:
        """Check one scalar value. ``None`` never matches."""

        if value is None:
            return []

        trimmed = str(value).strip()
        errors = []

        for pattern in PLACEHOLDER_PATTERNS:
            if pattern.matches(trimmed):
                errors.append(
                    ValidationError(
                        code=f"PLACEHOLDER_DETECTED_{pattern.name}",
                        message=f"Placeholder pattern detected: {pattern.name}",
                        severity=placeholder_severity(MatchKind.PATTERN, self.environment),
                        category=ErrorCategory.PLACEHOLDER,
                        location=context,
                        suggestion=f"Replace placeholder with actual {pattern.name.lower()} value",
                    )
                )

        if trimmed.casefold() in _PLACEHOLDER_VALUES_FOLDED:
            errors.append(
                ValidationError(
                    code="PLACEHOLDER_VALUE_DETECTED",
                    message=f'Common placeholder value detected: "{trimmed}"',
                    severity=placeholder_severity(MatchKind.VALUE, self.environment),
                    category=ErrorCategory.PLACEHOLDER,
                    location=context,
                    suggestion="Replace with actual data value",
                )
            )

        return errors

    def detect_in_object(self, obj: Mapping[str, Any], prefix: str = "") -> list[ValidationError]:
        """Check every field; ``location`` is the (dotted) field key."""

        errors = []
        for key, value in obj.items():
            location = f"{prefix}{key}"
            errors.extend(self._detect_any(value, location))
        return errors

    def detect_in_array(
        self, items: Sequence[Any], context: Optional[str] = None
    ) -> list[ValidationError]:
        """Check sequence elements; scalars are located as ``context[i]``."""

        base = context or ""
        errors = []
        for index, item in enumerate(items):
            location = f"{base}[{index}]"
            record = as_record(item)
            if record is not None:
                errors.extend(self.detect_in_object(record, prefix=f"{location}." if base else ""))
            elif _is_sequence(item):
                errors.extend(self.detect_in_array(item, location))
            else:
                errors.extend(self.detect(item, location))
        return errors

    def detect_any(self, data: Any) -> list[ValidationError]:
        """Dispatch on shape: records, sequences or scalars."""

        return self._detect_any(data, None)

    def _detect_any(self, value: Any, location: Optional[str]) -> list[ValidationError]:
        record = as_record(value)
        if record is not None:
            return self.detect_in_object(record, prefix=f"{location}." if location else "")
        if _is_sequence(value):
            return self.detect_in_array(value, location)
        return self.detect(value, location)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))
