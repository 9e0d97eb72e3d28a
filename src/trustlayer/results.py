"""Result types shared by the contract registry, detector and orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

VALIDATION_VERSION = "1.0.0"


def utc_now() -> datetime:
    """Return the current UTC timestamp."""

    return datetime.now(timezone.utc)


class Severity(str, Enum):
    """Severity of a validation error, safety check or anomaly."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ErrorCategory(str, Enum):
    """What kind of defect a validation error describes."""

    PLACEHOLDER = "placeholder"
    MOCK_DATA = "mock_data"
    SCHEMA_VIOLATION = "schema_violation"
    DATA_QUALITY = "data_quality"
    SECURITY = "security"


@dataclass(frozen=True)
class ValidationError:
    """A single structured validation failure."""

    code: str
    message: str
    severity: Severity
    category: ErrorCategory
    location: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["severity"] = self.severity.value
        payload["category"] = self.category.value
        return payload


@dataclass(frozen=True)
class ValidationWarning:
    """Non-blocking validation finding."""

    code: str
    message: str
    category: str


@dataclass(frozen=True)
class ValidationMetadata:
    timestamp: str
    environment: str
    validation_version: str = VALIDATION_VERSION
    execution_time_ms: float = 0.0


@dataclass
class ValidationResult:
    """Outcome of validating one value against a registered contract."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationWarning] = field(default_factory=list)
    metadata: Optional[ValidationMetadata] = None

    def error_messages(self) -> list[str]:
        """Return ``CODE: message`` strings suitable for surfacing to users."""

        return [f"{error.code}: {error.message}" for error in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [asdict(warning) for warning in self.warnings],
            "metadata": asdict(self.metadata) if self.metadata else None,
        }
