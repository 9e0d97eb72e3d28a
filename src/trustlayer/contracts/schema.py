"""
Data contract definition.

A contract bundles a structural schema with semantic validation rules and
scored quality checks for one logical entity (``"task"``, ``"document"`` ...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from trustlayer.results import Severity, utc_now

T = TypeVar("T")


@dataclass(frozen=True)
class FieldError:
    """A structural failure at a (possibly nested) field path."""

    path: str
    message: str


@dataclass
class SchemaOutcome(Generic[T]):
    """Result of structural validation: the parsed value or field errors."""

    value: Optional[T] = None
    errors: list[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@runtime_checkable
class SchemaValidator(Protocol[T]):
    """Structural validator plugged into a contract."""

    def validate(self, data: Any) -> SchemaOutcome[T]: ...


class PydanticSchema(Generic[T]):
    """SchemaValidator backed by a pydantic model or any type pydantic understands."""

    def __init__(self, target: Any) -> None:
        self.target = target
        self._adapter: TypeAdapter[T] = TypeAdapter(target)

    def validate(self, data: Any) -> SchemaOutcome[T]:
        try:
            return SchemaOutcome(value=self._adapter.validate_python(data))
        except PydanticValidationError as exc:
            return SchemaOutcome(
                errors=[
                    FieldError(path=".".join(str(part) for part in err["loc"]), message=err["msg"])
                    for err in exc.errors()
                ]
            )

    @property
    def name(self) -> str:
        return getattr(self.target, "__name__", repr(self.target))

    def __repr__(self) -> str:
        return f"PydanticSchema({self.name})"


def coerce_schema(schema: Any) -> SchemaValidator:
    """Wrap pydantic models and type hints; pass SchemaValidator instances through."""

    # Model classes expose a ``validate`` classmethod, so check for types first.
    if isinstance(schema, type) or not isinstance(schema, SchemaValidator):
        return PydanticSchema(schema)
    return schema


@dataclass(frozen=True)
class ValidationRule(Generic[T]):
    """Semantic rule run against the parsed value. Predicates must be pure."""

    name: str
    predicate: Callable[[T], bool]
    error_message: str
    severity: Severity = Severity.MEDIUM


@dataclass(frozen=True)
class QualityResult:
    passed: bool
    score: float
    """0-100."""
    details: str


@dataclass(frozen=True)
class QualityCheck(Generic[T]):
    """Scored check run against the parsed value."""

    name: str
    fn: Callable[[T], QualityResult]


@dataclass
class DataContract(Generic[T]):
    """
    Data contract for one logical entity.

    Example:
        DataContract(
            schema=Task,
            version="1.0.0",
            validation_rules=[
                ValidationRule(
                    name="title-not-placeholder",
                    predicate=lambda task: "tbd" not in task.title.lower(),
                    error_message="Task title appears to be a placeholder",
                )
            ],
        )
    """

    schema: Any
    version: str = "1.0.0"
    last_updated: datetime = field(default_factory=utc_now)
    validation_rules: list[ValidationRule[T]] = field(default_factory=list)
    quality_checks: list[QualityCheck[T]] = field(default_factory=list)
    description: str = ""

    def __post_init__(self) -> None:
        self.schema = coerce_schema(self.schema)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema": getattr(self.schema, "name", type(self.schema).__name__),
            "version": self.version,
            "last_updated": self.last_updated.isoformat(),
            "description": self.description,
            "validation_rules": [rule.name for rule in self.validation_rules],
            "quality_checks": [check.name for check in self.quality_checks],
        }
