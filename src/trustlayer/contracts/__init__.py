"""
Data contracts for enforcing structure and semantics before persistence.

Provides:
- Contract definition (schema + rules + quality checks)
- Contract registry and validation
- Built-in contracts for documents, tasks and settings
"""

from trustlayer.contracts.registry import ContractRegistry, QualityCheckOutcome
from trustlayer.contracts.schema import (
    DataContract,
    FieldError,
    PydanticSchema,
    QualityCheck,
    QualityResult,
    SchemaOutcome,
    SchemaValidator,
    ValidationRule,
)

__all__ = [
    "ContractRegistry",
    "DataContract",
    "FieldError",
    "PydanticSchema",
    "QualityCheck",
    "QualityCheckOutcome",
    "QualityResult",
    "SchemaOutcome",
    "SchemaValidator",
    "ValidationRule",
]
