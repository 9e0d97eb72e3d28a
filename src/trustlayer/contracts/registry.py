"""
Registry for data contracts.

Stores one contract per logical entity key and validates values against it.
Validation failures are returned as structured results, never raised.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from typing import Any, Optional

from trustlayer.contracts.schema import DataContract
from trustlayer.exceptions import TrustContractError, suggest_similar_keys
from trustlayer.logging import get_logger
from trustlayer.results import (
    ErrorCategory,
    Severity,
    ValidationError,
    ValidationMetadata,
    ValidationResult,
    ValidationWarning,
    utc_now,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class QualityCheckOutcome:
    """Named result of one contract quality check."""

    name: str
    passed: bool
    score: float
    details: str


class ContractRegistry:
    """
    Registry for managing data contracts.

    Re-registering a key overwrites the previous contract; versions are not
    required to be unique.
    """

    def __init__(self, environment: str = "development") -> None:
        self.environment = environment
        self._contracts: dict[str, DataContract] = {}
        self._lock = threading.Lock()

    def register(self, key: str, contract: DataContract) -> DataContract:
        """Register (or replace) the contract for ``key``, stamping last_updated."""

        if not key or not key.strip():
            raise TrustContractError(
                "Contract key cannot be empty",
                suggestions=["Register contracts under the entity name, e.g. 'task'"],
            )
        stamped = replace(contract, last_updated=utc_now())
        with self._lock:
            replaced = key in self._contracts
            self._contracts[key] = stamped
        logger.debug(
            "contract_registered", key=key, version=stamped.version, replaced=replaced
        )
        return stamped

    def unregister(self, key: str) -> bool:
        with self._lock:
            return self._contracts.pop(key, None) is not None

    def get(self, key: str) -> Optional[DataContract]:
        with self._lock:
            return self._contracts.get(key)

    def list_contracts(self) -> list[str]:
        with self._lock:
            return list(self._contracts.keys())

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._contracts

    def validate(self, key: str, data: Any) -> ValidationResult:
        """
        Validate ``data`` against the contract registered under ``key``.

        Runs the structural schema first; validation rules only run (in
        registration order, against the parsed value) when the schema passed.

        Returns:
            ValidationResult whose ``is_valid`` is true iff no errors were produced
        """
        started = time.perf_counter()
        contract = self.get(key)
        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []

        if contract is None:
            suggestions = suggest_similar_keys(key, self.list_contracts())
            hint = f"Register a data contract for {key} using ContractRegistry.register()"
            errors.append(
                ValidationError(
                    code="SCHEMA_NOT_FOUND",
                    message=f"No data contract registered for: {key}",
                    severity=Severity.CRITICAL,
                    category=ErrorCategory.SCHEMA_VIOLATION,
                    suggestion=" ".join([hint, *suggestions]),
                )
            )
            return self._result(errors, warnings, started)

        outcome = contract.schema.validate(data)
        for field_error in outcome.errors:
            errors.append(
                ValidationError(
                    code="SCHEMA_VALIDATION_ERROR",
                    message=(
                        f"{field_error.path}: {field_error.message}"
                        if field_error.path
                        else field_error.message
                    ),
                    severity=Severity.HIGH,
                    category=ErrorCategory.SCHEMA_VIOLATION,
                    location=field_error.path or None,
                )
            )

        if outcome.ok:
            for rule in contract.validation_rules:
                if not self._rule_passes(key, rule, outcome.value):
                    errors.append(
                        ValidationError(
                            code="CUSTOM_VALIDATION_FAILED",
                            message=rule.error_message,
                            severity=rule.severity or Severity.MEDIUM,
                            category=ErrorCategory.SCHEMA_VIOLATION,
                        )
                    )

        return self._result(errors, warnings, started)

    def run_quality_checks(self, key: str, data: Any) -> list[QualityCheckOutcome]:
        """
        Run the contract's quality checks against ``data``.

        Checks only run on values that pass the structural schema; an unknown
        key or a schema failure yields an empty list.
        """
        contract = self.get(key)
        if contract is None:
            return []
        outcome = contract.schema.validate(data)
        if not outcome.ok:
            return []

        results = []
        for check in contract.quality_checks:
            try:
                result = check.fn(outcome.value)
            except Exception as exc:
                logger.warning("quality_check_failed", key=key, check=check.name, error=str(exc))
                results.append(
                    QualityCheckOutcome(
                        name=check.name, passed=False, score=0, details=f"Check raised: {exc}"
                    )
                )
                continue
            results.append(
                QualityCheckOutcome(
                    name=check.name,
                    passed=result.passed,
                    score=result.score,
                    details=result.details,
                )
            )
        return results

    @staticmethod
    def _rule_passes(key: str, rule: Any, value: Any) -> bool:
        try:
            return bool(rule.predicate(value))
        except Exception as exc:
            logger.warning("validation_rule_raised", key=key, rule=rule.name, error=str(exc))
            return False

    def _result(
        self,
        errors: list[ValidationError],
        warnings: list[ValidationWarning],
        started: float,
    ) -> ValidationResult:
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            metadata=ValidationMetadata(
                timestamp=utc_now().isoformat(),
                environment=self.environment,
                execution_time_ms=(time.perf_counter() - started) * 1000,
            ),
        )
