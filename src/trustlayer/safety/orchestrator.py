"""
Production safety orchestrator.

Combines the contract registry, placeholder detector and quality analyzer
behind one decision function, ``perform_safety_check``. The orchestrator never
mutates or persists data; an unsafe result is reported, and the caller must
treat ``is_safe=False`` as a hard abort of the pending write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from trustlayer.config import SafetyConfig
from trustlayer.contracts.registry import ContractRegistry, QualityCheckOutcome
from trustlayer.contracts.schema import DataContract
from trustlayer.exceptions import SafetyGateError
from trustlayer.logging import get_logger
from trustlayer.quality.analyzer import DataQualityAnalyzer, DataQualityMetrics
from trustlayer.results import Severity, ValidationError, ValidationResult
from trustlayer.safety.placeholders import PlaceholderDetector

logger = get_logger(__name__)

PLACEHOLDER_RECOMMENDATION = "Remove all placeholder values before deploying"


@dataclass(frozen=True)
class SafetyCheck:
    name: str
    passed: bool
    message: str
    severity: Severity


@dataclass
class SafetyCheckResult:
    """Outcome of one safety gate evaluation."""

    is_safe: bool
    environment: str
    checks: list[SafetyCheck] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    blocked_actions: list[str] = field(default_factory=list)
    placeholder_errors: list[ValidationError] = field(default_factory=list)

    @property
    def failed_checks(self) -> list[SafetyCheck]:
        return [check for check in self.checks if not check.passed]

    def raise_for_blocked(self) -> None:
        """Raise SafetyGateError if the gate did not pass."""

        if self.is_safe:
            return
        raise self.blocked_error()

    def blocked_error(self) -> SafetyGateError:
        failed = ", ".join(check.message for check in self.failed_checks) or "operation blocked"
        return SafetyGateError(
            f"Safety check failed in {self.environment}: {failed}",
            blocked_actions=list(self.blocked_actions),
            suggestions=list(self.recommendations),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_safe": self.is_safe,
            "environment": self.environment,
            "checks": [
                {
                    "name": check.name,
                    "passed": check.passed,
                    "message": check.message,
                    "severity": check.severity.value,
                }
                for check in self.checks
            ],
            "recommendations": list(self.recommendations),
            "blocked_actions": list(self.blocked_actions),
            "placeholder_errors": [error.to_dict() for error in self.placeholder_errors],
        }


class ProductionSafety:
    """
    Safety orchestrator for one environment.

    Owns a ContractRegistry, a PlaceholderDetector and a DataQualityAnalyzer
    configured from a SafetyConfig.
    """

    def __init__(
        self,
        config: Optional[SafetyConfig] = None,
        *,
        registry: Optional[ContractRegistry] = None,
        analyzer: Optional[DataQualityAnalyzer] = None,
    ) -> None:
        self.config = config or SafetyConfig()
        self.registry = registry or ContractRegistry(self.config.environment)
        self.detector = PlaceholderDetector(self.config.environment)
        self.analyzer = analyzer or DataQualityAnalyzer()

    def perform_safety_check(self, operation: str, data: Any = None) -> SafetyCheckResult:
        """
        Evaluate whether ``operation`` may proceed with ``data``.

        Checks run in order: environment, placeholders (production/staging
        only), data contract, observability. ``data=None`` means no payload.
        """
        config = self.config
        checks: list[SafetyCheck] = []
        recommendations: list[str] = []
        blocked_actions: list[str] = []
        placeholder_errors: list[ValidationError] = []

        checks.append(
            SafetyCheck(
                name="environment_check",
                passed=True,
                message=f"Running in {config.environment} environment",
                severity=Severity.LOW,
            )
        )

        has_data = data is not None

        if (config.is_production or config.is_staging) and config.block_placeholders and has_data:
            placeholder_errors = self.detect_placeholders(data)
            if placeholder_errors:
                checks.append(
                    SafetyCheck(
                        name="placeholder_check",
                        passed=False,
                        message=f"{len(placeholder_errors)} placeholder(s) detected",
                        severity=Severity.CRITICAL if config.is_production else Severity.HIGH,
                    )
                )
                blocked_actions.append(operation)
                recommendations.append(PLACEHOLDER_RECOMMENDATION)
            else:
                checks.append(
                    SafetyCheck(
                        name="placeholder_check",
                        passed=True,
                        message="No placeholders detected",
                        severity=Severity.LOW,
                    )
                )

        # Informational only: schema validation is a separate explicit call.
        if config.require_data_contracts and has_data:
            checks.append(
                SafetyCheck(
                    name="data_contract_check",
                    passed=True,
                    message="Data contract validation enabled",
                    severity=Severity.LOW,
                )
            )

        if config.enable_observability:
            checks.append(
                SafetyCheck(
                    name="observability_check",
                    passed=True,
                    message="Observability hooks enabled",
                    severity=Severity.LOW,
                )
            )

        is_safe = all(check.passed for check in checks) and not blocked_actions
        if not is_safe:
            logger.warning(
                "safety_check_failed",
                operation=operation,
                environment=config.environment,
                placeholders=len(placeholder_errors),
            )

        return SafetyCheckResult(
            is_safe=is_safe,
            environment=config.environment,
            checks=checks,
            recommendations=recommendations,
            blocked_actions=blocked_actions,
            placeholder_errors=placeholder_errors,
        )

    def validate(self, key: str, data: Any) -> ValidationResult:
        return self.registry.validate(key, data)

    def register_contract(self, key: str, contract: DataContract) -> DataContract:
        return self.registry.register(key, contract)

    def run_quality_checks(self, key: str, data: Any) -> list[QualityCheckOutcome]:
        return self.registry.run_quality_checks(key, data)

    def analyze_quality(self, dataset: Iterable[Any], schema: Any = None, **kwargs: Any) -> DataQualityMetrics:
        return self.analyzer.analyze(dataset, schema, **kwargs)

    def detect_placeholders(self, data: Any) -> list[ValidationError]:
        return self.detector.detect_any(data)

    def get_config(self) -> SafetyConfig:
        return self.config.model_copy()

    def update_config(self, **updates: Any) -> SafetyConfig:
        """Apply config updates; a new environment re-targets detector and registry."""

        self.config = SafetyConfig.model_validate({**self.config.model_dump(), **updates})
        self.detector = PlaceholderDetector(self.config.environment)
        self.registry.environment = self.config.environment
        logger.info("safety_config_updated", **{k: str(v) for k, v in updates.items()})
        return self.get_config()
