"""
Trust Layer - data contracts, production safety gating and observability.

Validates data before it is persisted and records how every operation that
passes through it behaves.
"""

__version__ = "0.1.0"

from trustlayer.config import (
    AlertThresholds,
    ObservabilityConfig,
    SafetyConfig,
    TrustConfig,
    clear_config_cache,
    load_config,
)
from trustlayer.contracts import (
    ContractRegistry,
    DataContract,
    PydanticSchema,
    QualityCheck,
    QualityResult,
    ValidationRule,
)
from trustlayer.exceptions import (
    SafetyGateError,
    TrustConfigError,
    TrustContractError,
    TrustError,
    TrustErrorCode,
)
from trustlayer.integration import TrustLayer, WriteOutcome
from trustlayer.observability import ObservabilityEngine, traced, with_observability
from trustlayer.quality import DataQualityAnalyzer, DataQualityMetrics
from trustlayer.results import (
    ErrorCategory,
    Severity,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)
from trustlayer.safety import PlaceholderDetector, ProductionSafety, SafetyCheckResult

__all__ = [
    "__version__",
    "AlertThresholds",
    "ContractRegistry",
    "DataContract",
    "DataQualityAnalyzer",
    "DataQualityMetrics",
    "ErrorCategory",
    "ObservabilityConfig",
    "ObservabilityEngine",
    "PlaceholderDetector",
    "ProductionSafety",
    "PydanticSchema",
    "QualityCheck",
    "QualityResult",
    "SafetyCheckResult",
    "SafetyConfig",
    "SafetyGateError",
    "Severity",
    "TrustConfig",
    "TrustConfigError",
    "TrustContractError",
    "TrustError",
    "TrustErrorCode",
    "TrustLayer",
    "ValidationError",
    "ValidationResult",
    "ValidationRule",
    "ValidationWarning",
    "WriteOutcome",
    "clear_config_cache",
    "load_config",
    "traced",
    "with_observability",
]
