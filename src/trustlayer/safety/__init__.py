"""Placeholder detection and the production safety gate."""

from trustlayer.safety.orchestrator import (
    PLACEHOLDER_RECOMMENDATION,
    ProductionSafety,
    SafetyCheck,
    SafetyCheckResult,
)
from trustlayer.safety.placeholders import (
    PLACEHOLDER_PATTERNS,
    PLACEHOLDER_VALUES,
    MatchKind,
    PlaceholderDetector,
    PlaceholderPattern,
    placeholder_severity,
)

__all__ = [
    "PLACEHOLDER_PATTERNS",
    "PLACEHOLDER_RECOMMENDATION",
    "PLACEHOLDER_VALUES",
    "MatchKind",
    "PlaceholderDetector",
    "PlaceholderPattern",
    "ProductionSafety",
    "SafetyCheck",
    "SafetyCheckResult",
    "placeholder_severity",
]
