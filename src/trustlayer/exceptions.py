"""
Trust Layer Exception Classes

Structured error classes with error codes, contextual messages, and suggestions.

Validation, detection and telemetry problems are reported as results, never
raised. These exceptions cover configuration and programming errors, plus the
opt-in safety gate exception for callers that prefer raising over checking
``SafetyCheckResult.is_safe``.
"""

from enum import Enum
from typing import List, Optional


class TrustErrorCode(Enum):
    """Error codes for Trust Layer exceptions."""

    # Configuration Errors (TRUST-001 to TRUST-099)
    INVALID_CONFIG = "TRUST-001"
    CONFIG_FILE_UNREADABLE = "TRUST-002"

    # Contract Errors (TRUST-100 to TRUST-199)
    INVALID_CONTRACT = "TRUST-100"

    # Safety Gate Errors (TRUST-200 to TRUST-299)
    OPERATION_BLOCKED = "TRUST-200"

    # Observability Errors (TRUST-300 to TRUST-399)
    ENGINE_SHUT_DOWN = "TRUST-300"


class TrustError(Exception):
    """
    Base exception for Trust Layer errors.

    All Trust Layer exceptions include:
    - Error code for searchability
    - Contextual error message
    - Suggested actions to resolve

    Example:
        raise TrustError(
            message="contract key cannot be empty",
            code=TrustErrorCode.INVALID_CONTRACT,
            suggestions=["Register contracts under the entity name, e.g. 'task'"],
        )
    """

    def __init__(
        self,
        message: str,
        code: TrustErrorCode,
        suggestions: Optional[List[str]] = None,
        cause: Optional[Exception] = None,
    ):
        """
        Initialize TrustError.

        Args:
            message: Clear description of what went wrong
            code: Error code from TrustErrorCode enum
            suggestions: List of suggested actions to resolve the error
            cause: Original exception that caused this error (if wrapping)
        """
        self.code = code
        self.suggestions = suggestions or []
        self.cause = cause
        self.raw_message = message

        super().__init__(self._format_message(message))

    def _format_message(self, message: str) -> str:
        """Format error message with code and suggestions."""

        lines = [
            f"{self.__class__.__name__} ({self.code.value}): {message}",
        ]

        if self.suggestions:
            lines.append("")
            lines.append("Suggested actions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {str(self.cause)}")

        return "\n".join(lines)


# Specific Error Classes


class TrustConfigError(TrustError):
    """Raised when trust layer configuration is invalid or unreadable."""

    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        cause: Optional[Exception] = None,
        code: TrustErrorCode = TrustErrorCode.INVALID_CONFIG,
    ):
        super().__init__(
            message=message,
            code=code,
            suggestions=suggestions,
            cause=cause,
        )


class TrustContractError(TrustError):
    """Raised when a data contract cannot be registered or looked up."""

    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        code: TrustErrorCode = TrustErrorCode.INVALID_CONTRACT,
    ):
        super().__init__(
            message=message,
            code=code,
            suggestions=suggestions,
        )


class SafetyGateError(TrustError):
    """Raised by ``SafetyCheckResult.raise_for_blocked`` for an unsafe operation."""

    def __init__(
        self,
        message: str,
        blocked_actions: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.blocked_actions = blocked_actions or []
        super().__init__(
            message=message,
            code=TrustErrorCode.OPERATION_BLOCKED,
            suggestions=suggestions,
        )


# Utility Functions for Error Suggestions


def suggest_similar_keys(
    invalid_key: str,
    valid_keys: List[str],
    max_suggestions: int = 3,
) -> List[str]:
    """
    Generate "Did you mean?" suggestions for contract key typos.

    Args:
        invalid_key: The unknown key provided by the caller
        valid_keys: Keys that are registered
        max_suggestions: Maximum number of suggestions to return

    Returns:
        List of suggestion strings (empty if nothing is registered)
    """
    from difflib import get_close_matches

    if not valid_keys:
        return []

    similar = get_close_matches(
        invalid_key,
        valid_keys,
        n=max_suggestions,
        cutoff=0.6,
    )

    if similar:
        return [f"Did you mean '{key}'?" for key in similar]
    return [f"Registered contracts: {format_key_list(sorted(valid_keys))}"]


def format_key_list(keys: List[str]) -> str:
    """Format a list of keys for error messages."""
    return ", ".join(f"'{key}'" for key in keys)
