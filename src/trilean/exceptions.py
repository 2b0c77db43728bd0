"""
Trilean Exception Hierarchy

Domain-specific exceptions for ternary logic evaluation.
All exceptions include error codes for tracking and logging.

Exception codes follow the pattern: TL_<SPECIFIC>
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class TrileanError(Exception):
    """
    Base exception for all Trilean errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (TL_*)
        details: Additional context about the error
    """
    message: str
    code: str = "TL_INTERNAL_ERROR"
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for logging/CLI output."""
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Coercion / Codec Errors
# =============================================================================

@dataclass
class UnsupportedValueError(TrileanError):
    """Value cannot be coerced to a ternary state."""
    code: str = "TL_UNSUPPORTED_VALUE"


@dataclass
class InvalidTritSymbolError(TrileanError):
    """Character is not a recognised balanced trit symbol."""
    code: str = "TL_INVALID_TRIT_SYMBOL"


# =============================================================================
# Evaluation Errors
# =============================================================================

@dataclass
class UndefinedOperandError(TrileanError):
    """Gate operand references a name absent from inputs and decisions."""
    code: str = "TL_UNDEFINED_OPERAND"


@dataclass
class EvaluatorNotConfiguredError(TrileanError):
    """Expression evaluation requested without an evaluator bound."""
    code: str = "TL_EVALUATOR_NOT_CONFIGURED"


@dataclass
class ExpressionSyntaxError(TrileanError):
    """Expression is malformed (unbalanced parentheses, missing operands)."""
    code: str = "TL_EXPRESSION_SYNTAX"


@dataclass
class TernaryAssertionError(TrileanError):
    """A required ternary condition did not hold."""
    code: str = "TL_ASSERTION_FAILED"


# =============================================================================
# Blueprint File Errors
# =============================================================================

@dataclass
class BlueprintLoadError(TrileanError):
    """Failed to read a blueprint file."""
    code: str = "TL_BLUEPRINT_LOAD_ERROR"


@dataclass
class BlueprintValidationError(TrileanError):
    """Blueprint schema or reference validation failed."""
    code: str = "TL_BLUEPRINT_VALIDATION_ERROR"


@dataclass
class BlueprintVersionMismatch(TrileanError):
    """Blueprint schema version is not compatible."""
    code: str = "TL_BLUEPRINT_VERSION_MISMATCH"
