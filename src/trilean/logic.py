"""
Ternary Algebra

Coercion and the elementary operators over three-valued states.

All operators are variadic over a resolved vector: arguments may be
states, coercible values, or nested iterables of either.

    and_(TRUE, UNKNOWN)        -> UNKNOWN   (FALSE dominates)
    or_(FALSE, UNKNOWN)        -> UNKNOWN   (TRUE dominates)
    xor(TRUE, FALSE)           -> UNKNOWN   (tie between TRUE and FALSE)
    weighted([TRUE, FALSE, UNKNOWN], [1, 2, 1]) -> FALSE
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Optional

from .codec import decode_states, encode_states
from .exceptions import EvaluatorNotConfiguredError
from .models.enums import TernaryState
from .models.vector import TernaryVector

if TYPE_CHECKING:
    from .engine.expression import ExpressionEvaluator


# =============================================================================
# Functional API
# =============================================================================

def coerce(value: Any) -> TernaryState:
    """
    Coerce any supported value to a TernaryState.

    Raises:
        UnsupportedValueError: For unrecognised types or strings
    """
    return TernaryState.from_mixed(value)


def vector(values: Any) -> TernaryVector:
    return TernaryVector.make(values)


def and_(*values: Any) -> TernaryState:
    return TernaryVector.make(values).and_()


def or_(*values: Any) -> TernaryState:
    return TernaryVector.make(values).or_()


def xor(*values: Any) -> TernaryState:
    return TernaryVector.make(values).xor()


def not_(value: Any) -> TernaryState:
    return coerce(value).invert()


def weighted(values: Iterable[Any], weights: Optional[Iterable[Any]] = None) -> TernaryState:
    return TernaryVector.make(values).weighted(weights)


def consensus(values: Iterable[Any]) -> TernaryState:
    return TernaryVector.make(values).consensus()


def score(values: Iterable[Any]) -> int:
    return TernaryVector.make(values).score()


# =============================================================================
# Logic Service
# =============================================================================

class TernaryLogic:
    """
    Algebra, codec and expression evaluation behind one object.

    The expression evaluator is optional; asking for an expression
    without one bound raises EvaluatorNotConfiguredError.

    Usage:
        logic = TernaryLogic(ExpressionEvaluator())
        logic.and_(True, "maybe")                     # UNKNOWN
        logic.expression("a OR b", {"a": False, "b": True})  # TRUE
    """

    def __init__(self, expression_evaluator: Optional[ExpressionEvaluator] = None):
        self._expression_evaluator = expression_evaluator

    def set_expression_evaluator(self, evaluator: ExpressionEvaluator) -> None:
        self._expression_evaluator = evaluator

    @property
    def expression_evaluator(self) -> Optional[ExpressionEvaluator]:
        return self._expression_evaluator

    def normalise(self, value: Any) -> TernaryState:
        return coerce(value)

    def vector(self, values: Any) -> TernaryVector:
        return vector(values)

    def and_(self, *values: Any) -> TernaryState:
        return and_(*values)

    def or_(self, *values: Any) -> TernaryState:
        return or_(*values)

    def xor(self, *values: Any) -> TernaryState:
        return xor(*values)

    def not_(self, value: Any) -> TernaryState:
        return not_(value)

    def weighted(self, values: Iterable[Any], weights: Optional[Iterable[Any]] = None) -> TernaryState:
        return weighted(values, weights)

    def consensus(self, values: Iterable[Any]) -> TernaryState:
        return consensus(values)

    def score(self, values: Iterable[Any]) -> int:
        return score(values)

    def expression(self, expression: str, context: Optional[Mapping[str, Any]] = None) -> TernaryState:
        """
        Evaluate a logic expression against a context.

        Raises:
            EvaluatorNotConfiguredError: If no evaluator is bound
        """
        if self._expression_evaluator is None:
            raise EvaluatorNotConfiguredError(
                message="Expression evaluator not configured",
                details={"expression": expression},
            )
        return self._expression_evaluator.evaluate(expression, context or {}, self)

    def encode(self, values: Iterable[Any]) -> str:
        return encode_states(values)

    def decode(self, encoded: str) -> TernaryVector:
        return decode_states(encoded)


_default_logic: Optional[TernaryLogic] = None


def get_default_logic() -> TernaryLogic:
    """Get or create the shared logic service with the standard evaluator bound."""
    global _default_logic
    if _default_logic is None:
        from .engine.expression import ExpressionEvaluator

        _default_logic = TernaryLogic(ExpressionEvaluator())
    return _default_logic
