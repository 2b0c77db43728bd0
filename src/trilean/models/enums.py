"""
Trilean Enumerations

Three-valued states, their balanced-ternary numeric twins, and the closed
set of gate operators understood by the decision engine.

Isomorphism:
    TernaryState.TRUE    <-> BalancedTrit.POSITIVE (+1)
    TernaryState.UNKNOWN <-> BalancedTrit.ZERO     ( 0)
    TernaryState.FALSE   <-> BalancedTrit.NEGATIVE (-1)
"""
from __future__ import annotations

import logging
from enum import Enum, IntEnum
from typing import Any, Optional

from ..exceptions import InvalidTritSymbolError, UnsupportedValueError

logger = logging.getLogger(__name__)


# =============================================================================
# Balanced Trit
# =============================================================================

POSITIVE_SYMBOLS = frozenset({"+", "1", "T", "TRUE", "P", "POS", "POSITIVE"})
ZERO_SYMBOLS = frozenset({"0", ".", "Z", "U", "UNK", "UNKNOWN"})
NEGATIVE_SYMBOLS = frozenset({"-", "−", "F", "FALSE", "N", "NEG", "NEGATIVE"})


class BalancedTrit(IntEnum):
    """A balanced ternary digit: +1, 0 or -1."""
    POSITIVE = 1
    ZERO = 0
    NEGATIVE = -1

    @classmethod
    def from_int(cls, value: int) -> BalancedTrit:
        """Map an integer to the trit carrying its sign."""
        if value > 0:
            return cls.POSITIVE
        if value < 0:
            return cls.NEGATIVE
        return cls.ZERO

    @classmethod
    def from_symbol(cls, symbol: str) -> BalancedTrit:
        """
        Parse a trit symbol or alias (case-insensitive).

        Raises:
            InvalidTritSymbolError: If the symbol is empty or unrecognised
        """
        trimmed = symbol.strip()
        if not trimmed:
            raise InvalidTritSymbolError(
                message="Balanced trit symbol cannot be empty",
                details={"symbol": symbol},
            )

        upper = trimmed.upper()
        if upper in POSITIVE_SYMBOLS:
            return cls.POSITIVE
        if upper in ZERO_SYMBOLS:
            return cls.ZERO
        if upper in NEGATIVE_SYMBOLS:
            return cls.NEGATIVE

        raise InvalidTritSymbolError(
            message=f"Unrecognised balanced trit symbol: {symbol!r}",
            details={"symbol": symbol},
        )

    def symbol(self) -> str:
        if self is BalancedTrit.POSITIVE:
            return "+"
        if self is BalancedTrit.NEGATIVE:
            return "-"
        return "0"

    def invert(self) -> BalancedTrit:
        return BalancedTrit(-self.value)

    def to_int(self) -> int:
        return int(self.value)

    def to_state(self) -> TernaryState:
        return TernaryState.from_balanced_trit(self)


# =============================================================================
# Ternary State
# =============================================================================

TRUE_ALIASES = frozenset({
    "true", "1", "yes", "on", "enable", "enabled", "y", "affirmative",
})
FALSE_ALIASES = frozenset({
    "false", "0", "no", "off", "disable", "disabled", "n", "negative",
})
UNKNOWN_ALIASES = frozenset({
    "unknown", "null", "undefined", "pending", "maybe", "auto",
})


class TernaryState(Enum):
    """
    Three-valued logic state (Kleene logic).

    Every observed signal resolves to one of:
    - TRUE: Signal is definitely affirmative
    - FALSE: Signal is definitely negative
    - UNKNOWN: Signal is missing, pending or undecided

    Truth Tables:

    AND:
        AND    | TRUE    FALSE   UNKNOWN
        -------|------------------------
        TRUE   | TRUE    FALSE   UNKNOWN
        FALSE  | FALSE   FALSE   FALSE
        UNKNOWN| UNKNOWN FALSE   UNKNOWN

    OR:
        OR     | TRUE    FALSE   UNKNOWN
        -------|------------------------
        TRUE   | TRUE    TRUE    TRUE
        FALSE  | TRUE    FALSE   UNKNOWN
        UNKNOWN| TRUE    UNKNOWN UNKNOWN

    NOT:
        NOT TRUE = FALSE
        NOT FALSE = TRUE
        NOT UNKNOWN = UNKNOWN
    """
    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"

    def __and__(self, other: TernaryState) -> TernaryState:
        """Kleene AND: False dominates, Unknown propagates."""
        if not isinstance(other, TernaryState):
            return NotImplemented

        if self is TernaryState.FALSE or other is TernaryState.FALSE:
            return TernaryState.FALSE
        if self is TernaryState.UNKNOWN or other is TernaryState.UNKNOWN:
            return TernaryState.UNKNOWN
        return TernaryState.TRUE

    def __or__(self, other: TernaryState) -> TernaryState:
        """Kleene OR: True dominates, Unknown propagates."""
        if not isinstance(other, TernaryState):
            return NotImplemented

        if self is TernaryState.TRUE or other is TernaryState.TRUE:
            return TernaryState.TRUE
        if self is TernaryState.UNKNOWN or other is TernaryState.UNKNOWN:
            return TernaryState.UNKNOWN
        return TernaryState.FALSE

    def __invert__(self) -> TernaryState:
        return self.invert()

    def __bool__(self) -> bool:
        """
        Convert to bool for Python if statements.

        Raises ValueError for UNKNOWN to force explicit handling.
        """
        if self is TernaryState.UNKNOWN:
            raise ValueError(
                "Cannot convert TernaryState.UNKNOWN to bool. "
                "Use to_bool(unknown_as=...) or handle UNKNOWN explicitly."
            )
        return self is TernaryState.TRUE

    def __str__(self) -> str:
        return self.value

    # -------------------------------------------------------------------------
    # Coercion
    # -------------------------------------------------------------------------

    @classmethod
    def from_mixed(cls, value: Any) -> TernaryState:
        """
        Coerce a heterogeneous value to a ternary state.

        Rules:
        - TernaryState: itself
        - BalancedTrit: via the trit/state isomorphism
        - bool: TRUE/FALSE
        - None: UNKNOWN
        - int: 1 -> TRUE, 0 -> FALSE, -1 -> UNKNOWN, otherwise by sign
        - str: trimmed, case-folded alias lookup

        Raises:
            UnsupportedValueError: For unknown strings and any other type
        """
        if isinstance(value, TernaryState):
            return value
        if isinstance(value, BalancedTrit):
            return cls.from_balanced_trit(value)
        if isinstance(value, bool):
            return cls.TRUE if value else cls.FALSE
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, int):
            return cls._from_int(value)
        if isinstance(value, str):
            return cls._from_string(value)

        raise UnsupportedValueError(
            message=f"Unsupported value type for ternary conversion: {type(value).__name__}",
            details={"type": type(value).__name__},
        )

    @classmethod
    def _from_int(cls, value: int) -> TernaryState:
        # -1 is the conventional "unknown" sentinel, unlike the trit mapping
        if value == 1:
            return cls.TRUE
        if value == 0:
            return cls.FALSE
        if value == -1:
            return cls.UNKNOWN
        return cls.TRUE if value > 0 else cls.FALSE

    @classmethod
    def _from_string(cls, value: str) -> TernaryState:
        normalized = value.strip().casefold()
        if normalized in TRUE_ALIASES:
            return cls.TRUE
        if normalized in FALSE_ALIASES:
            return cls.FALSE
        if normalized in UNKNOWN_ALIASES:
            return cls.UNKNOWN

        raise UnsupportedValueError(
            message=f"Cannot derive ternary state from string value: {value!r}",
            details={"value": value},
        )

    @classmethod
    def from_balanced_trit(cls, trit: BalancedTrit) -> TernaryState:
        if trit is BalancedTrit.POSITIVE:
            return cls.TRUE
        if trit is BalancedTrit.NEGATIVE:
            return cls.FALSE
        return cls.UNKNOWN

    # -------------------------------------------------------------------------
    # Conversions
    # -------------------------------------------------------------------------

    def to_balanced_trit(self) -> BalancedTrit:
        if self is TernaryState.TRUE:
            return BalancedTrit.POSITIVE
        if self is TernaryState.FALSE:
            return BalancedTrit.NEGATIVE
        return BalancedTrit.ZERO

    def invert(self) -> TernaryState:
        """Swap TRUE and FALSE; UNKNOWN stays UNKNOWN."""
        if self is TernaryState.TRUE:
            return TernaryState.FALSE
        if self is TernaryState.FALSE:
            return TernaryState.TRUE
        return TernaryState.UNKNOWN

    def to_int(self) -> int:
        """Signed value: TRUE=+1, FALSE=-1, UNKNOWN=0."""
        return self.to_balanced_trit().to_int()

    def to_nullable_bool(self) -> Optional[bool]:
        if self is TernaryState.UNKNOWN:
            return None
        return self is TernaryState.TRUE

    def to_bool(self, unknown_as: bool = False) -> bool:
        """Collapse to a plain bool, mapping UNKNOWN to ``unknown_as``."""
        if self is TernaryState.UNKNOWN:
            return unknown_as
        return self is TernaryState.TRUE

    def label(self) -> str:
        return self.name.capitalize()

    def is_true(self) -> bool:
        return self is TernaryState.TRUE

    def is_false(self) -> bool:
        return self is TernaryState.FALSE

    def is_unknown(self) -> bool:
        return self is TernaryState.UNKNOWN

    def is_known(self) -> bool:
        return self is not TernaryState.UNKNOWN


# =============================================================================
# Gate Operators
# =============================================================================

class GateOperator(str, Enum):
    """Operators a blueprint gate can apply to its resolved operands."""
    AND = "and"
    OR = "or"
    NOT = "not"
    CONSENSUS = "consensus"
    WEIGHTED = "weighted"
    EXPRESSION = "expression"

    @classmethod
    def parse(cls, value: Any) -> GateOperator:
        """
        Parse an operator name (case-insensitive).

        Unrecognised names fall back to AND.
        """
        if isinstance(value, GateOperator):
            return value
        if value is None:
            return cls.AND

        name = str(value).strip().lower()
        for operator in cls:
            if operator.value == name:
                return operator

        logger.warning("Unknown gate operator %r, falling back to AND", value)
        return cls.AND

    @property
    def label(self) -> str:
        return self.name
