"""
Balanced Ternary Codec

Integer <-> balanced-ternary numerals and state-vector <-> string encoding.

Digits are written most-significant first using '+' (+1), '0' (0) and
'-' (-1). Decoding also accepts the unicode minus and the trit aliases
understood by BalancedTrit.from_symbol.

Examples:
    to_balanced(8)        -> "+0-"     (9 + 0 - 1)
    from_balanced("-+")   -> -2        (-3 + 1)
    encode_states([TRUE, UNKNOWN, FALSE]) -> "+0-"
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .models.enums import BalancedTrit, TernaryState
from .models.vector import TernaryVector


def _truncating_divmod(value: int, divisor: int) -> tuple[int, int]:
    """
    Division rounding toward zero; the remainder takes the dividend's sign.

    Python's ``divmod`` floors, which yields the wrong digits for
    negative numbers in the balanced-ternary conversion.
    """
    quotient, remainder = divmod(abs(value), divisor)
    if value < 0:
        return -quotient, -remainder
    return quotient, remainder


def to_trits(value: int) -> list[BalancedTrit]:
    """
    Convert an integer to balanced trits, least-significant first.

    Zero is the single digit ZERO.
    """
    if value == 0:
        return [BalancedTrit.ZERO]

    trits: list[BalancedTrit] = []
    while value != 0:
        value, remainder = _truncating_divmod(value, 3)
        if remainder == 2:
            remainder = -1
            value += 1
        elif remainder == -2:
            remainder = 1
            value -= 1
        trits.append(BalancedTrit.from_int(remainder))

    return trits


def from_trits(trits: Iterable[BalancedTrit]) -> int:
    """Sum least-significant-first trits back into an integer."""
    return sum(trit.to_int() * 3 ** power for power, trit in enumerate(trits))


def to_balanced(value: int) -> str:
    """Convert an integer to a balanced-ternary string (MSD first)."""
    return "".join(trit.symbol() for trit in reversed(to_trits(value)))


def from_balanced(balanced: str) -> int:
    """
    Parse a balanced-ternary string (MSD first).

    An empty or blank string is zero.

    Raises:
        InvalidTritSymbolError: If a character is not a trit symbol
    """
    normalized = balanced.strip()
    total = 0
    for char in normalized:
        total = total * 3 + BalancedTrit.from_symbol(char).to_int()
    return total


def encode_states(values: Iterable[Any]) -> str:
    """Encode coercible values as one trit symbol per element, in order."""
    return TernaryVector.make(values).to_balanced_string()


def decode_states(encoded: str) -> TernaryVector:
    """
    Decode a trit string back into a vector of states, preserving order.

    Raises:
        InvalidTritSymbolError: If a character is not a trit symbol
    """
    return TernaryVector(
        TernaryState.from_balanced_trit(BalancedTrit.from_symbol(char))
        for char in encoded
    )
