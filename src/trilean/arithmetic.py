"""
Balanced Ternary Arithmetic

Digit-wise addition and subtraction on balanced trits, plus a noise
normalization helper for signal vectors dominated by UNKNOWN.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from itertools import zip_longest
from typing import Any

from .codec import from_trits, to_trits
from .models.enums import BalancedTrit, TernaryState


def add_trits(
    a: BalancedTrit,
    b: BalancedTrit,
    carry: BalancedTrit = BalancedTrit.ZERO,
) -> tuple[BalancedTrit, BalancedTrit]:
    """
    Full adder for balanced trits.

    A column sums to -3..3; anything outside -1..1 carries one unit of 3.

    Returns:
        Tuple of (digit, carry_out)
    """
    total = a.to_int() + b.to_int() + carry.to_int()
    if total > 1:
        return BalancedTrit.from_int(total - 3), BalancedTrit.POSITIVE
    if total < -1:
        return BalancedTrit.from_int(total + 3), BalancedTrit.NEGATIVE
    return BalancedTrit.from_int(total), BalancedTrit.ZERO


def add(a: int, b: int) -> int:
    """Add two integers digit by digit in balanced ternary."""
    result: list[BalancedTrit] = []
    carry = BalancedTrit.ZERO

    for a_trit, b_trit in zip_longest(to_trits(a), to_trits(b), fillvalue=BalancedTrit.ZERO):
        digit, carry = add_trits(a_trit, b_trit, carry)
        result.append(digit)

    if carry is not BalancedTrit.ZERO:
        result.append(carry)

    return from_trits(result)


def subtract(a: int, b: int) -> int:
    """Subtract by adding the negation."""
    return add(a, -b)


def normalize_noise(values: Iterable[Any], threshold: float = 0.5) -> list[TernaryState]:
    """
    Replace a noisy signal with its dominant known state.

    If the fraction of UNKNOWN values exceeds ``threshold``, every element
    becomes the most frequent non-UNKNOWN state (UNKNOWN when there is none).
    Otherwise the coerced states are returned unchanged.
    """
    states = [TernaryState.from_mixed(value) for value in values]
    total = len(states)
    if total == 0:
        return []

    unknowns = sum(1 for state in states if state is TernaryState.UNKNOWN)
    if unknowns / total <= threshold:
        return states

    signals = Counter(state for state in states if state is not TernaryState.UNKNOWN)
    if not signals:
        return [TernaryState.UNKNOWN] * total

    dominant, _ = signals.most_common(1)[0]
    return [dominant] * total
