"""
Trilean Helpers

Plain-bool shortcuts over ternary coercion for call sites that only need
a yes/no answer.

    if and_all(user.verified, user.consent): ...
    label = pick(status, "Yes", "No", "Maybe")
    require_true(user.verified, "User must be verified")
"""
from __future__ import annotations

from collections.abc import Callable
from typing import Any, Optional, TypeVar

from .exceptions import TernaryAssertionError
from .models.enums import TernaryState

T = TypeVar("T")


def is_true(value: Any) -> bool:
    return TernaryState.from_mixed(value).is_true()


def is_false(value: Any) -> bool:
    return TernaryState.from_mixed(value).is_false()


def is_unknown(value: Any) -> bool:
    return TernaryState.from_mixed(value).is_unknown()


def and_all(*values: Any) -> bool:
    """True only when every value is TRUE (UNKNOWN counts as failure)."""
    return all(is_true(value) for value in values)


def or_any(*values: Any) -> bool:
    return any(is_true(value) for value in values)


def pick(condition: Any, if_true: Any, if_false: Any, if_unknown: Any = None) -> Any:
    """Select by state; UNKNOWN falls back to ``if_false`` when ``if_unknown`` is None."""
    state = TernaryState.from_mixed(condition)
    if state is TernaryState.TRUE:
        return if_true
    if state is TernaryState.FALSE:
        return if_false
    return if_unknown if if_unknown is not None else if_false


def when_true(condition: Any, callback: Callable[[], T]) -> Optional[T]:
    return callback() if is_true(condition) else None


def when_false(condition: Any, callback: Callable[[], T]) -> Optional[T]:
    return callback() if is_false(condition) else None


def when_unknown(condition: Any, callback: Callable[[], T]) -> Optional[T]:
    return callback() if is_unknown(condition) else None


def vote(*values: Any) -> str:
    """
    Plurality vote over coerced values.

    Returns "true" or "false" when that state strictly outnumbers both
    others, otherwise "tie".
    """
    counts = {state: 0 for state in TernaryState}
    for value in values:
        counts[TernaryState.from_mixed(value)] += 1

    trues = counts[TernaryState.TRUE]
    falses = counts[TernaryState.FALSE]
    unknowns = counts[TernaryState.UNKNOWN]

    if trues > falses and trues > unknowns:
        return "true"
    if falses > trues and falses > unknowns:
        return "false"
    return "tie"


def safe_bool(value: Any, default: bool = False) -> bool:
    return TernaryState.from_mixed(value).to_bool(unknown_as=default)


def require_true(value: Any, message: str = "Value must be true") -> None:
    """
    Raises:
        TernaryAssertionError: Unless the value is TRUE
    """
    state = TernaryState.from_mixed(value)
    if not state.is_true():
        raise TernaryAssertionError(message=message, details={"state": state.value})


def require_not_false(value: Any, message: str = "Value cannot be false") -> None:
    """
    Raises:
        TernaryAssertionError: If the value is FALSE (TRUE and UNKNOWN pass)
    """
    state = TernaryState.from_mixed(value)
    if state.is_false():
        raise TernaryAssertionError(message=message, details={"state": state.value})
