"""
Ternary Vectors

An ordered, immutable sequence of TernaryState values. Order matters for
encoding and duplicates are allowed. Vectors carry the variadic forms of
the ternary algebra (AND/OR/XOR/weighted vote) so every caller combines
states the same way.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any, Optional, Union, overload

from .enums import BalancedTrit, TernaryState


def _flatten(values: Any) -> Iterator[Any]:
    """Yield the leaves of arbitrarily nested iterables (strings are leaves)."""
    if isinstance(values, (TernaryState, str, bytes)) or not isinstance(values, Iterable):
        yield values
        return
    if isinstance(values, Mapping):
        values = values.values()
    for value in values:
        if isinstance(value, (TernaryState, str, bytes)) or value is None:
            yield value
        elif isinstance(value, Iterable):
            yield from _flatten(value)
        else:
            yield value


class TernaryVector(Sequence):
    """
    Immutable ordered collection of ternary states.

    Usage:
        vector = TernaryVector.make([True, "maybe", [0, None]])
        vector.score()         # 1 + 0 - 1 + 0 = 0
        vector.consensus()     # UNKNOWN
        vector.to_balanced_string()  # "+0-0"
    """

    __slots__ = ("_states",)

    def __init__(self, values: Any = ()) -> None:
        self._states: tuple[TernaryState, ...] = tuple(
            TernaryState.from_mixed(value) for value in _flatten(values)
        )

    @classmethod
    def make(cls, values: Any = None) -> TernaryVector:
        """Normalise any nested iterable of coercible values into a vector."""
        if isinstance(values, TernaryVector):
            return values
        return cls(values if values is not None else ())

    # -------------------------------------------------------------------------
    # Sequence protocol
    # -------------------------------------------------------------------------

    @overload
    def __getitem__(self, index: int) -> TernaryState: ...

    @overload
    def __getitem__(self, index: slice) -> TernaryVector: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[TernaryState, TernaryVector]:
        if isinstance(index, slice):
            return TernaryVector(self._states[index])
        return self._states[index]

    def __len__(self) -> int:
        return len(self._states)

    def __iter__(self) -> Iterator[TernaryState]:
        return iter(self._states)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TernaryVector):
            return self._states == other._states
        if isinstance(other, Sequence) and not isinstance(other, str):
            return self._states == tuple(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._states)

    def __repr__(self) -> str:
        return f"TernaryVector({self.to_balanced_string()!r})"

    def all(self) -> list[TernaryState]:
        return list(self._states)

    # -------------------------------------------------------------------------
    # Algebra
    # -------------------------------------------------------------------------

    def and_(self) -> TernaryState:
        """FALSE if any FALSE, else UNKNOWN if any UNKNOWN, else TRUE."""
        if TernaryState.FALSE in self._states:
            return TernaryState.FALSE
        if TernaryState.UNKNOWN in self._states:
            return TernaryState.UNKNOWN
        return TernaryState.TRUE

    def or_(self) -> TernaryState:
        """TRUE if any TRUE, else UNKNOWN if any UNKNOWN, else FALSE."""
        if TernaryState.TRUE in self._states:
            return TernaryState.TRUE
        if TernaryState.UNKNOWN in self._states:
            return TernaryState.UNKNOWN
        return TernaryState.FALSE

    def xor(self) -> TernaryState:
        """
        Ternary XOR as a tie-aware vote.

        TRUE when TRUE outnumbers FALSE, FALSE when FALSE outnumbers TRUE,
        UNKNOWN on a tie. XOR(TRUE, FALSE) is therefore UNKNOWN.
        """
        counts = self.counts()
        positives = counts[TernaryState.TRUE]
        negatives = counts[TernaryState.FALSE]
        if positives == negatives:
            return TernaryState.UNKNOWN
        return TernaryState.TRUE if positives > negatives else TernaryState.FALSE

    def weighted(self, weights: Optional[Iterable[Any]] = None) -> TernaryState:
        """
        Signed weighted vote.

        Each state contributes its trit value times its weight. Weights are
        truncated to integers; an empty weight list means weight 1 for every
        position and positions beyond the end of ``weights`` also weigh 1.
        """
        weight_list = [int(weight) for weight in (weights or ())]
        score = 0
        for index, state in enumerate(self._states):
            weight = weight_list[index] if index < len(weight_list) else 1
            score += state.to_int() * weight
        return BalancedTrit.from_int(score).to_state()

    def consensus(self) -> TernaryState:
        """Unweighted majority-sign vote."""
        return self.weighted([1] * len(self._states))

    def majority(self) -> TernaryState:
        return self.weighted([1] * len(self._states))

    def score(self) -> int:
        """Sum of signed state values (TRUE=+1, FALSE=-1, UNKNOWN=0)."""
        return sum(state.to_int() for state in self._states)

    def counts(self) -> Counter:
        counter: Counter = Counter({state: 0 for state in TernaryState})
        counter.update(self._states)
        return counter

    def to_balanced_string(self) -> str:
        return "".join(state.to_balanced_trit().symbol() for state in self._states)
