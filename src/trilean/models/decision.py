"""
Trilean Decision Models

Declarative blueprints and the records produced when they are evaluated.

Key components:
- InputSource: How a named blueprint input obtains its state
- Operand: How a gate operand obtains its state
- GateDefinition / Blueprint: The declarative decision graph
- Evidence / Decision / DecisionReport: Evaluation results with provenance

Blueprint mapping form:
    {
        "name": "checkout",
        "inputs": {
            "consent": lambda ctx: True,      # computed
            "risk": "user.risk",              # context path
            "override": "@flags.a OR flags.b",  # expression
        },
        "gates": {
            "eligible": {"operator": "and", "operands": ["consent", "!risk"]},
            "final": {
                "operator": "weighted",
                "operands": ["eligible", "consent", "risk"],
                "weights": [3, 1, -2],
            },
        },
        "output": "final",
    }
"""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Optional

from .enums import GateOperator, TernaryState


# =============================================================================
# Input Sources
# =============================================================================

class InputSource:
    """Base class for the ways a blueprint input can be resolved."""

    @staticmethod
    def from_raw(value: Any) -> InputSource:
        """
        Classify a raw blueprint input value.

        - TernaryState: literal
        - callable: computed from the context
        - "@expr": expression evaluated against the context
        - any other string: dotted context path (never a ternary literal)
        - anything else: coerced to a literal
        """
        if isinstance(value, InputSource):
            return value
        if isinstance(value, TernaryState):
            return LiteralInput(value)
        if callable(value):
            return ComputedInput(value)
        if isinstance(value, str):
            if value.startswith("@"):
                return ExpressionInput(value[1:])
            return ContextInput(value)
        return LiteralInput(TernaryState.from_mixed(value))


@dataclass(frozen=True)
class LiteralInput(InputSource):
    state: TernaryState


@dataclass(frozen=True)
class ContextInput(InputSource):
    path: str


@dataclass(frozen=True)
class ExpressionInput(InputSource):
    expression: str


@dataclass(frozen=True)
class ComputedInput(InputSource):
    fn: Callable[[Mapping[str, Any]], Any]


# =============================================================================
# Gate Operands
# =============================================================================

class Operand:
    """Base class for gate operands; ``label`` is recorded as evidence."""

    label: str

    @staticmethod
    def from_raw(value: Any, index: int = 0) -> Operand:
        """
        Classify a raw gate operand.

        - callable: invoked with (inputs, decisions)
        - "!name": inverted reference
        - "@expr": expression against the accumulated inputs
        - any other string: reference to an input or earlier gate
        - anything else: coerced to a literal
        """
        if isinstance(value, Operand):
            return value
        if isinstance(value, TernaryState):
            return LiteralOperand(value)
        if callable(value):
            return ComputedOperand(value, label=getattr(value, "__name__", f"operand_{index}"))
        if isinstance(value, str):
            if value.startswith("!"):
                return ReferenceOperand(value[1:], negated=True)
            if value.startswith("@"):
                return ExpressionOperand(value[1:])
            return ReferenceOperand(value)
        return LiteralOperand(TernaryState.from_mixed(value))


@dataclass(frozen=True)
class ReferenceOperand(Operand):
    name: str
    negated: bool = False

    @property
    def label(self) -> str:
        return f"!{self.name}" if self.negated else self.name


@dataclass(frozen=True)
class ExpressionOperand(Operand):
    expression: str

    @property
    def label(self) -> str:
        return f"@{self.expression}"


@dataclass(frozen=True)
class ComputedOperand(Operand):
    fn: Callable[..., Any]
    label: str = "computed"


@dataclass(frozen=True)
class LiteralOperand(Operand):
    state: TernaryState

    @property
    def label(self) -> str:
        return self.state.value


# =============================================================================
# Blueprint
# =============================================================================

@dataclass(frozen=True)
class GateDefinition:
    """One node of the decision graph."""
    name: str
    operator: GateOperator
    operands: tuple[Operand, ...] = ()
    weights: tuple[int, ...] = ()
    expression: Optional[str] = None
    description: Optional[str] = None
    # name as written when it is not a known operator; evaluated as AND
    declared_operator: Optional[str] = field(default=None, compare=False)

    @property
    def operator_label(self) -> str:
        return self.declared_operator or self.operator.label

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> GateDefinition:
        raw_operands = data.get("operands") or []
        raw_operator = data.get("operator", "and")
        operator = GateOperator.parse(raw_operator)
        declared = None
        if raw_operator is not None and not isinstance(raw_operator, GateOperator):
            if str(raw_operator).strip().lower() != operator.value:
                declared = str(raw_operator).strip().upper()
        return cls(
            name=name,
            operator=operator,
            declared_operator=declared,
            operands=tuple(
                Operand.from_raw(operand, index)
                for index, operand in enumerate(raw_operands)
            ),
            weights=tuple(int(weight) for weight in (data.get("weights") or [])),
            expression=data.get("expression"),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Blueprint:
    """
    Declarative decision graph: named inputs, ordered gates, output key.

    ``source`` keeps the mapping the blueprint was built from so the
    engine can derive a stable cache key from it.
    """
    inputs: dict[str, InputSource] = field(default_factory=dict)
    gates: tuple[GateDefinition, ...] = ()
    output: Optional[str] = None
    name: Optional[str] = None
    source: Optional[Mapping[str, Any]] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Blueprint:
        """
        Build a blueprint from its mapping form.

        Gates may be a mapping of name -> definition or a list of
        definitions; list entries without a ``name`` become ``gate_<index>``.
        """
        raw_gates = data.get("gates") or {}
        if isinstance(raw_gates, Mapping):
            gate_items = [
                (name if isinstance(name, str) else f"gate_{name}", definition)
                for name, definition in raw_gates.items()
            ]
        else:
            gate_items = [
                (definition.get("name") or f"gate_{index}", definition)
                for index, definition in enumerate(raw_gates)
            ]

        return cls(
            inputs={
                str(name): InputSource.from_raw(value)
                for name, value in (data.get("inputs") or {}).items()
            },
            gates=tuple(
                GateDefinition.from_dict(name, definition)
                for name, definition in gate_items
            ),
            output=data.get("output"),
            name=data.get("name") or data.get("id"),
            source=data,
        )

    @property
    def gate_names(self) -> list[str]:
        return [gate.name for gate in self.gates]


# =============================================================================
# Evaluation Results
# =============================================================================

@dataclass(frozen=True)
class Evidence:
    """One resolved operand of a gate."""
    operand: str
    state: TernaryState

    def to_dict(self) -> dict[str, Any]:
        return {"operand": self.operand, "state": self.state.value}


@dataclass(frozen=True)
class Decision:
    """The outcome of evaluating one gate."""
    name: str
    state: TernaryState
    operator: str
    evidence: tuple[Evidence, ...] = ()
    description: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "operator": self.operator,
            "state": self.state.value,
            "description": self.description,
            "evidence": [item.to_dict() for item in self.evidence],
        }


@dataclass(frozen=True)
class DecisionReport:
    """
    Result of evaluating a blueprint.

    Attributes:
        result: Final state selected by the blueprint's output key
        decisions: One Decision per gate, in declaration order
        encoded_vector: Balanced-ternary string of the decision states
        metadata: duration_ms, total_gates, blueprint (read-only view)

    Metadata is held as a read-only copy; cached reports are shared
    between callers.
    """
    result: TernaryState
    decisions: tuple[Decision, ...] = ()
    encoded_vector: str = ""
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "decisions", tuple(self.decisions))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def decision(self, name: str) -> Optional[Decision]:
        """Find a decision by gate name."""
        for decision in self.decisions:
            if decision.name == name:
                return decision
        return None

    def to_bool(self, unknown_as: bool = False) -> bool:
        return self.result.to_bool(unknown_as)

    def to_dict(self) -> dict[str, Any]:
        return {
            "result": self.result.value,
            "encoded": self.encoded_vector,
            "decisions": [decision.to_dict() for decision in self.decisions],
            "metadata": dict(self.metadata),
        }
