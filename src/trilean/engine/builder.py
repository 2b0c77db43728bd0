"""
Fluent Builders

DecisionBuilder assembles a blueprint step by step and evaluates it with a
DecisionEngine. CircuitBuilder chains gates directly over the algebra,
without evidence or caching.

Usage:
    report = (
        DecisionBuilder()
        .input("verified", True)
        .input("consent", None)
        .and_("compliance", ["verified", "consent"])
        .output("compliance")
        .evaluate()
    )
    report.result   # TernaryState.UNKNOWN

    decide(True, 1).require_all().to_bool()   # True

Input values follow blueprint rules: a plain string is a context path,
"@expr" is an expression, a callable receives the context.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional

from ..logic import TernaryLogic, get_default_logic
from ..models.decision import DecisionReport
from ..models.enums import TernaryState
from .decision_engine import DecisionEngine, get_default_engine

DEFAULT_DECISION_NAME = "fluent_decision"


class DecisionBuilder:
    """Fluent construction of a blueprint for the decision engine."""

    def __init__(self, *quick_inputs: Any, engine: Optional[DecisionEngine] = None):
        self._engine = engine
        self._inputs: dict[str, Any] = {
            f"input_{index}": value for index, value in enumerate(quick_inputs)
        }
        self._gates: dict[str, dict[str, Any]] = {}
        self._output: Optional[str] = None
        self._context: dict[str, Any] = {}
        self._name: Optional[str] = None

    @property
    def engine(self) -> DecisionEngine:
        return self._engine if self._engine is not None else get_default_engine()

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def input(self, name: str, value: Any) -> DecisionBuilder:
        self._inputs[name] = value
        return self

    def inputs(self, values: Mapping[str, Any]) -> DecisionBuilder:
        self._inputs.update(values)
        return self

    def with_context(self, context: Mapping[str, Any]) -> DecisionBuilder:
        self._context.update(context)
        return self

    # -------------------------------------------------------------------------
    # Gates
    # -------------------------------------------------------------------------

    def and_(self, name: str, operands: Sequence[Any]) -> DecisionBuilder:
        return self._gate(name, "and", operands)

    def or_(self, name: str, operands: Sequence[Any]) -> DecisionBuilder:
        return self._gate(name, "or", operands)

    def not_(self, name: str, operand: Any) -> DecisionBuilder:
        return self._gate(name, "not", [operand])

    def weighted(self, name: str, operands: Sequence[Any], weights: Sequence[int]) -> DecisionBuilder:
        return self._gate(name, "weighted", operands, weights=list(weights))

    def consensus(self, name: str, operands: Sequence[Any], description: Optional[str] = None) -> DecisionBuilder:
        return self._gate(name, "consensus", operands, description=description)

    def expression(self, name: str, expression: str) -> DecisionBuilder:
        """Add a gate evaluating ``expression`` over the context and earlier results."""
        return self._gate(name, "expression", [], expression=expression)

    def _gate(self, name: str, operator: str, operands: Sequence[Any], **options: Any) -> DecisionBuilder:
        gate: dict[str, Any] = {"operator": operator, "operands": list(operands)}
        gate.update({key: value for key, value in options.items() if value is not None})
        self._gates[name] = gate
        return self

    def output(self, name: str) -> DecisionBuilder:
        self._output = name
        return self

    def named(self, name: str) -> DecisionBuilder:
        self._name = name
        return self

    # -------------------------------------------------------------------------
    # Shortcuts
    # -------------------------------------------------------------------------

    def require_all(self) -> DecisionBuilder:
        """Add an AND gate over every input and make it the output."""
        self._gates["all_required"] = {"operator": "and", "operands": list(self._inputs)}
        self._output = "all_required"
        return self

    def require_any(self) -> DecisionBuilder:
        """Add an OR gate over every input and make it the output."""
        self._gates["any_required"] = {"operator": "or", "operands": list(self._inputs)}
        self._output = "any_required"
        return self

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def to_blueprint(self) -> dict[str, Any]:
        return {
            "name": self._name or DEFAULT_DECISION_NAME,
            "inputs": dict(self._inputs),
            "gates": {name: dict(gate) for name, gate in self._gates.items()},
            "output": self._output,
        }

    def evaluate(self, memoize: Optional[bool] = None) -> DecisionReport:
        return self.engine.evaluate(self.to_blueprint(), self._context, memoize=memoize)

    def state(self) -> TernaryState:
        return self.evaluate().result

    def to_bool(self, unknown_as: bool = False) -> bool:
        return self.evaluate().to_bool(unknown_as)


class CircuitBuilder:
    """
    Gate chain evaluated directly over the algebra.

    Operands name earlier inputs or gates; anything else is coerced as a
    literal value. Unsupported operators produce UNKNOWN.

    Usage:
        CircuitBuilder().input("a", True).input("b", None) \\
            .or_("any", ["a", "b"]).evaluate("any")   # TRUE
    """

    def __init__(self, logic: Optional[TernaryLogic] = None):
        self._logic = logic if logic is not None else get_default_logic()
        self._inputs: dict[str, Any] = {}
        self._gates: dict[str, dict[str, Any]] = {}

    def input(self, name: str, value: Any) -> CircuitBuilder:
        self._inputs[name] = value
        return self

    def gate(
        self,
        name: str,
        operator: str,
        operands: Sequence[Any],
        weights: Optional[Iterable[int]] = None,
    ) -> CircuitBuilder:
        self._gates[name] = {
            "operator": operator.lower(),
            "operands": list(operands),
            "weights": list(weights) if weights is not None else [],
        }
        return self

    def and_(self, name: str, operands: Sequence[Any]) -> CircuitBuilder:
        return self.gate(name, "and", operands)

    def or_(self, name: str, operands: Sequence[Any]) -> CircuitBuilder:
        return self.gate(name, "or", operands)

    def maj(self, name: str, operands: Sequence[Any]) -> CircuitBuilder:
        return self.gate(name, "maj", operands)

    def weighted(self, name: str, operands: Sequence[Any], weights: Iterable[int]) -> CircuitBuilder:
        return self.gate(name, "weighted", operands, weights)

    def evaluate(self, output_gate: str) -> TernaryState:
        resolved: dict[str, Any] = dict(self._inputs)

        for name, gate in self._gates.items():
            values = [
                resolved[operand] if isinstance(operand, str) and operand in resolved else operand
                for operand in gate["operands"]
            ]
            resolved[name] = self._apply(gate, values)

        if output_gate not in resolved:
            return TernaryState.UNKNOWN
        return self._logic.normalise(resolved[output_gate])

    def _apply(self, gate: Mapping[str, Any], values: list[Any]) -> TernaryState:
        operator = gate["operator"]
        if operator == "and":
            return self._logic.and_(values)
        if operator == "or":
            return self._logic.or_(values)
        if operator in ("maj", "consensus"):
            return self._logic.consensus(values)
        if operator == "weighted":
            return self._logic.weighted(values, gate["weights"])
        return TernaryState.UNKNOWN

    def to_blueprint(self) -> dict[str, Any]:
        """Export the circuit as a blueprint mapping for DecisionEngine."""
        gates: dict[str, dict[str, Any]] = {}
        for name, gate in self._gates.items():
            definition: dict[str, Any] = {
                # the engine spells majority as consensus
                "operator": "consensus" if gate["operator"] == "maj" else gate["operator"],
                "operands": list(gate["operands"]),
            }
            if gate["weights"]:
                definition["weights"] = list(gate["weights"])
            gates[name] = definition

        return {
            "inputs": dict(self._inputs),
            "gates": gates,
            "output": next(reversed(gates), None),
        }


def decide(*values: Any, engine: Optional[DecisionEngine] = None) -> DecisionBuilder:
    """Start a DecisionBuilder, optionally with quick positional inputs."""
    return DecisionBuilder(*values, engine=engine)


def circuit(logic: Optional[TernaryLogic] = None) -> CircuitBuilder:
    return CircuitBuilder(logic)
