"""
Trilean Decision Engine

Evaluates declarative blueprints: named inputs, then ordered gates, then
output selection.

Evaluation phases:
1. Inputs: each input source resolves against the caller's context
2. Gates: in declaration order, each gate resolves its operands against
   the accumulated inputs and earlier decisions, applies its operator and
   publishes its state under its own name
3. Output: the blueprint's output key, else the last decision, else UNKNOWN

Reports can be memoized by content hash of (blueprint, context). Observers
are notified once per fresh (non-cached) evaluation, before the report is
cached; an observer that raises leaves nothing cached.

Usage:
    engine = DecisionEngine().memoize(ttl=60)
    report = engine.evaluate(
        {
            "inputs": {"consent": lambda ctx: True, "risk": "user.risk"},
            "gates": {
                "eligibility": {"operator": "and", "operands": ["consent", "!risk"]},
            },
            "output": "eligibility",
        },
        {"user": {"risk": False}},
    )
    report.result   # TernaryState.TRUE
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, Optional, Union

from ..canon import content_hash
from ..config import TrileanSettings, get_settings
from ..exceptions import UndefinedOperandError
from ..logic import TernaryLogic, get_default_logic
from ..models.decision import (
    Blueprint,
    ComputedInput,
    ComputedOperand,
    ContextInput,
    Decision,
    DecisionReport,
    Evidence,
    ExpressionInput,
    ExpressionOperand,
    GateDefinition,
    InputSource,
    LiteralInput,
    LiteralOperand,
    Operand,
    ReferenceOperand,
)
from ..models.enums import GateOperator, TernaryState
from ..models.vector import TernaryVector
from .cache import DecisionCache, InMemoryDecisionCache
from .expression import resolve_path

logger = logging.getLogger(__name__)

Observer = Callable[[DecisionReport, Mapping[str, Any], Blueprint], None]
BlueprintLike = Union[Blueprint, Mapping[str, Any]]


class DecisionEngine:
    """
    Evaluates blueprints into DecisionReports.

    Args:
        logic: Logic service used for expressions (default: shared service)
        cache: Memoization store (default: in-memory cache)
        settings: Cache defaults (default: read from the environment)
        observers: Callables invoked with (report, context, blueprint)
    """

    def __init__(
        self,
        logic: Optional[TernaryLogic] = None,
        cache: Optional[DecisionCache] = None,
        settings: Optional[TrileanSettings] = None,
        observers: Optional[list[Observer]] = None,
    ):
        self._logic = logic if logic is not None else get_default_logic()
        self._cache: DecisionCache = cache if cache is not None else InMemoryDecisionCache()
        settings = settings if settings is not None else get_settings()
        self._memoize = settings.cache_enabled
        self._ttl = settings.cache_ttl
        self._observers: list[Observer] = list(observers or [])

    @property
    def logic(self) -> TernaryLogic:
        return self._logic

    @property
    def cache(self) -> DecisionCache:
        return self._cache

    def memoize(self, enabled: bool = True, ttl: Optional[float] = None) -> DecisionEngine:
        """Turn memoization on or off for every evaluation; returns self."""
        self._memoize = enabled
        if ttl is not None:
            self._ttl = ttl
        return self

    def add_observer(self, observer: Observer) -> DecisionEngine:
        self._observers.append(observer)
        return self

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def evaluate(
        self,
        blueprint: BlueprintLike,
        context: Optional[Mapping[str, Any]] = None,
        *,
        memoize: Optional[bool] = None,
    ) -> DecisionReport:
        """
        Evaluate a blueprint against a context.

        Args:
            blueprint: Blueprint or its mapping form
            context: Caller-owned nested mapping
            memoize: Override the engine's memoization setting for this call

        Returns:
            DecisionReport with per-gate decisions and evidence

        Raises:
            UndefinedOperandError: If a gate references an unknown name
            UnsupportedValueError: If a resolved value cannot be coerced
            EvaluatorNotConfiguredError: If an expression is used without an evaluator
        """
        if not isinstance(blueprint, Blueprint):
            blueprint = Blueprint.from_dict(blueprint)
        context = context if context is not None else {}
        use_cache = self._memoize if memoize is None else memoize

        cache_key = None
        if use_cache:
            cache_key = self.cache_key(blueprint, context)
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("Decision cache hit for blueprint %s", blueprint.name)
                return cached
            logger.debug("Decision cache miss for blueprint %s", blueprint.name)

        report = self._run(blueprint, context)

        for observer in self._observers:
            observer(report, context, blueprint)

        if cache_key is not None:
            self._cache.put(cache_key, report, self._ttl)

        return report

    @staticmethod
    def cache_key(blueprint: Blueprint, context: Mapping[str, Any]) -> str:
        source = blueprint.source if blueprint.source is not None else blueprint
        return content_hash({"blueprint": source, "context": context})

    def _run(self, blueprint: Blueprint, context: Mapping[str, Any]) -> DecisionReport:
        started = time.perf_counter()

        inputs: dict[str, TernaryState] = {
            name: self.resolve_input(source, context)
            for name, source in blueprint.inputs.items()
        }

        decisions: list[Decision] = []
        for gate in blueprint.gates:
            decision = self.evaluate_gate(gate, inputs, decisions, context)
            decisions.append(decision)
            inputs[gate.name] = decision.state
            logger.debug("Gate %s (%s) -> %s", gate.name, decision.operator, decision.state.value)

        if blueprint.output is not None and blueprint.output in inputs:
            result = inputs[blueprint.output]
        elif decisions:
            result = decisions[-1].state
        else:
            result = TernaryState.UNKNOWN

        encoded = self._logic.encode(decision.state for decision in decisions)
        duration_ms = (time.perf_counter() - started) * 1000

        return DecisionReport(
            result=result,
            decisions=tuple(decisions),
            encoded_vector=encoded,
            metadata={
                "duration_ms": round(duration_ms, 3),
                "total_gates": len(decisions),
                "blueprint": blueprint.name,
            },
        )

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def resolve_input(self, source: InputSource, context: Mapping[str, Any]) -> TernaryState:
        if isinstance(source, LiteralInput):
            return source.state
        if isinstance(source, ContextInput):
            value, found = resolve_path(context, source.path)
            return TernaryState.from_mixed(value) if found else TernaryState.UNKNOWN
        if isinstance(source, ExpressionInput):
            return self._logic.expression(source.expression, context)
        if isinstance(source, ComputedInput):
            return TernaryState.from_mixed(source.fn(context))
        return TernaryState.from_mixed(source)

    # -------------------------------------------------------------------------
    # Gates
    # -------------------------------------------------------------------------

    def evaluate_gate(
        self,
        gate: GateDefinition,
        inputs: dict[str, TernaryState],
        decisions: list[Decision],
        context: Mapping[str, Any],
    ) -> Decision:
        """Resolve a gate's operands and apply its operator."""
        evidence = [
            Evidence(operand.label, self.resolve_operand(operand, inputs, decisions, gate))
            for operand in gate.operands
        ]
        values = TernaryVector([item.state for item in evidence])

        return Decision(
            name=gate.name,
            state=self._apply(gate, values, inputs, context),
            operator=gate.operator_label,
            evidence=tuple(evidence),
            description=gate.description,
        )

    def resolve_operand(
        self,
        operand: Operand,
        inputs: Mapping[str, TernaryState],
        decisions: list[Decision],
        gate: Optional[GateDefinition] = None,
    ) -> TernaryState:
        if isinstance(operand, LiteralOperand):
            return operand.state
        if isinstance(operand, ReferenceOperand):
            if operand.name not in inputs:
                raise UndefinedOperandError(
                    message=f"Operand [{operand.name}] is not defined",
                    details={
                        "operand": operand.name,
                        "gate": gate.name if gate is not None else None,
                        "available": sorted(inputs),
                    },
                )
            state = inputs[operand.name]
            return state.invert() if operand.negated else state
        if isinstance(operand, ExpressionOperand):
            return self._logic.expression(operand.expression, dict(inputs))
        if isinstance(operand, ComputedOperand):
            return TernaryState.from_mixed(operand.fn(MappingProxyType(dict(inputs)), tuple(decisions)))
        return TernaryState.from_mixed(operand)

    def _apply(
        self,
        gate: GateDefinition,
        values: TernaryVector,
        inputs: Mapping[str, TernaryState],
        context: Mapping[str, Any],
    ) -> TernaryState:
        operator = gate.operator
        if operator is GateOperator.OR:
            return values.or_()
        if operator is GateOperator.NOT:
            return values[0].invert() if values else TernaryState.UNKNOWN
        if operator is GateOperator.CONSENSUS:
            return values.consensus()
        if operator is GateOperator.WEIGHTED:
            return values.weighted(gate.weights)
        if operator is GateOperator.EXPRESSION:
            return self._logic.expression(gate.expression or "", {**context, **inputs})
        return values.and_()


_default_engine: Optional[DecisionEngine] = None


def get_default_engine() -> DecisionEngine:
    """Get or create the shared decision engine."""
    global _default_engine
    if _default_engine is None:
        _default_engine = DecisionEngine()
    return _default_engine


def evaluate_blueprint(
    blueprint: BlueprintLike,
    context: Optional[Mapping[str, Any]] = None,
) -> DecisionReport:
    """Evaluate a blueprint with the shared engine."""
    return get_default_engine().evaluate(blueprint, context)
