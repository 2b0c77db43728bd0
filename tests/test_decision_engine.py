"""
Tests for the Decision Engine

Tests cover:
- End-to-end blueprint evaluation with evidence and encoding
- Input resolution (literal, context path, expression, computed)
- Gate operators and operand resolution
- Output selection
- Memoization with TTL and observer notification
- Error propagation
"""
import logging
import uuid
from datetime import timedelta
from pathlib import Path

import pytest

from trilean.engine.cache import InMemoryDecisionCache
from trilean.engine.decision_engine import DecisionEngine, evaluate_blueprint, get_default_engine
from trilean.exceptions import (
    EvaluatorNotConfiguredError,
    UndefinedOperandError,
    UnsupportedValueError,
)
from trilean.logic import TernaryLogic
from trilean.models import Blueprint, DecisionReport

from tests.conftest import (
    F,
    T,
    U,
    FakeClock,
    make_blueprint,
    make_checkout_blueprint,
    make_engine,
    make_gate,
)


class SlottedAccount:
    __slots__ = ("name",)

    def __init__(self, name):
        self.name = name


# =============================================================================
# End-to-End Tests
# =============================================================================

class TestEndToEnd:
    """Tests for complete blueprint evaluation."""

    def test_literal_string_consent_is_a_context_path(self, engine):
        """'true' as an input is looked up in context, so everything stays UNKNOWN."""
        blueprint = make_checkout_blueprint(consent="true")
        report = engine.evaluate(blueprint, {"user": {"risk": U}})

        assert report.result == U
        assert len(report.decisions) == 2
        assert report.encoded_vector == "00"

    def test_computed_consent(self, engine):
        """eligibility = AND(T, U) = U; final = 0*3 + 1*1 + 0*(-2) = 1."""
        report = engine.evaluate(make_checkout_blueprint(), {"user": {"risk": U}})

        assert report.decision("eligibility").state == U
        assert report.result == T
        assert report.encoded_vector == "0+"

    def test_decisions_carry_evidence(self, engine):
        report = engine.evaluate(make_checkout_blueprint(), {"user": {"risk": False}})
        eligibility = report.decision("eligibility")

        assert eligibility.operator == "AND"
        assert eligibility.description == "Eligibility blends consent with inverted risk."
        assert [(item.operand, item.state) for item in eligibility.evidence] == [
            ("consent", T),
            ("!risk", T),
        ]
        assert report.decision("final").operator == "WEIGHTED"

    def test_metadata(self, engine):
        report = engine.evaluate(make_checkout_blueprint(), {"user": {"risk": True}})

        assert report.metadata["total_gates"] == 2
        assert report.metadata["blueprint"] == "checkout"
        assert report.metadata["duration_ms"] >= 0

    def test_accepts_blueprint_objects(self, engine):
        blueprint = Blueprint.from_dict(make_checkout_blueprint())
        report = engine.evaluate(blueprint, {"user": {"risk": True}})
        assert isinstance(report, DecisionReport)
        # eligibility F (-3), consent T (+1), risk T (-2) -> -4
        assert report.result == F


# =============================================================================
# Input Resolution Tests
# =============================================================================

class TestInputResolution:
    """Tests for the inputs phase."""

    def test_context_paths(self, engine):
        blueprint = make_blueprint(
            inputs={"deep": "a.b.c", "missing": "a.x"},
            gates={"out": make_gate("and", ["deep"])},
        )
        report = engine.evaluate(blueprint, {"a": {"b": {"c": "yes"}}})
        assert report.result == T

    def test_missing_context_path_is_unknown(self, engine):
        blueprint = make_blueprint(inputs={"x": "nowhere"}, output="x")
        assert engine.evaluate(blueprint, {}).result == U

    def test_expression_inputs(self, engine):
        blueprint = make_blueprint(inputs={"either": "@flags.a OR flags.b"}, output="either")
        assert engine.evaluate(blueprint, {"flags": {"a": False, "b": True}}).result == T

    def test_computed_inputs_receive_context(self, engine):
        seen = []

        def resolver(ctx):
            seen.append(ctx)
            return ctx["score"] > 10

        blueprint = make_blueprint(inputs={"high": resolver}, output="high")
        context = {"score": 42}
        assert engine.evaluate(blueprint, context).result == T
        assert seen == [context]

    def test_literal_inputs(self, engine):
        blueprint = make_blueprint(
            inputs={"a": True, "b": None, "c": 0, "d": T},
            gates={"all": make_gate("consensus", ["a", "b", "c", "d"])},
        )
        report = engine.evaluate(blueprint)
        assert [item.state for item in report.decisions[0].evidence] == [T, U, F, T]
        assert report.result == T

    def test_uncoercible_context_value_fails(self, engine):
        blueprint = make_blueprint(inputs={"x": "value"}, output="x")
        with pytest.raises(UnsupportedValueError):
            engine.evaluate(blueprint, {"value": 3.5})


# =============================================================================
# Gate Tests
# =============================================================================

class TestGates:
    """Tests for gate operators and operand resolution."""

    @pytest.mark.parametrize("operator,expected", [
        ("and", F),
        ("or", T),
        ("consensus", U),
        ("AND", F),
        ("unknown_op", F),
    ])
    def test_operators(self, engine, operator, expected):
        blueprint = make_blueprint(
            inputs={"a": True, "b": False},
            gates={"g": make_gate(operator, ["a", "b"])},
        )
        assert engine.evaluate(blueprint).result == expected

    def test_unknown_operator_keeps_declared_name(self, engine, caplog):
        blueprint = make_blueprint(
            inputs={"a": True, "b": False},
            gates={"g": make_gate("nand", ["a", "b"])},
        )
        with caplog.at_level(logging.WARNING, logger="trilean.models.enums"):
            decision = engine.evaluate(blueprint).decisions[0]

        # Evaluated as AND, reported under the name it was declared with
        assert decision.state == F
        assert decision.operator == "NAND"
        assert "Unknown gate operator 'nand'" in caplog.text

    def test_known_operator_label_ignores_case(self, engine):
        blueprint = make_blueprint(inputs={"a": True}, gates={"g": make_gate(" Or ", ["a"])})
        assert engine.evaluate(blueprint).decisions[0].operator == "OR"

    def test_not_gate(self, engine):
        blueprint = make_blueprint(inputs={"a": True}, gates={"g": make_gate("not", ["a", "ghost"])})
        # Only the first operand is negated, but every operand must resolve
        with pytest.raises(UndefinedOperandError):
            engine.evaluate(blueprint)

        blueprint = make_blueprint(inputs={"a": True}, gates={"g": make_gate("not", ["a"])})
        assert engine.evaluate(blueprint).result == F

    def test_not_gate_without_operands(self, engine):
        blueprint = make_blueprint(gates={"g": make_gate("not", [])})
        assert engine.evaluate(blueprint).result == U

    def test_weighted_gate(self, engine):
        blueprint = make_blueprint(
            inputs={"a": True, "b": False, "c": None},
            gates={"g": make_gate("weighted", ["a", "b", "c"], weights=[1, 2, 1])},
        )
        assert engine.evaluate(blueprint).result == F

    def test_expression_gate_sees_context_and_results(self, engine):
        blueprint = make_blueprint(
            inputs={"a": True},
            gates={
                "first": make_gate("and", ["a"]),
                "check": make_gate("expression", expression="first AND user.active"),
            },
        )
        report = engine.evaluate(blueprint, {"user": {"active": "yes"}})
        assert report.result == T
        assert report.decisions[1].evidence == ()

    def test_later_gates_reference_earlier_gates(self, engine):
        blueprint = make_blueprint(
            inputs={"a": True, "b": None},
            gates={
                "first": make_gate("or", ["a", "b"]),
                "second": make_gate("and", ["first", "!b"]),
            },
        )
        report = engine.evaluate(blueprint)
        assert [decision.state for decision in report.decisions] == [T, U]

    def test_expression_operand_uses_accumulated_inputs_only(self, engine):
        blueprint = make_blueprint(
            inputs={"a": True},
            gates={"g": make_gate("and", ["@a AND ctx_only"])},
        )
        report = engine.evaluate(blueprint, {"ctx_only": True})
        assert report.result == U
        assert report.decisions[0].evidence[0].operand == "@a AND ctx_only"

    def test_computed_operand_receives_inputs_and_decisions(self, engine):
        calls = []

        def budget_ok(inputs, decisions):
            calls.append((dict(inputs), [decision.name for decision in decisions]))
            return inputs["first"]

        blueprint = make_blueprint(
            inputs={"a": True},
            gates={
                "first": make_gate("and", ["a"]),
                "second": make_gate("and", [budget_ok]),
            },
        )
        report = engine.evaluate(blueprint)
        assert report.result == T
        assert calls == [({"a": T, "first": T}, ["first"])]
        assert report.decisions[1].evidence[0].operand == "budget_ok"

    def test_literal_operands(self, engine):
        blueprint = make_blueprint(gates={"g": make_gate("or", [False, None, 1])})
        report = engine.evaluate(blueprint)
        assert report.result == T
        assert [item.operand for item in report.decisions[0].evidence] == ["false", "unknown", "true"]

    def test_undefined_operand_fails(self, engine):
        blueprint = make_blueprint(
            inputs={"a": True},
            gates={"g": make_gate("and", ["a", "ghost"])},
        )
        with pytest.raises(UndefinedOperandError) as exc_info:
            engine.evaluate(blueprint)
        assert exc_info.value.code == "TL_UNDEFINED_OPERAND"
        assert exc_info.value.details["operand"] == "ghost"
        assert exc_info.value.details["gate"] == "g"

    def test_negated_undefined_operand_fails(self, engine):
        blueprint = make_blueprint(gates={"g": make_gate("and", ["!ghost"])})
        with pytest.raises(UndefinedOperandError):
            engine.evaluate(blueprint)

    def test_forward_reference_fails(self, engine):
        blueprint = make_blueprint(
            inputs={"a": True},
            gates={
                "first": make_gate("and", ["second"]),
                "second": make_gate("and", ["a"]),
            },
        )
        with pytest.raises(UndefinedOperandError):
            engine.evaluate(blueprint)

    def test_expression_without_evaluator_fails(self):
        engine = DecisionEngine(logic=TernaryLogic(), cache=InMemoryDecisionCache())
        blueprint = make_blueprint(inputs={"x": "@a OR b"}, output="x")
        with pytest.raises(EvaluatorNotConfiguredError):
            engine.evaluate(blueprint, {})


# =============================================================================
# Output Selection Tests
# =============================================================================

class TestOutputSelection:
    """Tests for picking the final result."""

    def test_output_can_name_an_input(self, engine):
        blueprint = make_blueprint(
            inputs={"a": False, "b": True},
            gates={"g": make_gate("or", ["a", "b"])},
            output="a",
        )
        assert engine.evaluate(blueprint).result == F

    def test_defaults_to_last_decision(self, engine):
        blueprint = make_blueprint(
            inputs={"a": False},
            gates={"g1": make_gate("not", ["a"]), "g2": make_gate("and", ["a"])},
        )
        assert engine.evaluate(blueprint).result == F

    def test_unresolvable_output_falls_back_to_last_decision(self, engine):
        blueprint = make_blueprint(
            inputs={"a": False},
            gates={"g": make_gate("not", ["a"])},
            output="nope",
        )
        assert engine.evaluate(blueprint).result == T

    def test_empty_blueprint_is_unknown(self, engine):
        report = engine.evaluate(make_blueprint())
        assert report.result == U
        assert report.decisions == ()
        assert report.encoded_vector == ""


# =============================================================================
# Memoization Tests
# =============================================================================

class TestMemoization:
    """Tests for cached evaluations."""

    def counting_blueprint(self, calls):
        def counted(ctx):
            calls.append(1)
            return True

        return make_blueprint(inputs={"a": counted}, gates={"g": make_gate("and", ["a"])})

    def test_cache_hit_skips_evaluation(self):
        calls = []
        engine = make_engine().memoize(ttl=60)
        blueprint = self.counting_blueprint(calls)

        first = engine.evaluate(blueprint, {"k": 1})
        second = engine.evaluate(blueprint, {"k": 1})

        assert second is first
        assert len(calls) == 1

    def test_different_context_misses(self):
        calls = []
        engine = make_engine().memoize()
        blueprint = self.counting_blueprint(calls)

        engine.evaluate(blueprint, {"k": 1})
        engine.evaluate(blueprint, {"k": 2})
        assert len(calls) == 2

    def test_zero_ttl_always_re_evaluates(self):
        calls = []
        engine = make_engine(clock=FakeClock()).memoize(ttl=0)
        blueprint = self.counting_blueprint(calls)

        first = engine.evaluate(blueprint, {"k": 1})
        second = engine.evaluate(blueprint, {"k": 1})

        assert len(calls) == 2
        assert second is not first

    def test_entry_expires_after_ttl(self):
        calls = []
        clock = FakeClock()
        engine = make_engine(clock=clock).memoize(ttl=10)
        blueprint = self.counting_blueprint(calls)

        engine.evaluate(blueprint, {})
        clock.advance(9)
        engine.evaluate(blueprint, {})
        assert len(calls) == 1

        clock.advance(1)
        engine.evaluate(blueprint, {})
        assert len(calls) == 2

    def test_memoization_off_by_default(self):
        calls = []
        engine = make_engine()
        blueprint = self.counting_blueprint(calls)

        engine.evaluate(blueprint, {})
        engine.evaluate(blueprint, {})
        assert len(calls) == 2
        assert len(engine.cache) == 0

    def test_per_call_override(self):
        calls = []
        engine = make_engine()
        blueprint = self.counting_blueprint(calls)

        engine.evaluate(blueprint, {}, memoize=True)
        engine.evaluate(blueprint, {}, memoize=True)
        engine.evaluate(blueprint, {}, memoize=False)
        assert len(calls) == 2

    def test_settings_enable_cache(self):
        calls = []
        engine = make_engine(cache_enabled=True, cache_ttl=30)
        blueprint = self.counting_blueprint(calls)

        engine.evaluate(blueprint, {})
        engine.evaluate(blueprint, {})
        assert len(calls) == 1

    def test_failed_evaluation_is_not_cached(self):
        engine = make_engine().memoize()
        blueprint = make_blueprint(gates={"g": make_gate("and", ["ghost"])})

        with pytest.raises(UndefinedOperandError):
            engine.evaluate(blueprint, {})
        assert len(engine.cache) == 0

    def test_cache_key_is_stable(self):
        blueprint = Blueprint.from_dict(make_blueprint(inputs={"a": "x.y"}))
        first = DecisionEngine.cache_key(blueprint, {"x": {"y": True}, "z": 1})
        second = DecisionEngine.cache_key(blueprint, {"z": 1, "x": {"y": True}})
        assert first == second
        assert first != DecisionEngine.cache_key(blueprint, {"x": {"y": False}})

    @pytest.mark.parametrize("extra", [
        {"grace": timedelta(days=1)},
        {"request_id": uuid.UUID("12345678-1234-5678-1234-567812345678")},
        {"config": Path("/etc/trilean.yaml")},
        {"account": SlottedAccount("acme")},
        {1: "x"},
        {"nested": {2: "y", "z": [timedelta(seconds=5)]}},
    ])
    def test_memoized_matches_plain_evaluation(self, extra):
        blueprint = make_blueprint(inputs={"flag": "flag"}, output="flag")
        context = {"flag": True, **extra}

        plain = make_engine().evaluate(blueprint, context)
        engine = make_engine().memoize(ttl=60)
        first = engine.evaluate(blueprint, context)
        second = engine.evaluate(blueprint, context)

        assert plain.result == first.result == T
        assert second is first
        assert len(engine.cache) == 1

    def test_cached_report_metadata_cannot_be_altered(self):
        engine = make_engine().memoize(ttl=60)
        blueprint = make_checkout_blueprint()
        context = {"user": {"risk": False}}

        first = engine.evaluate(blueprint, context)
        with pytest.raises(TypeError):
            first.metadata["blueprint"] = "tampered"

        second = engine.evaluate(blueprint, context)
        assert second.metadata["blueprint"] == "checkout"
        assert second.to_dict()["metadata"]["blueprint"] == "checkout"


# =============================================================================
# Observer Tests
# =============================================================================

class TestObservers:
    """Tests for evaluation notifications."""

    def test_observer_called_once_per_fresh_evaluation(self):
        events = []
        engine = make_engine().memoize(ttl=60)
        engine.add_observer(lambda report, context, blueprint: events.append((report, context, blueprint)))

        blueprint = make_checkout_blueprint()
        context = {"user": {"risk": False}}
        report = engine.evaluate(blueprint, context)
        engine.evaluate(blueprint, context)

        assert len(events) == 1
        observed_report, observed_context, observed_blueprint = events[0]
        assert observed_report is report
        assert observed_context is context
        assert observed_blueprint.name == "checkout"

    def test_observers_run_before_report_is_cached(self):
        seen = []
        engine = make_engine().memoize(ttl=60)

        def check_cache(report, context, blueprint):
            seen.append(engine.cache.get(engine.cache_key(blueprint, context)))

        engine.add_observer(check_cache)
        engine.evaluate(make_checkout_blueprint(), {})

        assert seen == [None]
        assert len(engine.cache) == 1

    def test_failing_observer_leaves_nothing_cached(self):
        calls = []

        def flaky(report, context, blueprint):
            calls.append(report)
            if len(calls) == 1:
                raise RuntimeError("sink unavailable")

        engine = make_engine(observers=[flaky]).memoize(ttl=60)
        blueprint = make_checkout_blueprint()
        context = {"user": {"risk": False}}

        with pytest.raises(RuntimeError):
            engine.evaluate(blueprint, context)
        assert len(engine.cache) == 0

        report = engine.evaluate(blueprint, context)
        assert report.result == T
        assert len(calls) == 2
        assert len(engine.cache) == 1

    def test_no_notification_on_failure(self):
        events = []
        engine = make_engine(observers=[lambda *args: events.append(args)])

        with pytest.raises(UndefinedOperandError):
            engine.evaluate(make_blueprint(gates={"g": make_gate("and", ["ghost"])}))
        assert events == []


class TestDefaultEngine:
    """Tests for the shared engine."""

    def test_shared_instance(self):
        assert get_default_engine() is get_default_engine()

    def test_evaluate_blueprint(self):
        blueprint = make_blueprint(inputs={"a": True, "b": True}, gates={"g": make_gate("and", ["a", "b"])})
        assert evaluate_blueprint(blueprint).result == T
