"""
Pytest configuration and fixtures for Trilean tests.

Provides helper factories and common fixtures for blueprints, engines
and controllable clocks.
"""
import pytest

from trilean.config import TrileanSettings
from trilean.engine.cache import InMemoryDecisionCache
from trilean.engine.decision_engine import DecisionEngine
from trilean.engine.expression import ExpressionEvaluator
from trilean.logic import TernaryLogic
from trilean.models import TernaryState


T = TernaryState.TRUE
F = TernaryState.FALSE
U = TernaryState.UNKNOWN

ALL_STATES = [T, F, U]


# =============================================================================
# Factory Helpers
# =============================================================================

class FakeClock:
    """Manually advanced clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_gate(operator: str, operands: list = None, **options) -> dict:
    """Create a gate definition mapping."""
    gate = {"operator": operator, "operands": operands or []}
    gate.update(options)
    return gate


def make_blueprint(
    inputs: dict = None,
    gates: dict = None,
    output: str = None,
    name: str = "test_blueprint",
) -> dict:
    """Create a blueprint mapping with required fields."""
    blueprint = {
        "name": name,
        "inputs": inputs or {},
        "gates": gates or {},
    }
    if output is not None:
        blueprint["output"] = output
    return blueprint


def make_checkout_blueprint(consent=None) -> dict:
    """Consent/risk blueprint: AND gate feeding a weighted gate."""
    return make_blueprint(
        name="checkout",
        inputs={
            "consent": consent if consent is not None else (lambda ctx: True),
            "risk": "user.risk",
        },
        gates={
            "eligibility": make_gate(
                "and",
                ["consent", "!risk"],
                description="Eligibility blends consent with inverted risk.",
            ),
            "final": make_gate(
                "weighted",
                ["eligibility", "consent", "risk"],
                weights=[3, 1, -2],
            ),
        },
        output="final",
    )


def make_engine(
    clock: FakeClock = None,
    cache_enabled: bool = False,
    cache_ttl: float = 3600.0,
    observers: list = None,
) -> DecisionEngine:
    """Create an engine with explicit settings and an isolated cache."""
    cache = InMemoryDecisionCache(clock=clock) if clock is not None else InMemoryDecisionCache()
    return DecisionEngine(
        logic=TernaryLogic(ExpressionEvaluator()),
        cache=cache,
        settings=TrileanSettings(cache_enabled=cache_enabled, cache_ttl=cache_ttl),
        observers=observers,
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def evaluator():
    """Create a fresh expression evaluator."""
    return ExpressionEvaluator()


@pytest.fixture
def logic(evaluator):
    """Create a logic service bound to a fresh evaluator."""
    return TernaryLogic(evaluator)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    """Create a decision engine with memoization off."""
    return make_engine()
