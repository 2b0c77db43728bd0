"""
Trilean - Three-Valued Logic for Decisions

Every signal resolves to TRUE, FALSE or UNKNOWN. Trilean combines such
signals with Kleene operators, weighted votes and a small expression
language, evaluates declarative decision blueprints with per-gate
evidence, and encodes state vectors as balanced-ternary strings.

Key Features:
- Total coercion of bools, ints, None and string aliases
- AND / OR / NOT / XOR / weighted and consensus votes
- Expression language with precedence, IF(), MAJ() and custom functions
- Blueprint decision engine with evidence, memoization and observers
- Balanced-ternary codec and arithmetic

Quick Start:
    from trilean import DecisionEngine, TernaryState, and_, evaluate

    and_(True, None)                                    # UNKNOWN
    evaluate("consent AND !risk", {"consent": "yes", "risk": False})  # TRUE

    report = DecisionEngine().evaluate({
        "inputs": {"consent": lambda ctx: True, "risk": "user.risk"},
        "gates": {"eligible": {"operator": "and", "operands": ["consent", "!risk"]}},
    }, {"user": {"risk": None}})
    report.result                                       # UNKNOWN

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"

from .codec import decode_states, encode_states, from_balanced, to_balanced
from .arithmetic import add, normalize_noise, subtract
from .config import TrileanSettings, get_settings
from .engine import (
    CircuitBuilder,
    DecisionBuilder,
    DecisionCache,
    DecisionEngine,
    ExpressionEvaluator,
    InMemoryDecisionCache,
    circuit,
    decide,
    evaluate,
)
from .exceptions import (
    BlueprintLoadError,
    BlueprintValidationError,
    BlueprintVersionMismatch,
    EvaluatorNotConfiguredError,
    ExpressionSyntaxError,
    InvalidTritSymbolError,
    TernaryAssertionError,
    TrileanError,
    UndefinedOperandError,
    UnsupportedValueError,
)
from .logic import (
    TernaryLogic,
    and_,
    coerce,
    consensus,
    get_default_logic,
    not_,
    or_,
    score,
    vector,
    weighted,
    xor,
)
from .models import (
    BalancedTrit,
    Blueprint,
    Decision,
    DecisionReport,
    Evidence,
    GateDefinition,
    GateOperator,
    TernaryState,
    TernaryVector,
)

__all__ = [
    "__version__",
    # Algebra
    "coerce",
    "vector",
    "and_",
    "or_",
    "not_",
    "xor",
    "weighted",
    "consensus",
    "score",
    "TernaryLogic",
    "get_default_logic",
    # Codec / arithmetic
    "to_balanced",
    "from_balanced",
    "encode_states",
    "decode_states",
    "add",
    "subtract",
    "normalize_noise",
    # Engine
    "evaluate",
    "ExpressionEvaluator",
    "DecisionEngine",
    "DecisionCache",
    "InMemoryDecisionCache",
    "DecisionBuilder",
    "CircuitBuilder",
    "decide",
    "circuit",
    # Config
    "TrileanSettings",
    "get_settings",
    # Models
    "TernaryState",
    "BalancedTrit",
    "TernaryVector",
    "GateOperator",
    "Blueprint",
    "GateDefinition",
    "Evidence",
    "Decision",
    "DecisionReport",
    # Exceptions
    "TrileanError",
    "UnsupportedValueError",
    "InvalidTritSymbolError",
    "UndefinedOperandError",
    "EvaluatorNotConfiguredError",
    "ExpressionSyntaxError",
    "TernaryAssertionError",
    "BlueprintLoadError",
    "BlueprintValidationError",
    "BlueprintVersionMismatch",
]
