"""
Trilean Engine

Evaluation services built on the ternary algebra.

Services:
- ExpressionEvaluator: Tokenize, parse and evaluate logic expressions
- DecisionEngine: Evaluate declarative blueprints into DecisionReports
- InMemoryDecisionCache: TTL memoization store for reports
- DecisionBuilder / CircuitBuilder: Fluent construction helpers

Usage:
    from trilean.engine import DecisionEngine, ExpressionEvaluator, decide
"""
from __future__ import annotations

from .builder import (
    CircuitBuilder,
    DecisionBuilder,
    circuit,
    decide,
)
from .cache import (
    CacheEntry,
    DecisionCache,
    InMemoryDecisionCache,
)
from .decision_engine import (
    DecisionEngine,
    evaluate_blueprint,
    get_default_engine,
)
from .expression import (
    BUILTIN_OPERATORS,
    ExpressionEvaluator,
    OperatorSpec,
    Token,
    TokenKind,
    evaluate,
    resolve_path,
)

__all__ = [
    # Builders
    "CircuitBuilder",
    "DecisionBuilder",
    "circuit",
    "decide",
    # Cache
    "CacheEntry",
    "DecisionCache",
    "InMemoryDecisionCache",
    # Decision engine
    "DecisionEngine",
    "evaluate_blueprint",
    "get_default_engine",
    # Expressions
    "BUILTIN_OPERATORS",
    "ExpressionEvaluator",
    "OperatorSpec",
    "Token",
    "TokenKind",
    "evaluate",
    "resolve_path",
]
