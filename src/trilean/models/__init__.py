"""
Trilean Models

Value types for three-valued logic and declarative decision graphs.
"""
from __future__ import annotations

from .decision import (
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
from .enums import BalancedTrit, GateOperator, TernaryState
from .vector import TernaryVector

__all__ = [
    # Enums
    "BalancedTrit",
    "GateOperator",
    "TernaryState",
    # Vectors
    "TernaryVector",
    # Blueprint
    "Blueprint",
    "GateDefinition",
    "InputSource",
    "LiteralInput",
    "ContextInput",
    "ExpressionInput",
    "ComputedInput",
    "Operand",
    "ReferenceOperand",
    "ExpressionOperand",
    "ComputedOperand",
    "LiteralOperand",
    # Results
    "Evidence",
    "Decision",
    "DecisionReport",
]
