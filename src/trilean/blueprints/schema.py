"""
Trilean Blueprint Schemas

Pydantic models for validating blueprint YAML/JSON files.

File blueprints hold only declarative values: literal inputs (bool, int,
null), context paths, "@expressions", and gate operand references.
Callables exist only in blueprints built in code.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders check the major version for compatibility
"""
from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


# =============================================================================
# Value Types
# =============================================================================

GateOperatorName = Literal["and", "or", "not", "consensus", "weighted", "expression"]

# bool before int so YAML true/false stay booleans
ScalarValue = Union[bool, int, None, str]


# =============================================================================
# Gate Schema
# =============================================================================

class GateSchema(BaseModel):
    """One gate of a blueprint file."""
    name: Optional[str] = Field(None, description="Gate name (required in list form)")
    operator: GateOperatorName = Field("and", description="Gate operator")
    operands: list[ScalarValue] = Field(default_factory=list)
    weights: list[int] = Field(default_factory=list)
    expression: Optional[str] = None
    description: Optional[str] = None

    @field_validator("operator", mode="before")
    @classmethod
    def lowercase_operator(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @model_validator(mode="after")
    def validate_structure(self) -> "GateSchema":
        """Validate gate structure based on operator type."""
        if self.operator == "expression":
            if not self.expression:
                raise ValueError("Expression gate requires 'expression'")
        elif not self.operands:
            raise ValueError(f"Gate operator '{self.operator}' requires 'operands'")

        if self.operator == "not" and len(self.operands) != 1:
            raise ValueError("NOT gate must have exactly one operand")
        if self.weights and self.operator != "weighted":
            raise ValueError("'weights' is only valid on weighted gates")
        if len(self.weights) > len(self.operands):
            raise ValueError("More weights than operands")
        return self

    model_config = {
        "extra": "forbid",
    }


# =============================================================================
# Blueprint Schema
# =============================================================================

class BlueprintSchema(BaseModel):
    """Complete blueprint file."""
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    name: str = Field(..., description="Blueprint name, reported in metadata")
    description: Optional[str] = None
    inputs: dict[str, ScalarValue] = Field(default_factory=dict)
    gates: Union[dict[str, GateSchema], list[GateSchema]] = Field(default_factory=dict)
    output: Optional[str] = Field(None, description="Input or gate holding the result")

    @field_validator("schema_version", mode="before")
    @classmethod
    def stringify_version(cls, value: Any) -> Any:
        # YAML reads an unquoted 1.0 as a float
        return str(value) if isinstance(value, (int, float)) else value

    @model_validator(mode="after")
    def validate_gate_names(self) -> "BlueprintSchema":
        if isinstance(self.gates, list):
            for index, gate in enumerate(self.gates):
                if not gate.name:
                    raise ValueError(f"Gate at index {index} requires 'name'")
        return self

    def gate_items(self) -> list[tuple[str, GateSchema]]:
        """Gates as (name, schema) pairs in declaration order."""
        if isinstance(self.gates, dict):
            return list(self.gates.items())
        return [(gate.name or "", gate) for gate in self.gates]

    model_config = {
        "extra": "forbid",
    }


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_blueprint(data: dict[str, Any]) -> BlueprintSchema:
    """
    Validate a blueprint dictionary against the schema.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return BlueprintSchema.model_validate(data)


def check_schema_version(data: dict[str, Any]) -> bool:
    """True if the blueprint's major schema version matches ours."""
    blueprint_version = str(data.get("schema_version", SCHEMA_VERSION))
    return blueprint_version.split(".")[0] == SCHEMA_VERSION.split(".")[0]
