"""
Trilean Blueprint Loader

Loads and validates blueprints from YAML or JSON files and converts them
into Blueprint models for the decision engine.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import ValidationError

from ..exceptions import BlueprintLoadError, BlueprintValidationError, BlueprintVersionMismatch
from ..models.decision import Blueprint
from .schema import SCHEMA_VERSION, BlueprintSchema, check_schema_version, validate_blueprint

logger = logging.getLogger(__name__)


# =============================================================================
# Reference Integrity Validation
# =============================================================================

def validate_reference_integrity(schema: BlueprintSchema) -> list[str]:
    """
    Check that names used by gates resolve in declaration order.

    Catches:
    - Operands referencing an input or gate that is not defined earlier
    - Gate names that duplicate an input or another gate
    - An output key naming nothing

    Returns:
        List of error messages (empty when the blueprint is consistent)
    """
    errors = []
    available = set(schema.inputs)

    for name, gate in schema.gate_items():
        for operand in gate.operands:
            if not isinstance(operand, str) or operand.startswith("@"):
                continue
            reference = operand[1:] if operand.startswith("!") else operand
            if reference not in available:
                errors.append(f"Gate '{name}' references undefined operand '{reference}'")

        if name in available:
            errors.append(f"Duplicate name: '{name}'")
        available.add(name)

    if schema.output is not None and schema.output not in available:
        errors.append(f"Output '{schema.output}' is not an input or gate")

    return errors


# =============================================================================
# Schema to Model Conversion
# =============================================================================

def _convert_blueprint(schema: BlueprintSchema) -> Blueprint:
    gates = [
        {"name": name, **gate.model_dump(exclude_none=True, exclude={"name"})}
        for name, gate in schema.gate_items()
    ]
    return Blueprint.from_dict({
        "name": schema.name,
        "inputs": dict(schema.inputs),
        "gates": gates,
        "output": schema.output,
    })


# =============================================================================
# Loader
# =============================================================================

class BlueprintLoader:
    """
    Loads blueprints from YAML or JSON files.

    Usage:
        loader = BlueprintLoader()
        blueprint = loader.load("blueprints/checkout.yaml")
        report = DecisionEngine().evaluate(blueprint, context)
    """

    def __init__(self, strict_version: bool = True):
        self.strict_version = strict_version

    def load(self, path: Union[str, Path]) -> Blueprint:
        """
        Load a blueprint from a file.

        Raises:
            BlueprintLoadError: If file cannot be read or parsed
            BlueprintValidationError: If validation fails
            BlueprintVersionMismatch: If schema version incompatible
        """
        path = Path(path)
        try:
            data = self._load_file(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise BlueprintLoadError(
                message=f"Failed to load blueprint: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

        return self.load_data(data, source=str(path))

    def load_from_string(self, content: str, format: str = "yaml") -> Blueprint:
        """Load a blueprint from a YAML or JSON string."""
        try:
            if format.lower() == "json":
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise BlueprintLoadError(
                message=f"Failed to parse blueprint: {e}",
                details={"format": format, "error": str(e)},
            ) from e

        return self.load_data(data)

    def load_data(self, data: Any, source: str = "") -> Blueprint:
        """Validate already-parsed blueprint data."""
        if not isinstance(data, dict):
            raise BlueprintLoadError(
                message="Blueprint must be a mapping",
                details={"path": source, "type": type(data).__name__},
            )

        # Check schema version
        if self.strict_version and not check_schema_version(data):
            blueprint_version = data.get("schema_version", "unknown")
            raise BlueprintVersionMismatch(
                message=f"Schema version mismatch: blueprint has {blueprint_version}, expected {SCHEMA_VERSION}",
                details={
                    "blueprint_version": str(blueprint_version),
                    "expected_version": SCHEMA_VERSION,
                },
            )

        # Validate against schema
        try:
            schema = validate_blueprint(data)
        except ValidationError as e:
            raise BlueprintValidationError(
                message=f"Blueprint validation failed: {e.error_count()} errors",
                details={"errors": e.errors(include_url=False), "path": source},
            ) from e

        # Validate reference integrity
        errors = validate_reference_integrity(schema)
        if errors:
            raise BlueprintValidationError(
                message="Reference integrity validation failed",
                details={"errors": errors, "path": source},
            )

        blueprint = _convert_blueprint(schema)
        logger.debug("Loaded blueprint %s with %d gates", blueprint.name, len(blueprint.gates))
        return blueprint

    def _load_file(self, path: Path) -> Any:
        """Load data from YAML or JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            # YAML is a superset of JSON
            return yaml.safe_load(f)


# =============================================================================
# Convenience Functions
# =============================================================================

def load_blueprint(path: Union[str, Path]) -> Blueprint:
    """Load a single blueprint file."""
    return BlueprintLoader().load(path)


def load_blueprint_from_string(content: str, format: str = "yaml") -> Blueprint:
    """
    Load a blueprint from a string.

    Args:
        content: YAML or JSON string
        format: "yaml" or "json"
    """
    return BlueprintLoader().load_from_string(content, format)
