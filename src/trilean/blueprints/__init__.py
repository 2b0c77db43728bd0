"""
Trilean Blueprints

Schema validation and loading for blueprint files.

Blueprints are YAML or JSON files declaring named inputs, an ordered
chain of gates and an output key:

    schema_version: "1.0.0"
    name: checkout
    inputs:
      consent: user.consent
      risk: user.risk
    gates:
      eligibility:
        operator: and
        operands: [consent, "!risk"]
    output: eligibility

Usage:
    from trilean.blueprints import load_blueprint

    blueprint = load_blueprint("blueprints/checkout.yaml")
"""
from __future__ import annotations

from .loader import (
    BlueprintLoader,
    load_blueprint,
    load_blueprint_from_string,
    validate_reference_integrity,
)
from .schema import (
    SCHEMA_VERSION,
    BlueprintSchema,
    GateSchema,
    check_schema_version,
    validate_blueprint,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Loader
    "BlueprintLoader",
    "load_blueprint",
    "load_blueprint_from_string",
    # Validation
    "validate_blueprint",
    "validate_reference_integrity",
    "check_schema_version",
    # Schemas
    "BlueprintSchema",
    "GateSchema",
]
