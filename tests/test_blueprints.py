"""
Tests for Blueprint Loading and Validation

Tests cover:
- YAML and JSON files, mapping and list gate forms
- Schema validation errors
- Schema version compatibility
- Reference integrity
- Load/parse failures
"""
import json

import pytest

from trilean.blueprints import (
    SCHEMA_VERSION,
    BlueprintLoader,
    load_blueprint,
    load_blueprint_from_string,
)
from trilean.blueprints.schema import BlueprintSchema, check_schema_version
from trilean.exceptions import (
    BlueprintLoadError,
    BlueprintValidationError,
    BlueprintVersionMismatch,
)
from trilean.models import ContextInput, GateOperator, LiteralInput

from tests.conftest import F, T, U, make_engine

CHECKOUT_YAML = """
schema_version: "1.0.0"
name: checkout
description: Approve checkout when consent is given and risk is clear
inputs:
  consent: true
  risk: user.risk
gates:
  eligibility:
    operator: AND
    operands: [consent, "!risk"]
    description: consent and no risk
  final:
    operator: weighted
    operands: [eligibility, consent, risk]
    weights: [3, 1, -2]
output: final
"""


@pytest.fixture
def loader():
    return BlueprintLoader()


# =============================================================================
# Loading Tests
# =============================================================================

class TestLoadBlueprint:
    """Tests for loading blueprint files and strings."""

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "checkout.yaml"
        path.write_text(CHECKOUT_YAML, encoding="utf-8")

        blueprint = load_blueprint(path)

        assert blueprint.name == "checkout"
        assert blueprint.gate_names == ["eligibility", "final"]
        assert blueprint.output == "final"
        assert isinstance(blueprint.inputs["consent"], LiteralInput)
        assert isinstance(blueprint.inputs["risk"], ContextInput)
        assert blueprint.gates[0].operator is GateOperator.AND
        assert blueprint.gates[0].description == "consent and no risk"
        assert blueprint.gates[1].weights == (3, 1, -2)

    def test_loaded_blueprint_evaluates(self, tmp_path):
        path = tmp_path / "checkout.yml"
        path.write_text(CHECKOUT_YAML, encoding="utf-8")
        engine = make_engine()

        report = engine.evaluate(load_blueprint(str(path)), {"user": {"risk": False}})

        assert report.decision("eligibility").state == T
        assert report.result == T
        assert report.metadata["blueprint"] == "checkout"

    def test_load_json_file(self, tmp_path):
        path = tmp_path / "simple.json"
        path.write_text(json.dumps({
            "name": "simple",
            "inputs": {"a": True, "b": None},
            "gates": [{"name": "either", "operator": "or", "operands": ["a", "b"]}],
        }), encoding="utf-8")

        blueprint = load_blueprint(path)

        assert blueprint.gate_names == ["either"]
        assert make_engine().evaluate(blueprint).result == T

    def test_load_from_string_formats(self):
        yaml_blueprint = load_blueprint_from_string(CHECKOUT_YAML)
        json_blueprint = load_blueprint_from_string(
            '{"name": "j", "inputs": {"a": false}, "gates": {"n": {"operator": "not", "operands": ["a"]}}}',
            format="json",
        )

        assert yaml_blueprint.name == "checkout"
        assert make_engine().evaluate(json_blueprint).result == T

    def test_expression_gate(self):
        blueprint = load_blueprint_from_string("""
name: expr
inputs:
  a: true
gates:
  check:
    operator: expression
    expression: a AND flags.beta
""")
        report = make_engine().evaluate(blueprint, {"flags": {"beta": "unknown"}})
        assert report.result == U

    def test_expression_operands_are_not_references(self):
        blueprint = load_blueprint_from_string("""
name: expr_operand
inputs:
  a: false
gates:
  g:
    operator: or
    operands: ["@NOT a", a]
""")
        assert make_engine().evaluate(blueprint).result == T

    def test_unquoted_numeric_version_accepted(self):
        blueprint = load_blueprint_from_string("schema_version: 1.2\nname: v\ninputs: {a: 0}\n")
        assert make_engine().evaluate(blueprint).result == U
        assert blueprint.inputs["a"] == LiteralInput(F)


# =============================================================================
# Validation Tests
# =============================================================================

class TestValidation:
    """Tests for schema and integrity validation."""

    @pytest.mark.parametrize("content", [
        "inputs: {a: true}\n",
        "name: x\ngates:\n  g: {operator: nand, operands: [a]}\ninputs: {a: true}\n",
        "name: x\ngates:\n  g: {operator: and}\n",
        "name: x\ngates:\n  g: {operator: expression}\n",
        "name: x\ninputs: {a: true, b: true}\ngates:\n  g: {operator: not, operands: [a, b]}\n",
        "name: x\ninputs: {a: true}\ngates:\n  g: {operator: and, operands: [a], weights: [1]}\n",
        "name: x\ninputs: {a: true}\ngates:\n  g: {operator: weighted, operands: [a], weights: [1, 2]}\n",
        "name: x\ninputs: {a: true}\ngates:\n  - {operator: and, operands: [a]}\n",
        "name: x\ninputs: {a: [1, 2]}\n",
        "name: x\nunexpected: field\n",
    ])
    def test_schema_errors(self, loader, content):
        with pytest.raises(BlueprintValidationError) as exc_info:
            loader.load_from_string(content)
        assert exc_info.value.code == "TL_BLUEPRINT_VALIDATION_ERROR"
        assert exc_info.value.details["errors"]

    def test_undefined_reference(self, loader):
        with pytest.raises(BlueprintValidationError) as exc_info:
            loader.load_from_string("""
name: x
inputs: {a: true}
gates:
  g: {operator: and, operands: [a, "!ghost"]}
""")
        assert exc_info.value.details["errors"] == ["Gate 'g' references undefined operand 'ghost'"]

    def test_forward_reference_rejected(self, loader):
        with pytest.raises(BlueprintValidationError) as exc_info:
            loader.load_from_string("""
name: x
inputs: {a: true}
gates:
  first: {operator: and, operands: [a, second]}
  second: {operator: or, operands: [a]}
""")
        assert "undefined operand 'second'" in exc_info.value.details["errors"][0]

    def test_duplicate_and_bad_output(self, loader):
        with pytest.raises(BlueprintValidationError) as exc_info:
            loader.load_from_string("""
name: x
inputs: {a: true}
gates:
  a: {operator: not, operands: [a]}
output: nowhere
""")
        assert exc_info.value.details["errors"] == [
            "Duplicate name: 'a'",
            "Output 'nowhere' is not an input or gate",
        ]

    def test_output_may_name_an_input(self, loader):
        blueprint = loader.load_from_string("name: x\ninputs: {a: false}\noutput: a\n")
        assert make_engine().evaluate(blueprint).result == F


class TestSchemaVersion:
    """Tests for schema version compatibility."""

    def test_major_mismatch_rejected(self, loader):
        with pytest.raises(BlueprintVersionMismatch) as exc_info:
            loader.load_from_string('schema_version: "2.0.0"\nname: x\n')
        assert exc_info.value.details == {
            "blueprint_version": "2.0.0",
            "expected_version": SCHEMA_VERSION,
        }

    def test_mismatch_allowed_when_not_strict(self):
        blueprint = BlueprintLoader(strict_version=False).load_from_string(
            'schema_version: "2.0.0"\nname: x\n'
        )
        assert blueprint.name == "x"

    def test_check_schema_version(self):
        assert check_schema_version({})
        assert check_schema_version({"schema_version": "1.9"})
        assert not check_schema_version({"schema_version": "0.1"})

    def test_gate_items_preserve_order(self):
        schema = BlueprintSchema.model_validate({
            "name": "x",
            "gates": [
                {"name": "b", "operands": [True]},
                {"name": "a", "operands": [False]},
            ],
        })
        assert [name for name, _ in schema.gate_items()] == ["b", "a"]


class TestLoadErrors:
    """Tests for unreadable or unparsable input."""

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(BlueprintLoadError) as exc_info:
            loader.load(tmp_path / "missing.yaml")
        assert exc_info.value.details["path"].endswith("missing.yaml")

    def test_invalid_yaml(self, loader, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("name: [unclosed\n", encoding="utf-8")
        with pytest.raises(BlueprintLoadError):
            loader.load(path)

    def test_invalid_json_string(self, loader):
        with pytest.raises(BlueprintLoadError):
            loader.load_from_string("{not json", format="json")

    def test_non_mapping(self, loader):
        with pytest.raises(BlueprintLoadError) as exc_info:
            loader.load_from_string("- just\n- a list\n")
        assert exc_info.value.details["type"] == "list"
