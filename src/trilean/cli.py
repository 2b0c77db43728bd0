"""
Trilean CLI

Command-line access to expression evaluation, blueprint decisions and
the balanced-ternary codec.

Usage:
    trilean expr "consent AND !risk" --context '{"consent": true, "risk": false}'
    trilean decide blueprints/checkout.yaml --context @context.json
    trilean encode true unknown false        # +0-
    trilean decode +0-
    trilean to-balanced 42                   # +---0
    trilean from-balanced -- -+0             # -6
    trilean add 7 -3

Exit codes: 0 success, 1 evaluation error, 2 usage error.
Strings starting with "-" must follow "--".
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

import yaml

from . import __version__
from .arithmetic import add, subtract
from .blueprints import load_blueprint
from .codec import decode_states, encode_states, from_balanced, to_balanced
from .config import TrileanSettings
from .engine.decision_engine import DecisionEngine
from .exceptions import TrileanError
from .log_config import configure_logging, log_decision
from .logic import get_default_logic


def parse_context(raw: str) -> dict[str, Any]:
    """Parse --context: inline JSON/YAML, or @path to a JSON/YAML file."""
    try:
        if raw.startswith("@"):
            with open(Path(raw[1:]), "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        else:
            data = yaml.safe_load(raw)
    except (OSError, yaml.YAMLError) as e:
        raise argparse.ArgumentTypeError(f"invalid context: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise argparse.ArgumentTypeError("context must be a mapping")
    return data


def cmd_expr(args: argparse.Namespace) -> int:
    state = get_default_logic().expression(args.expression, args.context)
    print(state.value)
    return 0


def cmd_decide(args: argparse.Namespace) -> int:
    blueprint = load_blueprint(args.blueprint)
    engine = DecisionEngine(settings=args.settings, observers=[log_decision])
    report = engine.evaluate(blueprint, args.context)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return 0

    print(f"Blueprint: {blueprint.name}")
    print(f"Result:    {report.result.value}")
    print(f"Encoded:   {report.encoded_vector}")
    print()
    for decision in report.decisions:
        evidence = ", ".join(f"{item.operand}={item.state.value}" for item in decision.evidence)
        print(f"  {decision.name:<20} {decision.operator:<10} {decision.state.value:<8} {evidence}")
    return 0


def cmd_encode(args: argparse.Namespace) -> int:
    print(encode_states(args.values))
    return 0


def cmd_decode(args: argparse.Namespace) -> int:
    print(" ".join(state.value for state in decode_states(args.encoded)))
    return 0


def cmd_to_balanced(args: argparse.Namespace) -> int:
    print(to_balanced(args.value))
    return 0


def cmd_from_balanced(args: argparse.Namespace) -> int:
    print(from_balanced(args.encoded))
    return 0


def cmd_add(args: argparse.Namespace) -> int:
    result = add(args.a, args.b)
    print(f"{result} ({to_balanced(result)})")
    return 0


def cmd_subtract(args: argparse.Namespace) -> int:
    result = subtract(args.a, args.b)
    print(f"{result} ({to_balanced(result)})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trilean",
        description="Three-valued logic: expressions, decisions and balanced ternary",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override TRILEAN_LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    expr_parser = subparsers.add_parser("expr", help="Evaluate a logic expression")
    expr_parser.add_argument("expression")
    expr_parser.add_argument("--context", type=parse_context, default={}, help="JSON/YAML or @file")
    expr_parser.set_defaults(func=cmd_expr)

    decide_parser = subparsers.add_parser("decide", help="Evaluate a blueprint file")
    decide_parser.add_argument("blueprint", help="Path to YAML or JSON blueprint")
    decide_parser.add_argument("--context", type=parse_context, default={}, help="JSON/YAML or @file")
    decide_parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    decide_parser.set_defaults(func=cmd_decide)

    encode_parser = subparsers.add_parser("encode", help="Encode values as a trit string")
    encode_parser.add_argument("values", nargs="+")
    encode_parser.set_defaults(func=cmd_encode)

    decode_parser = subparsers.add_parser("decode", help="Decode a trit string into states")
    decode_parser.add_argument("encoded")
    decode_parser.set_defaults(func=cmd_decode)

    to_parser = subparsers.add_parser("to-balanced", help="Integer to balanced ternary")
    to_parser.add_argument("value", type=int)
    to_parser.set_defaults(func=cmd_to_balanced)

    from_parser = subparsers.add_parser("from-balanced", help="Balanced ternary to integer")
    from_parser.add_argument("encoded")
    from_parser.set_defaults(func=cmd_from_balanced)

    add_parser = subparsers.add_parser("add", help="Add two integers in balanced ternary")
    add_parser.add_argument("a", type=int)
    add_parser.add_argument("b", type=int)
    add_parser.set_defaults(func=cmd_add)

    subtract_parser = subparsers.add_parser("subtract", help="Subtract two integers in balanced ternary")
    subtract_parser.add_argument("a", type=int)
    subtract_parser.add_argument("b", type=int)
    subtract_parser.set_defaults(func=cmd_subtract)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    try:
        settings = TrileanSettings.from_env()
    except TrileanError as e:
        print(str(e), file=sys.stderr)
        return 2

    configure_logging(args.log_level or settings.log_level, settings.log_json)
    args.settings = settings

    try:
        return args.func(args)
    except TrileanError as e:
        print(str(e), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
