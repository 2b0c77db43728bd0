"""
Trilean Expression Evaluator

Evaluates a small boolean language over three-valued states.

Grammar:
- Literals: true, false, unknown (case-insensitive)
- Operands: dotted context paths (e.g. "user.consent"), optionally "!"-prefixed
- Unary:  NOT, !
- Binary: AND, &    (precedence 2)
          OR, |, XOR, ^, MAJ, CONSENSUS    (precedence 1)
- Calls:  IF(condition, then, else), MAJ(a, b, ...), CONSENSUS(a, b, ...),
          and NAME(args...) for registered custom functions
- Parentheses for grouping

Pipeline:
1. tokenize(): split on parentheses, commas, symbols and whitespace;
   keywords are recognised as whole words only
2. to_postfix(): operator-precedence (shunting-yard) conversion
3. evaluate(): stack evaluation of the postfix sequence

Unknown context paths resolve to UNKNOWN; unregistered call names
evaluate to UNKNOWN.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Optional

from ..exceptions import ExpressionSyntaxError
from ..logic import TernaryLogic, get_default_logic
from ..models.enums import TernaryState
from ..models.vector import TernaryVector

logger = logging.getLogger(__name__)

Handler = Callable[[list[TernaryState], TernaryLogic], Any]


# =============================================================================
# Operator Table
# =============================================================================

@dataclass(frozen=True)
class OperatorSpec:
    """Precedence, arity and optional custom handler of an operator."""
    key: str
    precedence: int
    arity: int
    handler: Optional[Handler] = None


BUILTIN_OPERATORS: dict[str, OperatorSpec] = {
    "NOT": OperatorSpec("NOT", precedence=3, arity=1),
    "AND": OperatorSpec("AND", precedence=2, arity=2),
    "OR": OperatorSpec("OR", precedence=1, arity=2),
    "XOR": OperatorSpec("XOR", precedence=1, arity=2),
    "MAJ": OperatorSpec("MAJ", precedence=1, arity=2),
    "CONSENSUS": OperatorSpec("CONSENSUS", precedence=1, arity=2),
    "IF": OperatorSpec("IF", precedence=0, arity=3),
}

OPERATOR_ALIASES: dict[str, str] = {
    "!": "NOT",
    "&": "AND",
    "|": "OR",
    "^": "XOR",
    "MAJORITY": "MAJ",
    "IFTHENELSE": "IF",
}

# Builtins that may also be written in call form
CALLABLE_BUILTINS = frozenset({"IF", "MAJ", "CONSENSUS"})

LITERALS: dict[str, TernaryState] = {
    "true": TernaryState.TRUE,
    "false": TernaryState.FALSE,
    "unknown": TernaryState.UNKNOWN,
}


# =============================================================================
# Tokens
# =============================================================================

class TokenKind(str, Enum):
    OPERAND = "operand"
    OPERATOR = "operator"
    FUNCTION = "function"
    LPAREN = "lparen"
    RPAREN = "rparen"
    COMMA = "comma"


@dataclass(frozen=True)
class Token:
    """A lexical unit; FUNCTION tokens in postfix form carry their argument count."""
    kind: TokenKind
    value: str
    position: int = 0
    argc: int = 0


_LEXEME_RE = re.compile(r"\s*(?:(?P<paren>[()])|(?P<comma>,)|(?P<symbol>[!&|^])|(?P<word>[^\s()!&|^,]+))")

# Token kinds after which a word stands in prefix position
_PREFIX_CONTEXT = frozenset({TokenKind.OPERATOR, TokenKind.LPAREN, TokenKind.COMMA, TokenKind.FUNCTION})


# =============================================================================
# Context Path Resolution
# =============================================================================

def resolve_path(context: Any, path: str) -> tuple[Any, bool]:
    """
    Resolve a dot-notation path against nested mappings and objects.

    A mapping that holds the full dotted path as a key wins over walking
    the segments.

    Returns:
        Tuple of (resolved_value, found). If not found, returns (None, False).
    """
    if isinstance(context, Mapping) and path in context:
        return (context[path], True)

    current = context
    for part in path.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                return (None, False)
            current = current[part]
        elif part and not part.startswith("_") and hasattr(current, part):
            current = getattr(current, part)
        else:
            return (None, False)

    return (current, True)


# =============================================================================
# Evaluator
# =============================================================================

class ExpressionEvaluator:
    """
    Tokenizer, shunting-yard parser and stack evaluator for ternary expressions.

    Usage:
        evaluator = ExpressionEvaluator()
        evaluator.evaluate("consent AND !risk", {"consent": "true", "risk": "unknown"})
        # -> TernaryState.UNKNOWN

        evaluator.register_function("NAND", lambda values, logic: ~logic.and_(values))
        evaluator.evaluate("NAND(a, b)", {"a": True, "b": True})
        # -> TernaryState.FALSE
    """

    def __init__(self) -> None:
        self._operators: dict[str, OperatorSpec] = dict(BUILTIN_OPERATORS)
        self._functions: dict[str, Handler] = {}

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register_operator(
        self,
        name: str,
        handler: Handler,
        precedence: int = 1,
        arity: int = 2,
    ) -> None:
        """Register a custom infix (or, with arity 1, prefix) keyword operator."""
        key = name.upper()
        self._operators[key] = OperatorSpec(key, precedence=precedence, arity=arity, handler=handler)

    def register_function(self, name: str, handler: Handler) -> None:
        """Register a custom call-style operator: NAME(arg, ...)."""
        self._functions[name.upper()] = handler

    def operator_spec(self, token: str) -> Optional[OperatorSpec]:
        upper = token.upper()
        return self._operators.get(OPERATOR_ALIASES.get(upper, upper))

    # -------------------------------------------------------------------------
    # Tokenize
    # -------------------------------------------------------------------------

    def tokenize(self, expression: str) -> list[Token]:
        """Split an expression into classified tokens."""
        lexemes: list[tuple[str, str, int]] = []
        position = 0
        while position < len(expression):
            match = _LEXEME_RE.match(expression, position)
            if match is None or match.end() == position:
                break
            group = match.lastgroup
            if group is None:
                break
            lexemes.append((group, match.group(group), match.start(group)))
            position = match.end()

        tokens: list[Token] = []
        for index, (group, text, start) in enumerate(lexemes):
            if group == "paren":
                kind = TokenKind.LPAREN if text == "(" else TokenKind.RPAREN
                tokens.append(Token(kind, text, start))
            elif group == "comma":
                tokens.append(Token(TokenKind.COMMA, text, start))
            elif group == "symbol":
                tokens.append(Token(TokenKind.OPERATOR, OPERATOR_ALIASES[text], start))
            else:
                next_is_paren = index + 1 < len(lexemes) and lexemes[index + 1][1] == "("
                prefix_position = not tokens or tokens[-1].kind in _PREFIX_CONTEXT
                tokens.append(self._classify_word(text, start, next_is_paren and prefix_position))

        return tokens

    def _classify_word(self, text: str, start: int, call_position: bool) -> Token:
        upper = text.upper()
        key = OPERATOR_ALIASES.get(upper, upper)

        if call_position and (key in CALLABLE_BUILTINS or key in self._functions):
            return Token(TokenKind.FUNCTION, key, start)
        if key in self._operators:
            return Token(TokenKind.OPERATOR, key, start)
        if call_position and text.lower() not in LITERALS:
            return Token(TokenKind.FUNCTION, key, start)
        return Token(TokenKind.OPERAND, text, start)

    # -------------------------------------------------------------------------
    # Parse
    # -------------------------------------------------------------------------

    def to_postfix(self, tokens: Sequence[Token]) -> list[Token]:
        """
        Convert infix tokens to postfix with the shunting-yard method.

        A binary operator pops operators of greater or equal precedence
        before being pushed; prefix operators are pushed directly.

        Raises:
            ExpressionSyntaxError: On unbalanced parentheses or stray commas
        """
        output: list[Token] = []
        stack: list[Token] = []
        arg_counts: list[int] = []
        previous: Optional[Token] = None

        for token in tokens:
            if token.kind == TokenKind.OPERAND:
                output.append(token)

            elif token.kind == TokenKind.FUNCTION:
                stack.append(token)

            elif token.kind == TokenKind.OPERATOR:
                definition = self._operators[token.value]
                if definition.arity > 1:
                    while stack and stack[-1].kind == TokenKind.OPERATOR:
                        top = self._operators[stack[-1].value]
                        if definition.precedence > top.precedence:
                            break
                        output.append(stack.pop())
                stack.append(token)

            elif token.kind == TokenKind.LPAREN:
                if previous is not None and previous.kind == TokenKind.FUNCTION:
                    arg_counts.append(1)
                stack.append(token)

            elif token.kind == TokenKind.COMMA:
                self._pop_until_paren(stack, output, token)
                if len(stack) < 2 or stack[-2].kind != TokenKind.FUNCTION:
                    raise ExpressionSyntaxError(
                        message="Comma outside of a function call",
                        details={"position": token.position},
                    )
                arg_counts[-1] += 1

            elif token.kind == TokenKind.RPAREN:
                self._pop_until_paren(stack, output, token)
                stack.pop()
                if stack and stack[-1].kind == TokenKind.FUNCTION:
                    function = stack.pop()
                    argc = arg_counts.pop()
                    if previous is not None and previous.kind == TokenKind.LPAREN:
                        argc = 0
                    output.append(replace(function, argc=argc))

            previous = token

        while stack:
            token = stack.pop()
            if token.kind in (TokenKind.LPAREN, TokenKind.FUNCTION):
                raise ExpressionSyntaxError(
                    message="Unbalanced parentheses: missing ')'",
                    details={"position": token.position},
                )
            output.append(token)

        return output

    @staticmethod
    def _pop_until_paren(stack: list[Token], output: list[Token], token: Token) -> None:
        while stack and stack[-1].kind != TokenKind.LPAREN:
            output.append(stack.pop())
        if not stack:
            raise ExpressionSyntaxError(
                message=f"Unbalanced parentheses: unexpected {token.value!r}",
                details={"position": token.position},
            )

    # -------------------------------------------------------------------------
    # Evaluate
    # -------------------------------------------------------------------------

    def evaluate(
        self,
        expression: str,
        context: Optional[Mapping[str, Any]] = None,
        logic: Optional[TernaryLogic] = None,
    ) -> TernaryState:
        """
        Evaluate an expression against a context.

        Args:
            expression: Expression text
            context: Nested mapping consulted for operand paths
            logic: Logic service handed to custom handlers

        Returns:
            The resulting TernaryState (UNKNOWN for an empty expression)

        Raises:
            ExpressionSyntaxError: If the expression is malformed
            UnsupportedValueError: If a context value cannot be coerced
        """
        context = context if context is not None else {}
        logic = logic if logic is not None else get_default_logic()
        postfix = self.to_postfix(self.tokenize(expression))

        stack: list[Any] = []
        for token in postfix:
            if token.kind == TokenKind.OPERAND:
                stack.append(token.value)
                continue

            arity = token.argc if token.kind == TokenKind.FUNCTION else self._operators[token.value].arity
            if len(stack) < arity:
                raise ExpressionSyntaxError(
                    message=f"Operator {token.value} expects {arity} operand(s)",
                    details={"expression": expression, "position": token.position},
                )
            # Popped operands come out in reverse textual order
            operands = [stack.pop() for _ in range(arity)]

            if token.kind == TokenKind.FUNCTION:
                stack.append(self._call(token, operands, context, logic))
            else:
                stack.append(self._apply(self._operators[token.value], operands, context, logic))

        if not stack:
            return TernaryState.UNKNOWN
        if len(stack) > 1:
            raise ExpressionSyntaxError(
                message="Expression has operands without an operator between them",
                details={"expression": expression},
            )
        return self.resolve_value(stack[0], context)

    def _apply(
        self,
        definition: OperatorSpec,
        operands: list[Any],
        context: Mapping[str, Any],
        logic: TernaryLogic,
    ) -> TernaryState:
        if definition.handler is not None:
            return TernaryState.from_mixed(definition.handler(self._resolve_all(operands, context), logic))

        key = definition.key
        if key == "NOT":
            return self.resolve_value(operands[0], context).invert()
        if key == "IF":
            return self._evaluate_if(operands, context, logic)

        values = TernaryVector(self._resolve_all(operands, context))
        if key == "AND":
            return values.and_()
        if key == "OR":
            return values.or_()
        if key == "XOR":
            return values.xor()
        if key == "MAJ":
            return values.weighted([1] * len(values))
        return values.consensus()

    def _call(
        self,
        token: Token,
        operands: list[Any],
        context: Mapping[str, Any],
        logic: TernaryLogic,
    ) -> TernaryState:
        name = token.value
        if name == "IF":
            if len(operands) != 3:
                raise ExpressionSyntaxError(
                    message=f"IF expects 3 arguments, got {len(operands)}",
                    details={"position": token.position},
                )
            return self._evaluate_if(operands, context, logic)
        if name in ("MAJ", "CONSENSUS"):
            return self._apply(self._operators[name], operands, context, logic)

        handler = self._functions.get(name)
        if handler is None:
            logger.debug("No handler registered for %s(), resolving to UNKNOWN", name)
            return TernaryState.UNKNOWN
        return TernaryState.from_mixed(handler(self._resolve_all(operands, context), logic))

    def _evaluate_if(
        self,
        operands: list[Any],
        context: Mapping[str, Any],
        logic: TernaryLogic,
    ) -> TernaryState:
        # operands[2] = condition, [1] = then, [0] = else
        condition = self.resolve_value(operands[2], context)
        then = self.resolve_value(operands[1], context)
        otherwise = self.resolve_value(operands[0], context)

        if condition is TernaryState.TRUE:
            return then
        if condition is TernaryState.FALSE:
            return otherwise
        return logic.consensus([then, otherwise])

    def _resolve_all(self, operands: list[Any], context: Mapping[str, Any]) -> list[TernaryState]:
        """Resolve popped operands back into left-to-right order."""
        return [self.resolve_value(operand, context) for operand in reversed(operands)]

    # -------------------------------------------------------------------------
    # Operand Resolution
    # -------------------------------------------------------------------------

    def resolve_value(self, value: Any, context: Mapping[str, Any]) -> TernaryState:
        """
        Resolve an operand to a state.

        Literal tokens resolve directly, "!path" resolves the path and
        inverts it, other strings are looked up as context paths (missing
        segments give UNKNOWN). Non-strings are coerced.
        """
        if isinstance(value, TernaryState):
            return value
        if isinstance(value, str):
            literal = LITERALS.get(value.lower())
            if literal is not None:
                return literal
            return self.fetch_from_context(value, context)
        return TernaryState.from_mixed(value)

    def fetch_from_context(self, key: str, context: Mapping[str, Any]) -> TernaryState:
        if key.startswith("!"):
            return self.fetch_from_context(key[1:], context).invert()

        value, found = resolve_path(context, key)
        if not found:
            return TernaryState.UNKNOWN
        return TernaryState.from_mixed(value)


# =============================================================================
# Convenience Functions
# =============================================================================

def evaluate(expression: str, context: Optional[Mapping[str, Any]] = None) -> TernaryState:
    """
    Evaluate an expression with the shared logic service.

    Example:
        >>> evaluate("a OR b AND c", {"a": False, "b": True, "c": True})
        <TernaryState.TRUE: 'true'>
    """
    return get_default_logic().expression(expression, context or {})
