# src/solvyn/engine/evaluator.py
"""Safe arithmetic evaluator, the default local evaluation capability.

Uses Python's ast module to parse and evaluate arithmetic in a restricted
subset of Python. This is NOT eval() - it's a whitelist-based evaluator.

Each call runs two phases:
1. Validation: reject any construct outside the whitelist
2. Evaluation: walk the validated AST

Supported:
- Numbers (int, float), parentheses
- Binary: +, -, *, /, //, %, **
- "^" as power in calculator notation: rewritten to "**" before parsing,
  so it groups right-to-left and binds tighter than unary minus
- Unary: -, +
- Comparisons: ==, !=, <, <=, >, >= (evaluate to booleans)
- Constants: pi, e, tau
- Functions: see _FUNCTIONS

Anything else raises. The resolution engine treats every exception from
evaluate() as a miss and moves on to escalation.
"""

from __future__ import annotations

import ast
import io
import math
import operator
import tokenize
from collections.abc import Callable
from decimal import Decimal
from typing import Any


class EvaluationSecurityError(Exception):
    """Raised when the expression contains forbidden constructs."""


class EvaluationSyntaxError(Exception):
    """Raised when the text is not a parseable expression."""


class EvaluationError(Exception):
    """Raised when a valid expression fails at runtime.

    Wraps ZeroDivisionError, math domain errors, overflow, and similar.
    The original exception is chained via __cause__.
    """


# Guard rails against expressions that would stall the event loop
_MAX_EXPONENT = 10_000
_MAX_FACTORIAL = 1_000
_MAX_RESULT_BITS = 100_000


def _safe_pow(base: Any, exponent: Any) -> Any:
    if isinstance(exponent, int | float) and abs(exponent) > _MAX_EXPONENT and base not in (0, 1, -1):
        raise EvaluationError(f"exponent {exponent} exceeds limit of {_MAX_EXPONENT}")
    if isinstance(base, int) and isinstance(exponent, int) and exponent > 0 and abs(base) > 1:
        if exponent * math.log2(abs(base)) > _MAX_RESULT_BITS:
            raise EvaluationError(f"power result exceeds limit of {_MAX_RESULT_BITS} bits")
    result = operator.pow(base, exponent)
    if isinstance(result, complex):
        raise EvaluationError("power has no real result")
    return result


def _safe_mul(left: Any, right: Any) -> Any:
    if isinstance(left, int) and isinstance(right, int) and left.bit_length() + right.bit_length() > _MAX_RESULT_BITS:
        raise EvaluationError(f"product exceeds limit of {_MAX_RESULT_BITS} bits")
    return operator.mul(left, right)


def _safe_round(number: Any, ndigits: Any = None) -> Any:
    # Rounding an int to -n digits computes 10 ** n
    if isinstance(ndigits, int) and abs(ndigits) > _MAX_EXPONENT:
        raise EvaluationError(f"round() digits {ndigits} exceed limit of {_MAX_EXPONENT}")
    return round(number, ndigits)


def _safe_factorial(n: Any) -> int:
    if isinstance(n, float) and n.is_integer():
        n = int(n)
    if not isinstance(n, int):
        raise EvaluationError(f"factorial() requires an integer, got {n!r}")
    if n > _MAX_FACTORIAL:
        raise EvaluationError(f"factorial argument {n} exceeds limit of {_MAX_FACTORIAL}")
    return math.factorial(n)


_BINARY_OPS: dict[type[ast.operator], Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: _safe_mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _safe_pow,
}

_UNARY_OPS: dict[type[ast.unaryop], Callable[[Any], Any]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}

_COMPARISON_OPS: dict[type[ast.cmpop], Callable[[Any, Any], bool]] = {
    ast.Eq: operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt: operator.lt,
    ast.LtE: operator.le,
    ast.Gt: operator.gt,
    ast.GtE: operator.ge,
}

_CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}

_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "abs": abs,
    "round": _safe_round,
    "min": min,
    "max": max,
    "sqrt": math.sqrt,
    "cbrt": lambda x: math.copysign(abs(x) ** (1 / 3), x),
    "exp": math.exp,
    "log": math.log,
    "log10": math.log10,
    "log2": math.log2,
    "sin": math.sin,
    "cos": math.cos,
    "tan": math.tan,
    "asin": math.asin,
    "acos": math.acos,
    "atan": math.atan,
    "floor": math.floor,
    "ceil": math.ceil,
    "factorial": _safe_factorial,
    "gcd": math.gcd,
    "hypot": math.hypot,
}


def _caret_to_power(text: str) -> str:
    """Rewrite each "^" operator token as "**".

    Text that does not tokenize is returned unchanged; ast.parse reports it.
    """
    lines = list(io.StringIO(text))
    line_starts = [0]
    for line in lines:
        line_starts.append(line_starts[-1] + len(line))

    offsets: list[int] = []
    try:
        for token in tokenize.generate_tokens(io.StringIO(text).readline):
            if token.type == tokenize.OP and token.string == "^":
                row, col = token.start
                offsets.append(line_starts[row - 1] + col)
    except (tokenize.TokenError, SyntaxError, ValueError):
        return text

    for offset in reversed(offsets):
        text = text[:offset] + "**" + text[offset + 1 :]
    return text


# Node types that may appear anywhere in a validated tree.
# Operator/context nodes are checked by their parent visitor.
_STRUCTURAL_NODES: tuple[type[ast.AST], ...] = (
    ast.Expression,
    ast.expr_context,
    ast.operator,
    ast.unaryop,
    ast.cmpop,
)


class _ArithmeticValidator(ast.NodeVisitor):
    """AST visitor that rejects anything outside the arithmetic whitelist."""

    def __init__(self) -> None:
        self.errors: list[str] = []

    def generic_visit(self, node: ast.AST) -> None:
        if not isinstance(node, _STRUCTURAL_NODES):
            self.errors.append(f"Forbidden construct: {type(node).__name__}")
            return
        super().generic_visit(node)

    def visit_Constant(self, node: ast.Constant) -> None:
        """Allow int and float literals only (no strings, bools, complex)."""
        if isinstance(node.value, bool) or not isinstance(node.value, int | float):
            self.errors.append(f"Forbidden constant type: {type(node.value).__name__}")

    def visit_Name(self, node: ast.Name) -> None:
        # Bare function names evaluate to the function itself; the engine
        # treats a callable result as a miss
        if node.id not in _CONSTANTS and node.id not in _FUNCTIONS:
            self.errors.append(f"Unknown name: {node.id!r}")

    def visit_BinOp(self, node: ast.BinOp) -> None:
        if type(node.op) not in _BINARY_OPS:
            self.errors.append(f"Forbidden binary operator: {type(node.op).__name__}")
        self.visit(node.left)
        self.visit(node.right)

    def visit_UnaryOp(self, node: ast.UnaryOp) -> None:
        if type(node.op) not in _UNARY_OPS:
            self.errors.append(f"Forbidden unary operator: {type(node.op).__name__}")
        self.visit(node.operand)

    def visit_Compare(self, node: ast.Compare) -> None:
        for op in node.ops:
            if type(op) not in _COMPARISON_OPS:
                self.errors.append(f"Forbidden comparison operator: {type(op).__name__}")
        self.visit(node.left)
        for comparator in node.comparators:
            self.visit(comparator)

    def visit_Call(self, node: ast.Call) -> None:
        """Allow calls to whitelisted functions by plain name, positional args only."""
        if not isinstance(node.func, ast.Name) or node.func.id not in _FUNCTIONS:
            self.errors.append(f"Forbidden function call: {ast.unparse(node.func)}")
            return
        if node.keywords:
            self.errors.append(f"{node.func.id}() does not accept keyword arguments")
        for arg in node.args:
            self.visit(arg)


class _ArithmeticInterpreter(ast.NodeVisitor):
    """AST visitor that evaluates a validated expression."""

    def visit_Expression(self, node: ast.Expression) -> Any:
        return self.visit(node.body)

    def visit_Constant(self, node: ast.Constant) -> Any:
        return node.value

    def visit_Name(self, node: ast.Name) -> Any:
        if node.id in _CONSTANTS:
            return _CONSTANTS[node.id]
        return _FUNCTIONS[node.id]

    def visit_BinOp(self, node: ast.BinOp) -> Any:
        left = self.visit(node.left)
        right = self.visit(node.right)
        op_func = _BINARY_OPS[type(node.op)]
        try:
            return op_func(left, right)
        except ZeroDivisionError as e:
            raise EvaluationError(f"division by zero in {type(node.op).__name__} operation") from e
        except (OverflowError, TypeError, ValueError) as e:
            raise EvaluationError(f"{type(node.op).__name__} failed: {e}") from e

    def visit_UnaryOp(self, node: ast.UnaryOp) -> Any:
        operand = self.visit(node.operand)
        try:
            return _UNARY_OPS[type(node.op)](operand)
        except TypeError as e:
            raise EvaluationError(f"cannot apply unary {type(node.op).__name__} to {type(operand).__name__}") from e

    def visit_Compare(self, node: ast.Compare) -> bool:
        left = self.visit(node.left)
        for op, comparator in zip(node.ops, node.comparators, strict=True):
            right = self.visit(comparator)
            try:
                if not _COMPARISON_OPS[type(op)](left, right):
                    return False
            except TypeError as e:
                raise EvaluationError(f"cannot compare {type(left).__name__} and {type(right).__name__}") from e
            left = right
        return True

    def visit_Call(self, node: ast.Call) -> Any:
        func = self.visit(node.func)
        args = [self.visit(arg) for arg in node.args]
        try:
            return func(*args)
        except EvaluationError:
            raise
        except (ArithmeticError, TypeError, ValueError) as e:
            raise EvaluationError(f"{ast.unparse(node.func)}() failed: {e}") from e


class ArithmeticEvaluator:
    """Default Evaluator capability for the resolution engine.

    Example:
        evaluator = ArithmeticEvaluator()
        evaluator.evaluate("10 + 20")       # 30
        evaluator.evaluate("2 ^ 10")        # 1024
        evaluator.evaluate("sqrt(16) * pi") # 12.566...
        evaluator.evaluate("integrate x")   # raises EvaluationSyntaxError
    """

    name = "arithmetic"

    def evaluate(self, text: str) -> Any:
        """Parse, validate, and evaluate arithmetic text.

        Raises:
            EvaluationSyntaxError: If text is not a valid expression
            EvaluationSecurityError: If text uses forbidden constructs or names
            EvaluationError: If evaluation fails at runtime
        """
        try:
            tree = ast.parse(_caret_to_power(text), mode="eval")
        except SyntaxError as e:
            raise EvaluationSyntaxError(f"Invalid syntax: {e.msg}") from e
        except ValueError as e:
            # Null bytes in the source
            raise EvaluationSyntaxError(f"Invalid syntax: {e}") from e

        validator = _ArithmeticValidator()
        validator.visit(tree)
        if validator.errors:
            raise EvaluationSecurityError("; ".join(validator.errors))

        try:
            return _ArithmeticInterpreter().visit(tree)
        except RecursionError as e:
            raise EvaluationError("expression is nested too deeply") from e

    def __repr__(self) -> str:
        return "ArithmeticEvaluator()"


def format_value(value: Any, precision: int) -> str:
    """Format an evaluator value to `precision` significant digits.

    Integers that fit in `precision` digits print exactly; floats with an
    integral value drop the trailing ".0" ("30", not "30.0").
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        if abs(value) < 10**precision:
            return str(value)
        try:
            return f"{float(value):.{precision}g}"
        except OverflowError:
            return format(Decimal(value), f".{precision - 1}e")
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return f"{value:.{precision}g}"
    return str(value)
