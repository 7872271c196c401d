"""Arithmetic expression evaluator for user-authored formulas.

Custom energy types and the Ryoko equation are plain arithmetic strings such
as ``"vitality * (soulPower + soulHp) / 2"``.  The engine only depends on the
:class:`ExpressionEvaluator` interface; :class:`SafeExpressionEvaluator` is
the default implementation.

Grammar accepted by :class:`SafeExpressionEvaluator`:

- numeric literals (``12``, ``0.5``, ``1e3``)
- binary ``+ - * /`` and unary ``+ -``
- parentheses
- names from the allowed variable set

The formula is parsed with :mod:`ast` and the tree is walked directly;
nothing is ever passed to :func:`eval`.

Usage::

    evaluator = SafeExpressionEvaluator()
    compiled = evaluator.compile("vitality * soulHp")
    compiled({"vitality": 10, "soulHp": 5})   # -> 50.0
"""

from __future__ import annotations

import ast
import math
import operator
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Callable, Iterable, Mapping

from energy_calc.errors import FormulaError
from energy_calc.ir.energy_types import FORMULA_VARIABLES

_BINARY_OPS: dict[type, Callable[[float, float], float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}

_UNARY_OPS: dict[type, Callable[[float], float]] = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

# Distinct formulas kept compiled per evaluator.
COMPILE_CACHE_SIZE = 256


class CompiledExpression:
    """A validated formula, callable with a variable scope.

    Parameters
    ----------
    source:
        The original formula text (kept for messages).
    tree:
        The parsed, already-validated expression body.
    names:
        Every variable name the formula references.
    """

    def __init__(self, source: str, tree: ast.expr, names: frozenset[str]) -> None:
        self.source = source
        self._tree = tree
        self.names = names

    def __call__(self, scope: Mapping[str, float]) -> float:
        missing = self.names - scope.keys()
        if missing:
            raise FormulaError(
                f"Undefined symbol(s) {', '.join(sorted(missing))} in formula {self.source!r}"
            )
        try:
            result = _evaluate(self._tree, scope)
        except ZeroDivisionError as exc:
            raise FormulaError(f"Division by zero in formula {self.source!r}") from exc
        except OverflowError as exc:
            raise FormulaError(f"Overflow in formula {self.source!r}") from exc
        except RecursionError as exc:
            raise FormulaError(f"Formula {self.source!r} is nested too deeply") from exc
        if not math.isfinite(result):
            raise FormulaError(f"Formula {self.source!r} evaluated to a non-finite value")
        return result

    def __repr__(self) -> str:
        return f"CompiledExpression({self.source!r})"


class ExpressionEvaluator(ABC):
    """Compiles arithmetic strings into callables over a variable scope."""

    @abstractmethod
    def compile(self, formula: str) -> Callable[[Mapping[str, float]], float]:
        """Compile *formula*.

        Raises
        ------
        FormulaError
            On invalid syntax or identifiers outside the allowed scope.
        """

    def evaluate(self, formula: str, scope: Mapping[str, float] | None = None) -> float:
        """Compile and evaluate *formula* in one step."""
        return self.compile(formula)(scope or {})


class SafeExpressionEvaluator(ExpressionEvaluator):
    """Default evaluator restricted to the four-operation grammar.

    Parameters
    ----------
    allowed_names:
        Variable names formulas may reference.  Defaults to the character
        stat variables (``baseHp``, ``vitality``, ``soulPower``, ``soulHp``).
    """

    def __init__(self, allowed_names: Iterable[str] = FORMULA_VARIABLES) -> None:
        self.allowed_names = frozenset(allowed_names)
        self._compile_cached = lru_cache(maxsize=COMPILE_CACHE_SIZE)(self._compile)

    def compile(self, formula: str) -> CompiledExpression:
        return self._compile_cached(formula)

    def _compile(self, formula: str) -> CompiledExpression:
        source = formula.strip()
        if not source:
            raise FormulaError("Formula is empty")
        try:
            parsed = ast.parse(source, mode="eval")
            names = _validate(parsed.body, source)
        except SyntaxError as exc:
            raise FormulaError(f"Invalid formula syntax in {source!r}: {exc.msg}") from exc
        except (RecursionError, MemoryError, ValueError) as exc:
            raise FormulaError(
                f"Formula {source[:40]!r}... is too long or nested too deeply"
            ) from exc
        unknown = names - self.allowed_names
        if unknown:
            raise FormulaError(
                f"Formula {source!r} references unknown stat(s): {', '.join(sorted(unknown))}"
            )

        return CompiledExpression(source, parsed.body, frozenset(names))


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------

def _validate(node: ast.expr, source: str) -> set[str]:
    """Reject anything outside the grammar; return the referenced names."""
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FormulaError(f"Unsupported literal {node.value!r} in formula {source!r}")
        return set()
    if isinstance(node, ast.Name):
        return {node.id}
    if isinstance(node, ast.BinOp):
        if type(node.op) not in _BINARY_OPS:
            raise FormulaError(
                f"Operator {type(node.op).__name__} is not allowed in formula {source!r}"
            )
        return _validate(node.left, source) | _validate(node.right, source)
    if isinstance(node, ast.UnaryOp):
        if type(node.op) not in _UNARY_OPS:
            raise FormulaError(
                f"Operator {type(node.op).__name__} is not allowed in formula {source!r}"
            )
        return _validate(node.operand, source)
    raise FormulaError(f"Unsupported expression {type(node).__name__} in formula {source!r}")


def _evaluate(node: ast.expr, scope: Mapping[str, float]) -> float:
    if isinstance(node, ast.Constant):
        return float(node.value)
    if isinstance(node, ast.Name):
        return float(scope[node.id])
    if isinstance(node, ast.BinOp):
        return _BINARY_OPS[type(node.op)](
            _evaluate(node.left, scope), _evaluate(node.right, scope)
        )
    if isinstance(node, ast.UnaryOp):
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand, scope))
    raise FormulaError(f"Unsupported expression {type(node).__name__}")
