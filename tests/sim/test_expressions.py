"""Tests for the arithmetic expression evaluator."""

import ast

import pytest

from energy_calc.errors import FormulaError
from energy_calc.sim.expressions import (
    COMPILE_CACHE_SIZE,
    CompiledExpression,
    SafeExpressionEvaluator,
)

SCOPE = {"baseHp": 100.0, "vitality": 10.0, "soulPower": 5.0, "soulHp": 4.0}


# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------

class TestGrammar:
    def test_literal(self):
        assert SafeExpressionEvaluator().evaluate("42") == 42.0

    def test_precedence(self):
        assert SafeExpressionEvaluator().evaluate("2 + 3 * 4") == 14.0

    def test_parentheses(self):
        assert SafeExpressionEvaluator().evaluate("(2 + 3) * 4") == 20.0

    def test_unary_minus(self):
        assert SafeExpressionEvaluator().evaluate("-5 + +2") == -3.0

    def test_division(self):
        assert SafeExpressionEvaluator().evaluate("7 / 2") == 3.5

    def test_variables(self):
        ev = SafeExpressionEvaluator()
        assert ev.evaluate("vitality * (soulPower + soulHp)", SCOPE) == 90.0

    def test_default_ryoko_equation_is_finite(self):
        ev = SafeExpressionEvaluator()
        value = ev.evaluate("((11250000 * 19 * 10 * 25 * 5 * 10 * 5 * 470) / 2) * 110")
        assert value == pytest.approx(3.4533984375e17)


# ---------------------------------------------------------------------------
# Rejection
# ---------------------------------------------------------------------------

class TestRejection:
    @pytest.mark.parametrize("formula", [
        "2 ** 3",
        "7 // 2",
        "7 % 2",
        "vitality if soulHp else 1",
        "abs(vitality)",
        "__import__('os')",
        "vitality.real",
        "[1, 2]",
        "'text'",
        "True",
    ])
    def test_disallowed_constructs(self, formula):
        with pytest.raises(FormulaError):
            SafeExpressionEvaluator().compile(formula)

    def test_syntax_error(self):
        with pytest.raises(FormulaError, match="Invalid formula syntax"):
            SafeExpressionEvaluator().compile("vitality *")

    def test_empty_formula(self):
        with pytest.raises(FormulaError):
            SafeExpressionEvaluator().compile("   ")

    def test_unknown_name(self):
        with pytest.raises(FormulaError, match="strength"):
            SafeExpressionEvaluator().compile("strength * 2")

    def test_custom_allowed_names(self):
        ev = SafeExpressionEvaluator(allowed_names={"x"})
        assert ev.evaluate("x * 2", {"x": 3}) == 6.0
        with pytest.raises(FormulaError):
            ev.compile("vitality")

    def test_division_by_zero(self):
        with pytest.raises(FormulaError, match="Division by zero"):
            SafeExpressionEvaluator().evaluate("1 / (vitality - 10)", SCOPE)

    def test_non_finite_result(self):
        with pytest.raises(FormulaError, match="non-finite"):
            SafeExpressionEvaluator().evaluate("1e308 * 10")

    def test_missing_scope_variable(self):
        compiled = SafeExpressionEvaluator().compile("vitality + soulHp")
        with pytest.raises(FormulaError, match="Undefined symbol"):
            compiled({"vitality": 1.0})

    @pytest.mark.parametrize("formula", [
        "vitality" + " + 1" * 5000,
        "-" * 5000 + "1",
    ])
    def test_oversized_formula(self, formula):
        with pytest.raises(FormulaError):
            SafeExpressionEvaluator().compile(formula)

    def test_deep_tree_at_evaluation(self):
        tree: ast.expr = ast.Constant(1.0)
        for _ in range(5000):
            tree = ast.BinOp(left=tree, op=ast.Add(), right=ast.Constant(1.0))
        compiled = CompiledExpression("deep", tree, frozenset())
        with pytest.raises(FormulaError, match="nested too deeply"):
            compiled({})


# ---------------------------------------------------------------------------
# Compile cache
# ---------------------------------------------------------------------------

class TestCompileCache:
    def test_same_formula_returns_cached_object(self):
        ev = SafeExpressionEvaluator()
        first = ev.compile("vitality * 2")
        assert ev.compile("vitality * 2") is first

    def test_cache_is_bounded(self):
        ev = SafeExpressionEvaluator()
        first = ev.compile("1 + 0")
        for i in range(1, COMPILE_CACHE_SIZE + 1):
            ev.compile(f"1 + {i}")
        assert ev.compile("1 + 0") is not first
        assert ev.compile("1 + 0")({}) == 1.0

    def test_compiled_expression_is_reusable(self):
        compiled = SafeExpressionEvaluator().compile("vitality * 2")
        assert isinstance(compiled, CompiledExpression)
        assert compiled.names == frozenset({"vitality"})
        assert compiled({"vitality": 1}) == 2.0
        assert compiled({"vitality": 4}) == 8.0
