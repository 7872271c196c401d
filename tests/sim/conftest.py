"""Shared fixtures and helpers for engine tests."""

from __future__ import annotations

from typing import Callable, Mapping

import pytest

from energy_calc.errors import FormulaError
from energy_calc.ir.stats import CharacterStats
from energy_calc.sim.content.registry import EnergyTypeRegistry
from energy_calc.sim.engine import CalculatorEngine
from energy_calc.sim.expressions import ExpressionEvaluator


class FakeEvaluator(ExpressionEvaluator):
    """Evaluator backed by a fixed table of formula -> function.

    Unknown formulas fail to compile, which lets tests exercise the
    error paths without depending on the real parser.
    """

    def __init__(self, table: Mapping[str, Callable[[Mapping[str, float]], float]] | None = None) -> None:
        self.table = dict(table or {})
        self.compiled: list[str] = []

    def compile(self, formula: str) -> Callable[[Mapping[str, float]], float]:
        self.compiled.append(formula)
        try:
            return self.table[formula]
        except KeyError:
            raise FormulaError(f"Unknown formula {formula!r}") from None


def make_stats(**kwargs) -> CharacterStats:
    defaults = dict(base_health=100, vitality=10, soul_power=5, soul_hp=5)
    defaults.update(kwargs)
    return CharacterStats(**defaults)


def make_engine(stats: CharacterStats | None = None, **engine_kwargs) -> CalculatorEngine:
    """Engine with stats applied and pools refreshed."""
    engine = CalculatorEngine(**engine_kwargs)
    engine.set_stats(stats or make_stats())
    engine.refresh()
    return engine


@pytest.fixture
def registry() -> EnergyTypeRegistry:
    return EnergyTypeRegistry()


@pytest.fixture
def engine() -> CalculatorEngine:
    return make_engine()


@pytest.fixture
def fake_evaluator() -> FakeEvaluator:
    return FakeEvaluator({
        "vitality * 2": lambda s: s["vitality"] * 2,
        "soulHp + 1": lambda s: s["soulHp"] + 1,
        "2 * 3": lambda s: 6.0,
    })
