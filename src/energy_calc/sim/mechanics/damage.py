"""Damage terms of the calculation pipeline.

Pipeline order (see :meth:`CalculatorEngine.calculate`):
    1. base damage x base multiplier x form multiplier
    2. x compression factor
    3. x every multiplicative modifier
    4. + energy damage from pool sliders
    5. + every additive modifier
    6. + speed damage
    7. floored at 0
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Iterable

from energy_calc.ir.modifiers import ModifierKind

if TYPE_CHECKING:
    from energy_calc.ir.modifiers import Modifier


def compression_factor(
    points: float,
    rate: float = 1.5,
    bonus_step: int = 10,
    bonus: float = 3.0,
) -> float:
    """Multiplier earned by compressing an attack.

    ``max(1, points * rate + floor(points / bonus_step) * bonus)``, or 1
    when no points are spent.
    """
    if points <= 0:
        return 1.0
    return max(1.0, points * rate + math.floor(points / bonus_step) * bonus)


def base_damage(base: float, base_multiplier: float, form_multiplier: float) -> float:
    return base * base_multiplier * form_multiplier


def apply_multiplicative(damage: float, modifiers: Iterable[Modifier]) -> float:
    """Multiply *damage* by each multiplicative modifier, in order."""
    for mod in modifiers:
        if mod.kind is ModifierKind.MULTIPLICATIVE:
            damage *= mod.value
    return damage


def apply_additive(damage: float, modifiers: Iterable[Modifier]) -> float:
    """Add each additive modifier to *damage*, in order."""
    for mod in modifiers:
        if mod.kind is ModifierKind.ADDITIVE:
            damage += mod.value
    return damage


def speed_damage(speed: float, slider_percent: float) -> float:
    """Damage from spending ``slider_percent`` of *speed* (1:1)."""
    if speed <= 0 or slider_percent <= 0:
        return 0.0
    return speed * slider_percent / 100
