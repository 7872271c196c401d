"""Energy pool rules -- capacity, recompute, regeneration, and consumption.

Capacity rules:
    - Standard types use a fixed formula over the character's stats.
    - Custom types evaluate their formula with the Expression Evaluator.
    - Base capacity is never negative.
    - ``total = base_max * character_base_multiplier * pool_multiplier``.
    - Recomputing a pool refills it.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Callable

from energy_calc.errors import FormulaError, InvalidOperation
from energy_calc.ir.energy_types import StandardFormula

if TYPE_CHECKING:
    from energy_calc.ir.energy_types import EnergyTypeDefinition
    from energy_calc.ir.stats import CharacterStats
    from energy_calc.sim.core.pools import EnergyPool
    from energy_calc.sim.expressions import ExpressionEvaluator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Standard formula table
# ---------------------------------------------------------------------------

def _vitality_times_soul(s: CharacterStats) -> float:
    return s.vitality * (s.soul_power + s.soul_hp)


_STANDARD_FORMULAS: dict[StandardFormula, Callable[[CharacterStats], float]] = {
    StandardFormula.KI: _vitality_times_soul,
    StandardFormula.NEN: lambda s: s.vitality * s.soul_hp,
    StandardFormula.CHAKRA: lambda s: s.vitality * (0.5 * s.soul_hp + 0.5 * s.soul_power),
    StandardFormula.MAGIC: lambda s: s.soul_power * (s.soul_hp + s.base_health + s.vitality),
    StandardFormula.CURSED: lambda s: s.soul_power * s.soul_hp,
    StandardFormula.REIATSU: lambda s: s.soul_hp * s.vitality * s.soul_power,
    StandardFormula.HAKI: _vitality_times_soul,
    StandardFormula.ALCHEMY: lambda s: s.soul_power * s.base_health,
    StandardFormula.NATURE: lambda s: s.vitality * (s.soul_hp + s.base_health + s.soul_power),
    StandardFormula.FORCE: lambda s: s.soul_hp + s.vitality,
    StandardFormula.ORIGIN: lambda s: s.vitality * s.soul_power * s.soul_hp,
    StandardFormula.FUNDAMENTAL: _vitality_times_soul,
    StandardFormula.OTHER: lambda s: s.vitality + s.soul_power + s.soul_hp,
}


def base_max_energy(
    defn: EnergyTypeDefinition,
    stats: CharacterStats,
    evaluator: ExpressionEvaluator,
) -> float:
    """Compute the base capacity of an energy type, floored at 0.

    Raises
    ------
    FormulaError
        If a custom formula fails to compile or evaluate.  Callers that
        must keep going substitute 0.
    """
    tag = defn.standard_formula
    if tag is not None:
        value = _STANDARD_FORMULAS[tag](stats)
    elif defn.formula:
        try:
            value = evaluator.compile(defn.formula)(stats.formula_scope())
        except FormulaError as exc:
            raise FormulaError(f"Formula Error ({defn.name}): {exc}") from exc
        if not math.isfinite(value):
            raise FormulaError(
                f"Error in formula for {defn.name}: Invalid result {value!r}"
            )
    else:
        logger.warning("Custom energy type %r (%s) has no formula defined", defn.name, defn.id)
        value = 0.0
    return max(0.0, value)


# ---------------------------------------------------------------------------
# Pool operations
# ---------------------------------------------------------------------------

def pool_total(base_max: float, character_base_multiplier: float, pool_multiplier: float) -> float:
    return max(0.0, base_max * character_base_multiplier * pool_multiplier)


def recompute_pool(
    pool: EnergyPool,
    base_max: float,
    character_base_multiplier: float,
    pool_multiplier: float | None = None,
) -> EnergyPool:
    """Write derived capacity into *pool* and refill it.

    Parameters
    ----------
    pool:
        The pool to update in place (also returned).
    base_max:
        Base capacity from :func:`base_max_energy`.
    character_base_multiplier:
        The character's (or Ryoko's) base multiplier.
    pool_multiplier:
        New pool multiplier; the pool's current multiplier is kept if omitted.
    """
    if pool_multiplier is not None:
        pool.pool_multiplier = pool_multiplier
    pool.base_max = max(0.0, base_max)
    pool.total = pool_total(pool.base_max, character_base_multiplier, pool.pool_multiplier)
    pool.current = pool.total
    logger.debug(
        "Recomputed %s pool: base=%s total=%s", pool.type_id, pool.base_max, pool.total
    )
    return pool


def regenerate_pool(pool: EnergyPool, percent: float | None = None) -> float:
    """Add ``percent`` of the pool's total to its current energy.

    Parameters
    ----------
    pool:
        The pool to regenerate.
    percent:
        Regen rate; defaults to the pool's own ``regen_percent``.

    Returns
    -------
    float
        The energy actually added (the gain is capped at the total).

    Raises
    ------
    InvalidOperation
        If the pool has no capacity or the rate is not positive.  The pool
        is left unchanged.
    """
    if percent is None:
        percent = pool.regen_percent
    if pool.total <= 0:
        raise InvalidOperation(f"Total Energy for {pool.type_id} must be positive to regenerate")
    if percent <= 0:
        raise InvalidOperation("Regen Rate must be positive.")

    before = pool.current
    pool.current = min(pool.total, pool.current + pool.total * percent / 100)
    return pool.current - before


def preview_consumption(pool: EnergyPool, cap_percent: float) -> tuple[float, float]:
    """Return ``(energy_used, damage)`` the pool's slider would produce.

    The effective percentage is ``min(slider_percent, cap_percent)``.
    Nothing is mutated.
    """
    effective = max(0.0, min(pool.slider_percent, cap_percent))
    energy_used = max(0.0, min(pool.current * effective / 100, pool.current))
    return energy_used, energy_used * pool.damage_per_point


def consume_pool(pool: EnergyPool, cap_percent: float) -> tuple[float, float]:
    """Drain the pool according to its slider; return ``(energy_used, damage)``."""
    energy_used, damage = preview_consumption(pool, cap_percent)
    pool.current = max(0.0, pool.current - energy_used)
    return energy_used, damage
