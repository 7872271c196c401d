"""Kaioken health -- strain paid per attack and full regeneration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from energy_calc.ir.stats import KaiokenState


def strain_cost(kaioken: KaiokenState) -> float:
    return kaioken.max_health * kaioken.strain_percent / 100


def apply_kaioken_strain(kaioken: KaiokenState) -> bool:
    """Deduct one attack's strain from current health.

    Nothing happens unless health, max health, and strain are all
    positive.  Health never drops below 0.

    Returns
    -------
    bool
        True if this strain brought health to exactly 0.
    """
    if kaioken.current_health <= 0:
        return False
    if kaioken.max_health <= 0 or kaioken.strain_percent <= 0:
        return False
    kaioken.current_health = max(0.0, kaioken.current_health - strain_cost(kaioken))
    return kaioken.current_health == 0


def regenerate_health(kaioken: KaiokenState) -> float:
    """Restore health to max; return the amount healed."""
    target = max(0.0, kaioken.max_health)
    healed = target - kaioken.current_health
    kaioken.current_health = target
    return healed


def clamp_health(kaioken: KaiokenState) -> None:
    """Clamp current health into ``[0, max_health]``."""
    kaioken.current_health = max(0.0, min(kaioken.current_health, kaioken.max_health))
