"""Calculation rules for the engine.

Re-exports the primary functions from each mechanics module for convenience.

Usage::

    from energy_calc.sim.mechanics import (
        base_max_energy, recompute_pool, regenerate_pool, consume_pool,
        apply_active_forms, escalate_forms,
        attack_cap, toggle_attack,
        compression_factor, speed_damage,
        apply_kaioken_strain, regenerate_health,
    )
"""

# -- energy ------------------------------------------------------------------
from .energy import (
    base_max_energy,
    consume_pool,
    pool_total,
    preview_consumption,
    recompute_pool,
    regenerate_pool,
)

# -- forms -------------------------------------------------------------------
from .forms import apply_active_forms, escalate_form, escalate_forms

# -- attacks -----------------------------------------------------------------
from .attacks import DEFAULT_ATTACK_CAPS, attack_cap, toggle_attack

# -- damage ------------------------------------------------------------------
from .damage import (
    apply_additive,
    apply_multiplicative,
    base_damage,
    compression_factor,
    speed_damage,
)

# -- health ------------------------------------------------------------------
from .health import apply_kaioken_strain, clamp_health, regenerate_health, strain_cost

__all__ = [
    # energy
    "base_max_energy",
    "pool_total",
    "recompute_pool",
    "regenerate_pool",
    "preview_consumption",
    "consume_pool",
    # forms
    "apply_active_forms",
    "escalate_form",
    "escalate_forms",
    # attacks
    "DEFAULT_ATTACK_CAPS",
    "attack_cap",
    "toggle_attack",
    # damage
    "base_damage",
    "compression_factor",
    "apply_multiplicative",
    "apply_additive",
    "speed_damage",
    # health
    "strain_cost",
    "apply_kaioken_strain",
    "regenerate_health",
    "clamp_health",
]
