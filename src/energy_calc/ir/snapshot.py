"""Serialisable snapshot of the complete engine state.

A snapshot stores *inputs* only.  Derived values (pool base max, totals,
combined form multiplier) are recomputed when a snapshot is applied, so a
snapshot never goes stale against formula or registry changes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from energy_calc.config import SNAPSHOT_VERSION

from .attacks import AttackMode
from .forms import FormDefinition
from .modifiers import Modifier
from .stats import AttackInputs, CharacterStats, KaiokenState, RyokoMode


class PoolSnapshot(BaseModel):
    """Saved inputs of one energy pool."""

    current_energy: float = 0.0
    max_multiplier: float = 1.0
    damage_per_point: float = 1.0
    regen_percent: float = 0.0
    slider_percent: float = 0.0


class StatisticsSnapshot(BaseModel):
    """Saved running totals of the calculation pipeline."""

    total_damage_dealt: float = 0.0
    total_energy_spent: float = 0.0
    attack_count: int = 0
    highest_damage: float = 0.0


class StateSnapshot(BaseModel):
    """Everything needed to restore a :class:`CalculatorEngine`."""

    version: int = SNAPSHOT_VERSION
    character_name: str = ""
    attack: AttackInputs = Field(default_factory=AttackInputs)
    stats: CharacterStats = Field(default_factory=CharacterStats)
    ryoko: RyokoMode = Field(default_factory=RyokoMode)
    kaioken: KaiokenState = Field(default_factory=KaiokenState)

    energy_pools: dict[str, PoolSnapshot] = Field(default_factory=dict)
    """Keyed by energy type id."""

    speed_slider_percent: float = 0.0

    forms: list[FormDefinition] = Field(default_factory=list)
    active_form_ids: list[str] = Field(default_factory=list)
    applied_ac_bonus: float = 0.0
    applied_true_resistance_bonus: float = 0.0

    modifiers: list[Modifier] = Field(default_factory=list)
    active_attacks: dict[str, AttackMode] = Field(default_factory=dict)
    statistics: StatisticsSnapshot = Field(default_factory=StatisticsSnapshot)
    active_view: Literal["calculator", "characterStats"] = "calculator"
