"""Mutable engine state.

Houses everything a :class:`~energy_calc.sim.engine.CalculatorEngine` owns:
the caller's inputs, the energy pools, forms, modifiers, attack modes,
and the running statistics.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from energy_calc.ir.attacks import AttackMode
from energy_calc.ir.forms import FormDefinition
from energy_calc.ir.modifiers import Modifier
from energy_calc.ir.stats import AttackInputs, CharacterStats, KaiokenState, RyokoMode
from energy_calc.sim.core.pools import EnergyPool
from energy_calc.sim.telemetry import RunStatistics


# ---------------------------------------------------------------------------
# FormEffects
# ---------------------------------------------------------------------------

class FormEffects(BaseModel):
    """Aggregate effect of the active form set."""

    form_multiplier: float = 1.0
    """Sum of the active forms' multipliers, or 1 when the sum is 0."""

    pool_multipliers: dict[str, float] = Field(default_factory=dict)
    """Per-type product of pool multipliers.  Every registered type is present."""

    ac_bonus: float = 0.0
    true_resistance_bonus: float = 0.0

    def pool_multiplier(self, type_id: str) -> float:
        return self.pool_multipliers.get(type_id, 1.0)


# ---------------------------------------------------------------------------
# EngineState
# ---------------------------------------------------------------------------

class EngineState(BaseModel):
    """Complete mutable state of one calculator.

    ``stats`` is ``None`` until the caller supplies character stats; a
    state without stats cannot be gathered into a snapshot.
    """

    model_config = {"arbitrary_types_allowed": True}

    character_name: str = ""
    stats: CharacterStats | None = None
    attack: AttackInputs = Field(default_factory=AttackInputs)
    ryoko: RyokoMode = Field(default_factory=RyokoMode)
    kaioken: KaiokenState = Field(default_factory=KaiokenState)

    pools: dict[str, EnergyPool] = Field(default_factory=dict)
    """Keyed by energy type id, in registry order."""

    speed_slider_percent: float = Field(default=0.0, ge=0, le=100)

    forms: list[FormDefinition] = Field(default_factory=list)
    active_form_ids: list[str] = Field(default_factory=list)
    effects: FormEffects = Field(default_factory=FormEffects)

    modifiers: list[Modifier] = Field(default_factory=list)
    attacks: dict[str, AttackMode] = Field(default_factory=dict)
    statistics: RunStatistics = Field(default_factory=RunStatistics)
    active_view: Literal["calculator", "characterStats"] = "calculator"

    # -- queries -------------------------------------------------------------

    @property
    def character_base_multiplier(self) -> float:
        if self.stats is None:
            return 1.0
        return self.stats.base_multiplier

    def get_form(self, form_id: str) -> FormDefinition | None:
        for form in self.forms:
            if form.id == form_id:
                return form
        return None

    def active_forms(self) -> list[FormDefinition]:
        """Active forms in activation order (unknown ids skipped)."""
        by_id = {f.id: f for f in self.forms}
        return [by_id[fid] for fid in self.active_form_ids if fid in by_id]

    def attack_mode(self, type_id: str) -> AttackMode:
        return self.attacks.get(type_id, AttackMode.NONE)

    def prune_active_forms(self) -> None:
        """Drop active ids that no longer name an existing form."""
        known = {f.id for f in self.forms}
        self.active_form_ids = [fid for fid in self.active_form_ids if fid in known]
