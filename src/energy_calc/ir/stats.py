"""Character stats and the per-attack inputs supplied by the caller."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CharacterStats(BaseModel):
    """Raw character stats.  Owned by the caller; the engine only reads them."""

    base_health: float = 0.0
    vitality: float = 0.0
    soul_power: float = 0.0
    soul_hp: float = 0.0
    base_multiplier: float = 1.0
    """Character base multiplier applied to every pool total.  Replaced by
    the Ryoko equation result while Ryoko mode is on."""

    base_armor_class: float = 10.0
    base_true_resistance: float = 5.0
    speed: float = 0.0

    def formula_scope(self) -> dict[str, float]:
        """Variables exposed to capacity formulas."""
        return {
            "baseHp": self.base_health,
            "vitality": self.vitality,
            "soulPower": self.soul_power,
            "soulHp": self.soul_hp,
        }


class AttackInputs(BaseModel):
    """Inputs for the pending attack."""

    base_damage: float = 0.0
    compression_points: float = 0.0
    base_multiplier: float = 1.0
    focused_type_id: str = "ki"
    """The energy type the calculator is focused on (drives Kaioken)."""


class RyokoMode(BaseModel):
    """Replaces the character base multiplier with a constant equation."""

    enabled: bool = False
    equation: str = ""


class KaiokenState(BaseModel):
    """Health that Kaioken strain draws from."""

    enabled: bool = False
    max_health: float = 1000.0
    strain_percent: float = 10.0
    current_health: float = Field(default=1000.0, ge=0)
