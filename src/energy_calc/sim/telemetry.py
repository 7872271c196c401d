"""Telemetry data models for calculation results and running totals.

- **RunStatistics**: cumulative damage, energy spent, attack count, and the
  single highest hit since the last reset.
- **CalculationResult**: the breakdown of one ``calculate()`` call.
- **SliderPreview** / **StatsSummary**: read-only views for the caller.
- **Notice**: a recoverable problem surfaced to the caller instead of
  raised (bad custom formula, bad Ryoko equation, ...).

All of these are plain ``dataclass`` instances (not Pydantic models); they are
produced on every calculation and never validated from outside input.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class RunStatistics:
    """Running totals across calculations.

    Attributes
    ----------
    total_damage_dealt:
        Sum of the final damage of every calculation.
    total_energy_spent:
        Sum of energy consumed from all pools.
    attack_count:
        Number of completed calculations.
    highest_damage:
        Largest single calculation result.
    """

    total_damage_dealt: float = 0.0
    total_energy_spent: float = 0.0
    attack_count: int = 0
    highest_damage: float = 0.0

    def record(self, damage: float, energy_used: float) -> None:
        """Fold one finished calculation into the totals."""
        self.total_damage_dealt += damage
        self.total_energy_spent += energy_used
        self.attack_count += 1
        if damage > self.highest_damage:
            self.highest_damage = damage

    def reset(self) -> None:
        self.total_damage_dealt = 0.0
        self.total_energy_spent = 0.0
        self.attack_count = 0
        self.highest_damage = 0.0

    @property
    def average_damage(self) -> float:
        if self.attack_count == 0:
            return 0.0
        return self.total_damage_dealt / self.attack_count


@dataclass
class CalculationResult:
    """Outcome of a single damage calculation.

    Attributes
    ----------
    damage:
        Final damage, floored at 0.
    energy_used:
        Energy drained from all pools with an active slider.
    energy_damage:
        Damage contributed by the drained energy.
    speed_damage:
        Damage contributed by the speed slider.
    health_depleted:
        True when Kaioken strain brought health to 0 this turn.
    escalated_form_ids:
        Forms whose buffs were applied after this calculation.
    energy_used_by_type:
        Per-pool breakdown of ``energy_used``.
    """

    damage: float
    energy_used: float = 0.0
    energy_damage: float = 0.0
    speed_damage: float = 0.0
    health_depleted: bool = False
    escalated_form_ids: list[str] = field(default_factory=list)
    energy_used_by_type: dict[str, float] = field(default_factory=dict)

    @property
    def extra_damage(self) -> float:
        """Damage on top of the modifier pipeline (energy + speed)."""
        return self.energy_damage + self.speed_damage


@dataclass
class Notice:
    """A recoverable problem reported to the presentation layer."""

    level: str  # "warning" or "error"
    message: str


@dataclass
class SliderPreview:
    """What a slider would produce if the attack ran now.

    Attributes
    ----------
    slider_percent:
        The slider setting.
    effective_percent:
        ``slider_percent`` after the attack-mode cap.
    amount_used:
        Energy (or speed) that would be spent.
    damage:
        Damage that amount would add.
    """

    slider_percent: float
    effective_percent: float
    amount_used: float
    damage: float


@dataclass
class StatsSummary:
    """Everything the stats panel shows, gathered in one value."""

    total_damage_dealt: float
    total_energy_spent: float
    attack_count: int
    highest_damage: float
    average_damage: float
    focused_type_id: str
    focused_current_energy: float
    focused_total_energy: float
    form_multiplier: float
    ac_bonus: float
    true_resistance_bonus: float
    total_armor_class: float
    total_true_resistance: float
    speed: float
    current_health: float
    max_health: float
    active_form_names: list[str] = field(default_factory=list)
