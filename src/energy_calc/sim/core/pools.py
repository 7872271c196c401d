"""Energy pool model -- per-type capacity, current energy, and slider."""

from __future__ import annotations

from pydantic import BaseModel, Field


class EnergyPool(BaseModel):
    """One energy pool, created for every registered energy type.

    ``base_max`` and ``total`` are derived; they are rewritten by
    :func:`~energy_calc.sim.mechanics.energy.recompute_pool` and never
    persisted.
    """

    type_id: str
    base_max: float = Field(default=0.0, ge=0)
    pool_multiplier: float = 1.0
    """Product of the active forms' pool multipliers for this type."""

    total: float = Field(default=0.0, ge=0)
    current: float = Field(default=0.0, ge=0)
    damage_per_point: float = 1.0
    regen_percent: float = 0.0
    slider_percent: float = Field(default=0.0, ge=0, le=100)

    # -- queries -------------------------------------------------------------

    @property
    def is_usable(self) -> bool:
        """A pool can be drawn from (its slider is shown) when it has capacity."""
        return self.total > 0

    @property
    def fill_ratio(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.current / self.total

    # -- mutation ------------------------------------------------------------

    def set_current(self, amount: float) -> None:
        """Set current energy, clamped into ``[0, total]``."""
        self.current = max(0.0, min(amount, self.total))

    def refill(self) -> None:
        self.current = self.total

    def set_slider(self, percent: float) -> None:
        """Set the slider, clamped into ``[0, 100]``."""
        self.slider_percent = max(0.0, min(float(percent), 100.0))
