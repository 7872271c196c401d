"""Core state primitives for the calculation engine."""

from energy_calc.sim.core.pools import EnergyPool
from energy_calc.sim.core.state import EngineState, FormEffects

__all__ = [
    # pools
    "EnergyPool",
    # state
    "EngineState",
    "FormEffects",
]
