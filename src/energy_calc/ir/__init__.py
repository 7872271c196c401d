"""Serialisable definitions for the calculation engine.

Energy types, forms, modifiers, character stats, and state snapshots are
all Pydantic models that round-trip cleanly through JSON.
"""

from .attacks import AttackMode
from .energy_types import (
    ALL_TYPES_TARGET,
    FORMULA_VARIABLES,
    EnergyTypeDefinition,
    StandardFormula,
    standard_definitions,
)
from .forms import BuffKind, BuffSpec, FormDefinition
from .modifiers import Modifier, ModifierKind
from .snapshot import PoolSnapshot, StateSnapshot, StatisticsSnapshot
from .stats import AttackInputs, CharacterStats, KaiokenState, RyokoMode

__all__ = [
    # attacks
    "AttackMode",
    # energy types
    "ALL_TYPES_TARGET",
    "FORMULA_VARIABLES",
    "EnergyTypeDefinition",
    "StandardFormula",
    "standard_definitions",
    # forms
    "BuffKind",
    "BuffSpec",
    "FormDefinition",
    # modifiers
    "Modifier",
    "ModifierKind",
    # snapshot
    "PoolSnapshot",
    "StateSnapshot",
    "StatisticsSnapshot",
    # stats
    "AttackInputs",
    "CharacterStats",
    "KaiokenState",
    "RyokoMode",
]
