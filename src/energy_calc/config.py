"""Engine configuration and fixed constants.

Fixed rules of the calculator live here so tests can
build an engine with different caps or a different primary type.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

SNAPSHOT_VERSION = 1

# Storage layout.
STATE_SAVE_PATH_BASE = "calculatorStates"

DEFAULT_RYOKO_EQUATION = "((11250000 * 19 * 10 * 25 * 5 * 10 * 5 * 470) / 2) * 110"

# Maximum usable slider percentage per attack mode value.
DEFAULT_ATTACK_CAPS: dict[str, float] = {"none": 100.0, "super": 95.0, "ultimate": 90.0}

_STATE_DIR_ENV = "ENERGY_CALC_STATE_DIR"
_DEFAULT_STATE_DIR = Path.home() / ".energy_calc"


def default_state_dir() -> Path:
    """Return the root directory for persisted state.

    ``$ENERGY_CALC_STATE_DIR`` overrides the default of ``~/.energy_calc``.
    """
    override = os.environ.get(_STATE_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return _DEFAULT_STATE_DIR


@dataclass
class EngineConfig:
    """Tunable rules for a :class:`~energy_calc.sim.engine.CalculatorEngine`.

    Attributes
    ----------
    primary_type_id:
        The energy type whose focus enables Kaioken strain.
    attack_caps:
        Maximum usable slider percentage per attack mode.
    compression_rate:
        Multiplier gained per compression point.
    compression_bonus_step / compression_bonus:
        Every ``compression_bonus_step`` points add ``compression_bonus``
        on top of the linear rate.
    snapshot_version:
        Version stamped into every gathered snapshot.
    """

    primary_type_id: str = "ki"
    attack_caps: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_ATTACK_CAPS)
    )
    compression_rate: float = 1.5
    compression_bonus_step: int = 10
    compression_bonus: float = 3.0
    snapshot_version: int = SNAPSHOT_VERSION
