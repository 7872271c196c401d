"""Attack-mode gate -- per-type cap on how much of a pool one attack uses."""

from __future__ import annotations

from typing import Mapping

from energy_calc.config import DEFAULT_ATTACK_CAPS
from energy_calc.ir.attacks import AttackMode


def attack_cap(mode: AttackMode, caps: Mapping[str, float] | None = None) -> float:
    """Return the maximum usable slider percentage for *mode*."""
    caps = caps or DEFAULT_ATTACK_CAPS
    return caps.get(mode.value, 100.0)


def toggle_attack(current: AttackMode, requested: AttackMode) -> AttackMode:
    """Selecting the already-active mode clears it; anything else replaces it."""
    if requested is AttackMode.NONE or current is requested:
        return AttackMode.NONE
    return requested
