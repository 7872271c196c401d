"""Attack modes -- per-energy-type caps on how much of a pool one attack may use."""

from __future__ import annotations

from enum import Enum


class AttackMode(str, Enum):
    NONE = "none"
    SUPER = "super"
    """Caps usable slider percentage at 95."""

    ULTIMATE = "ultimate"
    """Caps usable slider percentage at 90."""
