"""Form definitions -- named buff bundles a character can equip."""

from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, Field

from .energy_types import ALL_TYPES_TARGET


class BuffKind(str, Enum):
    """How an escalation buff is applied after each calculation."""

    ADD = "add"
    MULTIPLY = "multiply"


class BuffSpec(BaseModel):
    """Per-turn escalation of one of a form's multipliers."""

    enabled: bool = False
    value: float = 0.0
    kind: BuffKind = BuffKind.ADD

    def apply(self, current: float) -> float:
        """Return *current* after one escalation step, floored at 0.

        A disabled buff or a zero value leaves *current* unchanged.
        """
        if not self.enabled or self.value == 0:
            return current
        if self.kind is BuffKind.ADD:
            result = current + self.value
        else:
            result = current * self.value
        return max(0.0, result)


def _new_form_id() -> str:
    return f"form_{uuid.uuid4().hex[:12]}"


class FormDefinition(BaseModel):
    """A single character form."""

    id: str = Field(default_factory=_new_form_id)
    name: str
    form_multiplier: float = 1.0
    """Summed across active forms and applied to base damage."""

    pool_max_multiplier: float = 1.0
    """Multiplied into the targeted pool(s) capacity."""

    energy_type: str = ALL_TYPES_TARGET
    """Target type id, or ``"None"`` to affect every pool."""

    affects_resistances: bool = False
    ac_bonus: float = 0.0
    true_resistance_bonus: float = 0.0
    form_buff: BuffSpec = Field(default_factory=BuffSpec)
    pool_buff: BuffSpec = Field(default_factory=BuffSpec)

    @property
    def targets_all_types(self) -> bool:
        return self.energy_type == ALL_TYPES_TARGET
