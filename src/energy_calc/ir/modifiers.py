"""Ad-hoc damage modifiers entered by the user."""

from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, Field


class ModifierKind(str, Enum):
    ADDITIVE = "additive"
    MULTIPLICATIVE = "multiplicative"


class Modifier(BaseModel):
    """A named additive or multiplicative damage factor."""

    id: str = Field(default_factory=lambda: f"modifier-{uuid.uuid4().hex[:8]}")
    name: str = ""
    value: float = 0.0
    kind: ModifierKind = ModifierKind.ADDITIVE
