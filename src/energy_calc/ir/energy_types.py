"""Energy type definitions -- the resource pools a character can draw on."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class StandardFormula(str, Enum):
    """Built-in energy types, each with a fixed capacity formula.

    Member order is the display order of the standard registry.
    """

    KI = "ki"
    NEN = "nen"
    CHAKRA = "chakra"
    MAGIC = "magic"
    CURSED = "cursed"
    REIATSU = "reiatsu"
    HAKI = "haki"
    ALCHEMY = "alchemy"
    NATURE = "nature"
    FORCE = "force"
    ORIGIN = "origin"
    FUNDAMENTAL = "fundamental"
    OTHER = "other"


# Display names for the standard types.
STANDARD_TYPE_NAMES: dict[StandardFormula, str] = {
    StandardFormula.KI: "Ki",
    StandardFormula.NEN: "Nen",
    StandardFormula.CHAKRA: "Chakra",
    StandardFormula.MAGIC: "Magic",
    StandardFormula.CURSED: "Cursed",
    StandardFormula.REIATSU: "Reiatsu",
    StandardFormula.HAKI: "Haki",
    StandardFormula.ALCHEMY: "Alchemy",
    StandardFormula.NATURE: "Nature",
    StandardFormula.FORCE: "Force",
    StandardFormula.ORIGIN: "Origin",
    StandardFormula.FUNDAMENTAL: "Fundamental",
    StandardFormula.OTHER: "Other",
}

# Variables a custom formula may reference.
FORMULA_VARIABLES: frozenset[str] = frozenset({"baseHp", "vitality", "soulPower", "soulHp"})

# Forms may target a single type id or this sentinel for "every type".
ALL_TYPES_TARGET = "None"


class EnergyTypeDefinition(BaseModel):
    """A single entry of the merged energy type registry."""

    id: str
    """Unique identifier.  Standard types use their enum value (``"ki"``);
    custom types use a generated hex id."""

    name: str
    """Display name."""

    is_standard: bool = False
    """True for built-in types whose capacity comes from :class:`StandardFormula`."""

    formula: str | None = None
    """Arithmetic over :data:`FORMULA_VARIABLES`.  Always ``None`` for
    standard types."""

    color: str | None = None
    """Hex colour for custom types (standard types are styled by id)."""

    @property
    def standard_formula(self) -> StandardFormula | None:
        """The builtin formula tag, or ``None`` for custom types."""
        if not self.is_standard:
            return None
        try:
            return StandardFormula(self.id)
        except ValueError:
            return None


def standard_definitions() -> list[EnergyTypeDefinition]:
    """Return fresh definitions for every standard type in display order."""
    return [
        EnergyTypeDefinition(id=tag.value, name=STANDARD_TYPE_NAMES[tag], is_standard=True)
        for tag in StandardFormula
    ]
