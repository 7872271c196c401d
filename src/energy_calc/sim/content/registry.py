"""Energy type registry -- merges the standard energy types with custom
types authored by an administrator.

Standard types are built in (see :class:`~energy_calc.ir.energy_types.StandardFormula`).
Custom types are loaded from a JSON file (by default
``data/custom_energy_types.json`` relative to the project root) and can be
added, edited, and removed at runtime.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from pathlib import Path
from typing import Any

from energy_calc.errors import EnergyTypeError, FormulaError
from energy_calc.ir.energy_types import EnergyTypeDefinition, standard_definitions
from energy_calc.sim.expressions import ExpressionEvaluator, SafeExpressionEvaluator

logger = logging.getLogger(__name__)

# Default paths relative to the project root.
_PROJECT_ROOT = Path(__file__).resolve().parents[4]  # src/energy_calc/sim/content -> root
_DEFAULT_CUSTOM_TYPES_PATH = _PROJECT_ROOT / "data" / "custom_energy_types.json"

_VALID_FORMULA_CHARS = re.compile(r"^[a-zA-Z0-9\s+\-*/().]+$")
DEFAULT_CUSTOM_COLOR = "#64748B"


def merge(
    standard_defs: list[EnergyTypeDefinition],
    custom_defs: list[EnergyTypeDefinition],
) -> list[EnergyTypeDefinition]:
    """Concatenate standard and custom definitions, keeping ids unique.

    A later definition that reuses an earlier id replaces it in place
    (the earlier position is kept).
    """
    merged: list[EnergyTypeDefinition] = []
    index_by_id: dict[str, int] = {}
    for defn in [*standard_defs, *custom_defs]:
        if defn.id in index_by_id:
            logger.warning(
                "Energy type id %r defined more than once; using the later definition",
                defn.id,
            )
            merged[index_by_id[defn.id]] = defn
            continue
        index_by_id[defn.id] = len(merged)
        merged.append(defn)
    return merged


def _parse_custom_type(type_id: str, raw: Any) -> EnergyTypeDefinition | None:
    """Parse one raw custom record; ``None`` when a required field is missing."""
    if not isinstance(raw, dict):
        logger.warning("Skipping custom energy type %r: not an object", type_id)
        return None
    name = raw.get("name")
    formula = raw.get("formula")
    if not type_id or not name or not formula:
        logger.warning("Skipping invalid custom energy type %r: %r", type_id, raw)
        return None
    return EnergyTypeDefinition(
        id=str(type_id),
        name=str(name),
        is_standard=False,
        formula=str(formula),
        color=raw.get("color"),
    )


class EnergyTypeRegistry:
    """Serves the merged list of energy type definitions.

    Usage::

        registry = EnergyTypeRegistry()
        registry.load_custom_types()

        registry.type_ids()          # ["ki", "nen", ..., "other", "<custom ids>"]
        registry.get("ki").name      # "Ki"

    Parameters
    ----------
    evaluator:
        Used to check that custom formulas compile before they are accepted.
    """

    def __init__(self, evaluator: ExpressionEvaluator | None = None) -> None:
        self.evaluator = evaluator or SafeExpressionEvaluator()
        self._standard = standard_definitions()
        self._custom: list[EnergyTypeDefinition] = []
        self._merged: list[EnergyTypeDefinition] = merge(self._standard, [])

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def definitions(self) -> list[EnergyTypeDefinition]:
        """All definitions: standard types first, then custom types in load order."""
        return list(self._merged)

    @property
    def custom_definitions(self) -> list[EnergyTypeDefinition]:
        return [d for d in self._merged if not d.is_standard]

    def type_ids(self) -> list[str]:
        return [d.id for d in self._merged]

    def get(self, type_id: str) -> EnergyTypeDefinition | None:
        """Return the definition for *type_id*, or ``None``."""
        for defn in self._merged:
            if defn.id == type_id:
                return defn
        return None

    def __contains__(self, type_id: object) -> bool:
        return any(d.id == type_id for d in self._merged)

    def __len__(self) -> int:
        return len(self._merged)

    # ------------------------------------------------------------------
    # Loading / saving
    # ------------------------------------------------------------------

    def set_custom_types(self, custom_defs: list[EnergyTypeDefinition]) -> None:
        """Replace the custom set and rebuild the merged list."""
        self._custom = list(custom_defs)
        self._merged = merge(self._standard, self._custom)

    def load_custom_types(self, path: str | Path | None = None) -> int:
        """Load custom types from a JSON object keyed by type id.

        Any read or parse failure leaves the registry with no custom types;
        the error is logged, never raised.

        Parameters
        ----------
        path:
            Path to the JSON file.  Defaults to
            ``data/custom_energy_types.json`` relative to the project root.

        Returns
        -------
        int
            Number of custom types loaded.
        """
        if path is None:
            path = _DEFAULT_CUSTOM_TYPES_PATH
        path = Path(path)

        try:
            with open(path) as f:
                raw_types = json.load(f)
        except FileNotFoundError:
            logger.debug("No custom energy types at %s", path)
            self.set_custom_types([])
            return 0
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to load custom energy types from %s: %s", path, exc)
            self.set_custom_types([])
            return 0

        if not isinstance(raw_types, dict):
            logger.error("Custom energy types file %s must contain a JSON object", path)
            self.set_custom_types([])
            return 0

        custom: list[EnergyTypeDefinition] = []
        for type_id, raw in raw_types.items():
            defn = _parse_custom_type(type_id, raw)
            if defn is not None:
                custom.append(defn)

        self.set_custom_types(custom)
        logger.debug("Loaded %d custom energy types from %s", len(custom), path)
        return len(custom)

    def save_custom_types(self, path: str | Path | None = None) -> None:
        """Write the custom types as a JSON object keyed by type id."""
        if path is None:
            path = _DEFAULT_CUSTOM_TYPES_PATH
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        payload = {
            d.id: {"name": d.name, "color": d.color, "formula": d.formula}
            for d in self.custom_definitions
        }
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def validate_custom_type(self, name: str | None, formula: str | None) -> tuple[str, str]:
        """Return the stripped ``(name, formula)`` or raise :class:`EnergyTypeError`."""
        name = (name or "").strip()
        formula = (formula or "").strip()
        if not name or not formula:
            raise EnergyTypeError("Name and Formula are required.")
        if not _VALID_FORMULA_CHARS.match(formula):
            raise EnergyTypeError("Formula contains invalid characters.")
        try:
            self.evaluator.compile(formula)
        except FormulaError as exc:
            raise EnergyTypeError(str(exc)) from exc
        return name, formula

    def add_custom_type(
        self, name: str, formula: str, color: str | None = None
    ) -> EnergyTypeDefinition:
        """Validate and append a new custom type with a generated id."""
        name, formula = self.validate_custom_type(name, formula)
        defn = EnergyTypeDefinition(
            id=uuid.uuid4().hex[:20],
            name=name,
            is_standard=False,
            formula=formula,
            color=color or DEFAULT_CUSTOM_COLOR,
        )
        self.set_custom_types([*self._custom, defn])
        return defn

    def update_custom_type(
        self,
        type_id: str,
        name: str,
        formula: str,
        color: str | None = None,
    ) -> EnergyTypeDefinition:
        """Replace the name, formula and colour of an existing custom type."""
        existing = self._require_custom(type_id)
        name, formula = self.validate_custom_type(name, formula)
        updated = existing.model_copy(
            update={"name": name, "formula": formula, "color": color or existing.color}
        )
        self.set_custom_types([updated if d.id == type_id else d for d in self._custom])
        return updated

    def remove_custom_type(self, type_id: str) -> EnergyTypeDefinition:
        existing = self._require_custom(type_id)
        self.set_custom_types([d for d in self._custom if d.id != type_id])
        return existing

    def _require_custom(self, type_id: str) -> EnergyTypeDefinition:
        defn = self.get(type_id)
        if defn is None:
            raise EnergyTypeError(f"Unknown energy type {type_id!r}")
        if defn.is_standard:
            raise EnergyTypeError(f"Standard energy type {type_id!r} cannot be changed")
        return defn
