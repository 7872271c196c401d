"""State stores -- save, load, and delete engine snapshots keyed by user id.

Stores never raise for I/O or decoding problems: failures are logged and
reported as ``False`` / ``None`` so the caller can show a message and carry
on.

- :class:`JsonFileStateStore` writes one JSON file per key under
  ``<root>/calculatorStates/``.
- :class:`InMemoryStateStore` keeps serialised snapshots in a dict (tests,
  short-lived sessions).
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from energy_calc.config import STATE_SAVE_PATH_BASE, default_state_dir
from energy_calc.ir.snapshot import StateSnapshot

if TYPE_CHECKING:
    from energy_calc.sim.engine import CalculatorEngine

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.\-]+$")


class StateStore(ABC):
    """Persistence contract for :class:`StateSnapshot` objects."""

    @abstractmethod
    def load(self, key: str) -> StateSnapshot | None:
        """Return the snapshot stored under *key*, or ``None``."""

    @abstractmethod
    def save(self, key: str, snapshot: StateSnapshot) -> bool:
        """Store *snapshot* under *key*; return whether it succeeded."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove the snapshot under *key*; return whether it succeeded."""


class JsonFileStateStore(StateStore):
    """One pretty-printed JSON file per key.

    Parameters
    ----------
    root:
        Base directory.  Defaults to ``$ENERGY_CALC_STATE_DIR`` or
        ``~/.energy_calc``.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root) if root is not None else default_state_dir()
        self.directory = self.root / STATE_SAVE_PATH_BASE

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key) or key in (".", ".."):
            raise ValueError(f"Invalid state key {key!r}")
        return self.directory / f"{key}.json"

    def load(self, key: str) -> StateSnapshot | None:
        try:
            path = self.path_for(key)
        except ValueError as exc:
            logger.error("Failed to load state: %s", exc)
            return None
        if not path.exists():
            logger.info("No saved state found for %s", key)
            return None
        try:
            data = json.loads(path.read_text())
            return StateSnapshot.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.error("Failed to load state from %s: %s", path, exc)
            return None

    def save(self, key: str, snapshot: StateSnapshot) -> bool:
        try:
            path = self.path_for(key)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(snapshot.model_dump(mode="json"), indent=2))
        except (OSError, ValueError) as exc:
            logger.error("Failed to save state for %s: %s", key, exc)
            return False
        return True

    def delete(self, key: str) -> bool:
        try:
            path = self.path_for(key)
            path.unlink(missing_ok=True)
        except (OSError, ValueError) as exc:
            logger.error("Failed to delete state for %s: %s", key, exc)
            return False
        return True


class InMemoryStateStore(StateStore):
    """Keeps JSON-compatible dumps so stored snapshots cannot be mutated."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def load(self, key: str) -> StateSnapshot | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return StateSnapshot.model_validate(raw)
        except ValidationError as exc:
            logger.error("Failed to load state for %s: %s", key, exc)
            return None

    def save(self, key: str, snapshot: StateSnapshot) -> bool:
        self._data[key] = snapshot.model_dump(mode="json")
        return True

    def delete(self, key: str) -> bool:
        self._data.pop(key, None)
        return True


# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------

def save_state(engine: CalculatorEngine, store: StateStore, key: str) -> bool:
    """Gather the engine state and save it; ``False`` if nothing was saved."""
    snapshot = engine.gather()
    if snapshot is None:
        logger.error("Save aborted for %s: state could not be gathered", key)
        return False
    return store.save(key, snapshot)


def load_state(engine: CalculatorEngine, store: StateStore, key: str) -> bool:
    """Load a snapshot and apply it; ``False`` if none was found."""
    snapshot = store.load(key)
    if snapshot is None:
        return False
    engine.apply(snapshot)
    return True


def clear_state(engine: CalculatorEngine, store: StateStore, key: str) -> bool:
    """Delete the stored snapshot and reset the engine to defaults."""
    deleted = store.delete(key)
    engine.reset()
    return deleted
