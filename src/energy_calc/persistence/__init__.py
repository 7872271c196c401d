"""Snapshot persistence."""

from energy_calc.persistence.store import (
    InMemoryStateStore,
    JsonFileStateStore,
    StateStore,
    clear_state,
    load_state,
    save_state,
)

__all__ = [
    "StateStore",
    "JsonFileStateStore",
    "InMemoryStateStore",
    "save_state",
    "load_state",
    "clear_state",
]
