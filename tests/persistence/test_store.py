"""Tests for the snapshot stores and the engine save/load helpers."""

import json

import pytest

from energy_calc.errors import SnapshotError
from energy_calc.ir.snapshot import StateSnapshot
from energy_calc.persistence.store import (
    InMemoryStateStore,
    JsonFileStateStore,
    clear_state,
    load_state,
    save_state,
)
from energy_calc.sim.engine import CalculatorEngine
from tests.sim.conftest import make_engine, make_stats


def _make_snapshot(**kwargs) -> StateSnapshot:
    return StateSnapshot(stats=make_stats(), **kwargs)


# ---------------------------------------------------------------------------
# JSON file store
# ---------------------------------------------------------------------------

class TestJsonFileStateStore:
    def test_round_trip(self, tmp_path):
        store = JsonFileStateStore(tmp_path)
        snap = _make_snapshot(character_name="Goku")
        assert store.save("user-1", snap)
        assert (tmp_path / "calculatorStates" / "user-1.json").exists()
        assert store.load("user-1") == snap

    def test_file_is_readable_json(self, tmp_path):
        store = JsonFileStateStore(tmp_path)
        store.save("u", _make_snapshot())
        data = json.loads(store.path_for("u").read_text())
        assert data["version"] == 1
        assert data["stats"]["vitality"] == 10

    def test_missing_key(self, tmp_path):
        assert JsonFileStateStore(tmp_path).load("nobody") is None

    def test_corrupt_file(self, tmp_path):
        store = JsonFileStateStore(tmp_path)
        path = store.path_for("u")
        path.parent.mkdir(parents=True)
        path.write_text("{broken")
        assert store.load("u") is None

    def test_invalid_snapshot_file(self, tmp_path):
        store = JsonFileStateStore(tmp_path)
        path = store.path_for("u")
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"active_view": "nowhere"}))
        assert store.load("u") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".."])
    def test_unsafe_keys(self, tmp_path, key):
        store = JsonFileStateStore(tmp_path)
        with pytest.raises(ValueError):
            store.path_for(key)
        assert not store.save(key, _make_snapshot())
        assert store.load(key) is None

    def test_delete(self, tmp_path):
        store = JsonFileStateStore(tmp_path)
        store.save("u", _make_snapshot())
        assert store.delete("u")
        assert store.load("u") is None
        assert store.delete("u")

    def test_default_root_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ENERGY_CALC_STATE_DIR", str(tmp_path))
        assert JsonFileStateStore().directory == tmp_path / "calculatorStates"


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class TestInMemoryStateStore:
    def test_round_trip(self):
        store = InMemoryStateStore()
        snap = _make_snapshot(character_name="Vegeta")
        store.save("u", snap)
        assert "u" in store
        assert store.load("u") == snap

    def test_stored_copy_is_detached(self):
        store = InMemoryStateStore()
        snap = _make_snapshot(character_name="Vegeta")
        store.save("u", snap)
        snap.character_name = "Changed"
        assert store.load("u").character_name == "Vegeta"

    def test_delete(self):
        store = InMemoryStateStore()
        store.save("u", _make_snapshot())
        store.delete("u")
        assert "u" not in store
        assert store.load("u") is None


# ---------------------------------------------------------------------------
# Engine helpers
# ---------------------------------------------------------------------------

class TestEngineHelpers:
    def test_save_and_load(self):
        store = InMemoryStateStore()
        engine = make_engine()
        engine.set_character_name("Goku")
        engine.set_slider("ki", 30)
        engine.calculate()
        assert save_state(engine, store, "u")

        other = CalculatorEngine()
        assert load_state(other, store, "u")
        assert other.state.character_name == "Goku"
        assert other.pool("ki").current == 70

    def test_save_without_stats_aborts(self):
        store = InMemoryStateStore()
        assert not save_state(CalculatorEngine(), store, "u")
        assert "u" not in store

    def test_load_missing(self):
        engine = make_engine()
        assert not load_state(engine, InMemoryStateStore(), "u")
        assert engine.state.stats is not None

    def test_load_newer_version_raises(self):
        store = InMemoryStateStore()
        store.save("u", _make_snapshot(version=2))
        with pytest.raises(SnapshotError):
            load_state(make_engine(), store, "u")

    def test_clear_state(self):
        store = InMemoryStateStore()
        engine = make_engine()
        save_state(engine, store, "u")
        assert clear_state(engine, store, "u")
        assert "u" not in store
        assert engine.state.stats is None
