"""Tests for the energy type registry -- merge, custom type loading, admin edits."""

import json

import pytest

from energy_calc.errors import EnergyTypeError
from energy_calc.ir.energy_types import EnergyTypeDefinition, standard_definitions
from energy_calc.sim.content.registry import EnergyTypeRegistry, merge

STANDARD_ORDER = [
    "ki", "nen", "chakra", "magic", "cursed", "reiatsu", "haki",
    "alchemy", "nature", "force", "origin", "fundamental", "other",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_custom(type_id: str = "abc123", **kwargs) -> EnergyTypeDefinition:
    defaults = dict(id=type_id, name="Spirit", formula="vitality * 2", color="#123456")
    defaults.update(kwargs)
    return EnergyTypeDefinition(**defaults)


def _write_types(path, payload) -> None:
    path.write_text(json.dumps(payload))


# ---------------------------------------------------------------------------
# merge
# ---------------------------------------------------------------------------

class TestMerge:
    def test_standard_order(self):
        merged = merge(standard_definitions(), [])
        assert [d.id for d in merged] == STANDARD_ORDER
        assert all(d.is_standard for d in merged)

    def test_custom_types_appended_in_load_order(self):
        merged = merge(standard_definitions(), [_make_custom("b"), _make_custom("a")])
        assert [d.id for d in merged][-2:] == ["b", "a"]

    def test_duplicate_id_last_wins_in_place(self):
        override = _make_custom("nen", name="Custom Nen")
        merged = merge(standard_definitions(), [override])
        ids = [d.id for d in merged]
        assert ids == STANDARD_ORDER
        assert merged[1].name == "Custom Nen"
        assert merged[1].is_standard is False

    def test_duplicate_custom_ids(self):
        merged = merge([], [_make_custom("x", name="First"), _make_custom("x", name="Second")])
        assert len(merged) == 1
        assert merged[0].name == "Second"


# ---------------------------------------------------------------------------
# Loading / saving
# ---------------------------------------------------------------------------

class TestLoadCustomTypes:
    def test_load_from_file(self, tmp_path):
        path = tmp_path / "types.json"
        _write_types(path, {
            "t1": {"name": "Spirit", "color": "#111111", "formula": "vitality * 2"},
            "t2": {"name": "Vigor", "formula": "baseHp + 1"},
        })
        registry = EnergyTypeRegistry()
        assert registry.load_custom_types(path) == 2
        assert registry.type_ids()[-2:] == ["t1", "t2"]
        assert registry.get("t1").color == "#111111"
        assert registry.get("t2").is_standard is False

    def test_invalid_records_skipped(self, tmp_path):
        path = tmp_path / "types.json"
        _write_types(path, {
            "ok": {"name": "Spirit", "formula": "vitality"},
            "no_formula": {"name": "Broken"},
            "no_name": {"formula": "vitality"},
            "not_object": 5,
        })
        registry = EnergyTypeRegistry()
        assert registry.load_custom_types(path) == 1
        assert "ok" in registry
        assert "no_formula" not in registry

    def test_missing_file_is_silent(self, tmp_path):
        registry = EnergyTypeRegistry()
        assert registry.load_custom_types(tmp_path / "missing.json") == 0
        assert registry.type_ids() == STANDARD_ORDER

    def test_corrupt_file_is_silent(self, tmp_path):
        path = tmp_path / "types.json"
        path.write_text("{not json")
        registry = EnergyTypeRegistry()
        registry.set_custom_types([_make_custom()])
        assert registry.load_custom_types(path) == 0
        assert registry.custom_definitions == []

    def test_non_object_file_is_silent(self, tmp_path):
        path = tmp_path / "types.json"
        _write_types(path, ["a", "b"])
        assert EnergyTypeRegistry().load_custom_types(path) == 0

    def test_default_data_file_loads(self):
        registry = EnergyTypeRegistry()
        assert registry.load_custom_types() >= 1
        for defn in registry.custom_definitions:
            registry.validate_custom_type(defn.name, defn.formula)

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "types.json"
        registry = EnergyTypeRegistry()
        added = registry.add_custom_type("Spirit", "soulPower * 3", color="#ABCDEF")
        registry.save_custom_types(path)

        reloaded = EnergyTypeRegistry()
        assert reloaded.load_custom_types(path) == 1
        assert reloaded.get(added.id) == added


# ---------------------------------------------------------------------------
# Administration
# ---------------------------------------------------------------------------

class TestAdmin:
    def test_add_custom_type(self, registry):
        defn = registry.add_custom_type("  Spirit ", " vitality * 2 ")
        assert defn.name == "Spirit"
        assert defn.formula == "vitality * 2"
        assert defn.color == "#64748B"
        assert registry.type_ids()[-1] == defn.id
        assert len(registry) == len(STANDARD_ORDER) + 1

    @pytest.mark.parametrize("name,formula", [("", "vitality"), ("Spirit", ""), (None, None)])
    def test_name_and_formula_required(self, registry, name, formula):
        with pytest.raises(EnergyTypeError, match="required"):
            registry.add_custom_type(name, formula)

    def test_invalid_characters_rejected(self, registry):
        with pytest.raises(EnergyTypeError, match="invalid characters"):
            registry.add_custom_type("Spirit", "vitality ** 2; drop")

    def test_unknown_variable_rejected(self, registry):
        with pytest.raises(EnergyTypeError, match="strength"):
            registry.add_custom_type("Spirit", "strength * 2")

    def test_syntax_error_rejected(self, registry):
        with pytest.raises(EnergyTypeError):
            registry.add_custom_type("Spirit", "vitality * (2")

    def test_oversized_formula_rejected(self, registry):
        with pytest.raises(EnergyTypeError):
            registry.add_custom_type("Spirit", "vitality" + " + 1" * 5000)
        assert registry.custom_definitions == []

    def test_update_custom_type(self, registry):
        defn = registry.add_custom_type("Spirit", "vitality", color="#000000")
        updated = registry.update_custom_type(defn.id, "Soul", "soulHp * 2")
        assert updated.id == defn.id
        assert updated.name == "Soul"
        assert updated.color == "#000000"
        assert registry.get(defn.id).formula == "soulHp * 2"

    def test_remove_custom_type(self, registry):
        defn = registry.add_custom_type("Spirit", "vitality")
        registry.remove_custom_type(defn.id)
        assert defn.id not in registry

    def test_standard_types_are_read_only(self, registry):
        with pytest.raises(EnergyTypeError):
            registry.update_custom_type("ki", "Ki", "vitality")
        with pytest.raises(EnergyTypeError):
            registry.remove_custom_type("ki")

    def test_unknown_type(self, registry):
        with pytest.raises(EnergyTypeError):
            registry.remove_custom_type("nope")

    def test_failed_edit_leaves_registry_unchanged(self, registry):
        defn = registry.add_custom_type("Spirit", "vitality")
        with pytest.raises(EnergyTypeError):
            registry.update_custom_type(defn.id, "Spirit", "nonsense * 2")
        assert registry.get(defn.id).formula == "vitality"
