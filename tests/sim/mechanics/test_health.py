"""Tests for Kaioken strain and health regeneration."""

from energy_calc.ir.stats import KaiokenState
from energy_calc.sim.mechanics.health import (
    apply_kaioken_strain,
    clamp_health,
    regenerate_health,
    strain_cost,
)


def _make_kaioken(**kwargs) -> KaiokenState:
    defaults = dict(enabled=True, max_health=1000, strain_percent=10, current_health=1000)
    defaults.update(kwargs)
    return KaiokenState(**defaults)


class TestStrain:
    def test_strain_cost(self):
        assert strain_cost(_make_kaioken()) == 100

    def test_strain_deducts(self):
        kaioken = _make_kaioken()
        assert not apply_kaioken_strain(kaioken)
        assert kaioken.current_health == 900

    def test_depletion_reported_once(self):
        kaioken = _make_kaioken(current_health=50)
        assert apply_kaioken_strain(kaioken)
        assert kaioken.current_health == 0
        assert not apply_kaioken_strain(kaioken)
        assert kaioken.current_health == 0

    def test_exact_depletion(self):
        kaioken = _make_kaioken(current_health=100)
        assert apply_kaioken_strain(kaioken)

    def test_zero_strain_is_noop(self):
        kaioken = _make_kaioken(strain_percent=0, current_health=500)
        assert not apply_kaioken_strain(kaioken)
        assert kaioken.current_health == 500

    def test_zero_max_health_is_noop(self):
        kaioken = _make_kaioken(max_health=0, current_health=10)
        assert not apply_kaioken_strain(kaioken)
        assert kaioken.current_health == 10


class TestHealthRestore:
    def test_regenerate(self):
        kaioken = _make_kaioken(current_health=250)
        assert regenerate_health(kaioken) == 750
        assert kaioken.current_health == 1000

    def test_clamp(self):
        kaioken = _make_kaioken(max_health=500, current_health=800)
        clamp_health(kaioken)
        assert kaioken.current_health == 500
