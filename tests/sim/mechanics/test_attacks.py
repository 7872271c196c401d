"""Tests for attack-mode caps and toggling."""

import pytest

from energy_calc.config import DEFAULT_ATTACK_CAPS, EngineConfig
from energy_calc.ir.attacks import AttackMode
from energy_calc.sim.mechanics.attacks import attack_cap, toggle_attack


class TestAttackCap:
    @pytest.mark.parametrize("mode,expected", [
        (AttackMode.NONE, 100),
        (AttackMode.SUPER, 95),
        (AttackMode.ULTIMATE, 90),
    ])
    def test_default_caps(self, mode, expected):
        assert attack_cap(mode) == expected

    def test_custom_caps(self):
        assert attack_cap(AttackMode.SUPER, {"super": 50}) == 50

    def test_missing_cap_is_uncapped(self):
        assert attack_cap(AttackMode.ULTIMATE, {"super": 50}) == 100


class TestToggleAttack:
    def test_select_mode(self):
        assert toggle_attack(AttackMode.NONE, AttackMode.SUPER) is AttackMode.SUPER

    def test_reselect_clears(self):
        assert toggle_attack(AttackMode.SUPER, AttackMode.SUPER) is AttackMode.NONE

    def test_switch_mode(self):
        assert toggle_attack(AttackMode.SUPER, AttackMode.ULTIMATE) is AttackMode.ULTIMATE

    def test_none_clears(self):
        assert toggle_attack(AttackMode.ULTIMATE, AttackMode.NONE) is AttackMode.NONE


class TestEngineConfigCaps:
    def test_config_copies_default_caps(self):
        config = EngineConfig()
        assert config.attack_caps == DEFAULT_ATTACK_CAPS
        config.attack_caps["super"] = 10
        assert DEFAULT_ATTACK_CAPS["super"] == 95
        assert EngineConfig().attack_caps["super"] == 95
