"""Calculator engine -- ties the registry, pools, forms, and damage pipeline together.

A :class:`CalculatorEngine` owns one :class:`EngineState` and mutates it
only through its methods.  Recomputation is explicit: after changing any
input the caller invokes :meth:`CalculatorEngine.refresh`, which

1. evaluates the Ryoko equation (if enabled),
2. aggregates the active forms,
3. recomputes (and refills) every energy pool.

:meth:`CalculatorEngine.calculate` runs the damage pipeline once.

Usage::

    engine = CalculatorEngine()
    engine.set_stats(CharacterStats(vitality=10, soul_power=5, soul_hp=5))
    engine.update_attack(base_damage=100, base_multiplier=2)
    engine.refresh()
    result = engine.calculate()
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Iterable

from energy_calc.config import DEFAULT_RYOKO_EQUATION, EngineConfig
from energy_calc.errors import (
    EnergyTypeError,
    FormError,
    FormulaError,
    InvalidOperation,
    SnapshotError,
)
from energy_calc.ir.attacks import AttackMode
from energy_calc.ir.energy_types import ALL_TYPES_TARGET
from energy_calc.ir.forms import FormDefinition
from energy_calc.ir.modifiers import Modifier, ModifierKind
from energy_calc.ir.snapshot import PoolSnapshot, StateSnapshot, StatisticsSnapshot
from energy_calc.ir.stats import AttackInputs, CharacterStats, KaiokenState, RyokoMode
from energy_calc.sim.content.registry import EnergyTypeRegistry
from energy_calc.sim.core.pools import EnergyPool
from energy_calc.sim.core.state import EngineState
from energy_calc.sim.equation import EnergyTerm, EquationTerms, render_equation
from energy_calc.sim.expressions import ExpressionEvaluator, SafeExpressionEvaluator
from energy_calc.sim.mechanics.attacks import attack_cap, toggle_attack
from energy_calc.sim.mechanics.damage import (
    apply_additive,
    apply_multiplicative,
    base_damage,
    compression_factor,
    speed_damage,
)
from energy_calc.sim.mechanics.energy import (
    base_max_energy,
    consume_pool,
    preview_consumption,
    recompute_pool,
    regenerate_pool,
)
from energy_calc.sim.mechanics.forms import apply_active_forms, escalate_forms
from energy_calc.sim.mechanics.health import (
    apply_kaioken_strain,
    clamp_health,
    regenerate_health,
)
from energy_calc.sim.telemetry import (
    CalculationResult,
    Notice,
    RunStatistics,
    SliderPreview,
    StatsSummary,
)

logger = logging.getLogger(__name__)


class CalculatorEngine:
    """Derived-state calculation engine for one character.

    Parameters
    ----------
    registry:
        Energy type registry.  A registry with only the standard types is
        created if omitted.
    evaluator:
        Evaluator for custom formulas and the Ryoko equation.
    config:
        Caps, compression constants, and the primary energy type.
    """

    def __init__(
        self,
        registry: EnergyTypeRegistry | None = None,
        evaluator: ExpressionEvaluator | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.evaluator = evaluator or SafeExpressionEvaluator()
        self.registry = registry or EnergyTypeRegistry(self.evaluator)
        self._notices: list[Notice] = []
        self.state = self._default_state()
        self._refresh_state(self.state)

    # ------------------------------------------------------------------
    # Notices
    # ------------------------------------------------------------------

    def _notify(self, level: str, message: str) -> None:
        if level == "error":
            logger.error(message)
        else:
            logger.warning(message)
        self._notices.append(Notice(level=level, message=message))

    def drain_notices(self) -> list[Notice]:
        """Return and clear the recoverable problems collected so far."""
        notices, self._notices = self._notices, []
        return notices

    # ------------------------------------------------------------------
    # Input setters
    # ------------------------------------------------------------------

    def set_character_name(self, name: str) -> None:
        self.state.character_name = name

    def set_stats(self, stats: CharacterStats) -> None:
        """Replace the character stats (a copy is stored)."""
        self.state.stats = stats.model_copy()

    def update_stats(self, **changes: Any) -> CharacterStats:
        """Change individual stat fields, validating the result."""
        current = self.state.stats or CharacterStats()
        self.state.stats = CharacterStats.model_validate({**current.model_dump(), **changes})
        return self.state.stats

    def set_attack_inputs(self, attack: AttackInputs) -> None:
        self._require_type(attack.focused_type_id)
        self.state.attack = attack.model_copy()

    def update_attack(self, **changes: Any) -> AttackInputs:
        attack = AttackInputs.model_validate({**self.state.attack.model_dump(), **changes})
        self._require_type(attack.focused_type_id)
        self.state.attack = attack
        return attack

    def set_focused_type(self, type_id: str) -> None:
        self._require_type(type_id)
        self.state.attack.focused_type_id = type_id

    def set_ryoko(self, enabled: bool, equation: str | None = None) -> None:
        """Toggle Ryoko mode.

        Enabling it with a blank equation fills in the default equation.
        """
        if equation is None:
            equation = self.state.ryoko.equation
        if enabled and not equation.strip():
            equation = DEFAULT_RYOKO_EQUATION
        self.state.ryoko = RyokoMode(enabled=enabled, equation=equation)

    def set_kaioken(
        self,
        enabled: bool | None = None,
        max_health: float | None = None,
        strain_percent: float | None = None,
    ) -> KaiokenState:
        """Change Kaioken settings; current health is kept within ``[0, max_health]``."""
        kaioken = self.state.kaioken
        if enabled is not None:
            kaioken.enabled = enabled
        if max_health is not None:
            kaioken.max_health = max_health
        if strain_percent is not None:
            kaioken.strain_percent = strain_percent
        clamp_health(kaioken)
        return kaioken

    def regenerate_health(self) -> float:
        """Restore Kaioken health to max; return the amount healed."""
        return regenerate_health(self.state.kaioken)

    def set_pool_inputs(
        self,
        type_id: str,
        damage_per_point: float | None = None,
        regen_percent: float | None = None,
    ) -> EnergyPool:
        pool = self._require_pool(type_id)
        if damage_per_point is not None:
            pool.damage_per_point = damage_per_point
        if regen_percent is not None:
            pool.regen_percent = regen_percent
        return pool

    def set_slider(self, type_id: str, percent: float) -> None:
        self._require_pool(type_id).set_slider(percent)

    def set_speed_slider(self, percent: float) -> None:
        self.state.speed_slider_percent = max(0.0, min(float(percent), 100.0))

    def set_view(self, view: str) -> None:
        if view not in ("calculator", "characterStats"):
            raise InvalidOperation(f"Unknown view {view!r}")
        self.state.active_view = view

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------

    def refresh(self) -> None:
        """Re-evaluate Ryoko, aggregate forms, and recompute (refill) every pool."""
        self._refresh_state(self.state)

    def rebuild_pools(self) -> None:
        """Recreate the pools after the energy type registry changed.

        Pool inputs (damage per point, regen, slider) are reset.  Attack
        modes for removed types are dropped.
        """
        state = self.state
        known = set(self.registry.type_ids())
        state.pools = self._fresh_pools()
        state.attacks = {tid: mode for tid, mode in state.attacks.items() if tid in known}
        if state.attack.focused_type_id not in known:
            state.attack.focused_type_id = self.config.primary_type_id
        self._refresh_state(state)

    def _refresh_state(self, state: EngineState, refill: bool = True) -> None:
        if state.ryoko.enabled and state.stats is not None:
            state.stats.base_multiplier = self._evaluate_ryoko(state.ryoko.equation)
        state.prune_active_forms()
        state.effects = apply_active_forms(
            state.forms, state.active_form_ids, state.pools.keys()
        )
        self._recompute_pools(state, refill=refill)

    def _recompute_pools(self, state: EngineState, refill: bool = True) -> None:
        char_mult = state.character_base_multiplier
        for type_id, pool in state.pools.items():
            previous = pool.current
            recompute_pool(
                pool,
                self._base_max(type_id, state.stats),
                char_mult,
                state.effects.pool_multiplier(type_id),
            )
            if not refill:
                pool.set_current(previous)

    def _base_max(self, type_id: str, stats: CharacterStats | None) -> float:
        defn = self.registry.get(type_id)
        if defn is None:
            logger.warning("Energy type definition not found for id %r", type_id)
            return 0.0
        if stats is None:
            return 0.0
        try:
            return base_max_energy(defn, stats, self.evaluator)
        except FormulaError as exc:
            self._notify("error", str(exc))
            return 0.0

    def _evaluate_ryoko(self, equation: str) -> float:
        expression = equation.strip()
        if not expression:
            return 1.0
        try:
            return self.evaluator.compile(expression)({})
        except FormulaError as exc:
            self._notify("error", f"Invalid Ryoko equation: {exc}")
            return 1.0

    # ------------------------------------------------------------------
    # Energy pools
    # ------------------------------------------------------------------

    def pool(self, type_id: str) -> EnergyPool:
        return self._require_pool(type_id)

    def regenerate(self, type_id: str, percent: float | None = None) -> float:
        """Regenerate one pool by its regen rate (or *percent*).

        Raises
        ------
        InvalidOperation
            If the pool has no capacity or the rate is not positive.
        """
        return regenerate_pool(self._require_pool(type_id), percent)

    def attack_cap_for(self, type_id: str) -> float:
        return attack_cap(self.state.attack_mode(type_id), self.config.attack_caps)

    def toggle_attack(self, mode: AttackMode | str, type_id: str | None = None) -> AttackMode:
        """Toggle *mode* for *type_id* (default: the focused type).

        Selecting the already-active mode clears it back to ``"none"``.
        """
        type_id = type_id or self.state.attack.focused_type_id
        self._require_type(type_id)
        new_mode = toggle_attack(self.state.attack_mode(type_id), AttackMode(mode))
        self.state.attacks[type_id] = new_mode
        return new_mode

    def preview_pool(self, type_id: str) -> SliderPreview:
        """Energy and damage this pool's slider would produce right now."""
        pool = self._require_pool(type_id)
        cap = self.attack_cap_for(type_id)
        used, damage = preview_consumption(pool, cap)
        return SliderPreview(
            slider_percent=pool.slider_percent,
            effective_percent=min(pool.slider_percent, cap),
            amount_used=used,
            damage=damage,
        )

    def preview_speed(self) -> SliderPreview:
        speed = self.state.stats.speed if self.state.stats is not None else 0.0
        percent = self.state.speed_slider_percent
        damage = speed_damage(speed, percent)
        return SliderPreview(
            slider_percent=percent,
            effective_percent=percent,
            amount_used=damage,
            damage=damage,
        )

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    @property
    def forms(self) -> list[FormDefinition]:
        return list(self.state.forms)

    def add_form(self, form: FormDefinition) -> FormDefinition:
        """Add a new (inactive) form.

        Raises
        ------
        FormError
            If the name is blank or already used (case-insensitive), the id
            is taken, or the target energy type is not registered.
        """
        name = form.name.strip()
        if not name:
            raise FormError("Please enter a Form Name.")
        if any(f.name.lower() == name.lower() for f in self.state.forms):
            raise FormError(f'A form named "{name}" already exists. Please use a unique name.')
        if self.state.get_form(form.id) is not None:
            raise FormError(f"Form with id {form.id!r} already exists")
        if form.energy_type != ALL_TYPES_TARGET and form.energy_type not in self.registry:
            raise FormError(f"Unknown energy type {form.energy_type!r} for form {name!r}")

        update: dict[str, Any] = {"name": name}
        if not form.affects_resistances:
            update.update(ac_bonus=0.0, true_resistance_bonus=0.0)
        stored = form.model_copy(update=update, deep=True)
        self.state.forms.append(stored)
        return stored

    def delete_form(self, form_id: str) -> FormDefinition:
        form = self._require_form(form_id)
        self.state.forms = [f for f in self.state.forms if f.id != form_id]
        was_active = form_id in self.state.active_form_ids
        self.state.prune_active_forms()
        if was_active:
            self.refresh()
        return form

    def set_form_active(self, form_id: str, active: bool) -> None:
        """Equip or unequip a form, then re-aggregate and refresh."""
        self._require_form(form_id)
        ids = self.state.active_form_ids
        if active and form_id not in ids:
            ids.append(form_id)
        elif not active and form_id in ids:
            ids.remove(form_id)
        self.refresh()

    def toggle_form(self, form_id: str) -> bool:
        """Flip a form's active flag; return the new flag."""
        active = form_id not in self.state.active_form_ids
        self.set_form_active(form_id, active)
        return active

    def set_active_forms(self, form_ids: Iterable[str]) -> list[str]:
        """Replace the active set (unknown ids are dropped) and refresh."""
        known = {f.id for f in self.state.forms}
        self.state.active_form_ids = [fid for fid in dict.fromkeys(form_ids) if fid in known]
        self.refresh()
        return list(self.state.active_form_ids)

    # ------------------------------------------------------------------
    # Modifiers
    # ------------------------------------------------------------------

    def add_modifier(
        self,
        name: str = "",
        value: float = 0.0,
        kind: ModifierKind | str = ModifierKind.ADDITIVE,
    ) -> Modifier:
        modifier = Modifier(name=name, value=value, kind=ModifierKind(kind))
        self.state.modifiers.append(modifier)
        return modifier

    def update_modifier(
        self,
        modifier_id: str,
        name: str | None = None,
        value: float | None = None,
        kind: ModifierKind | str | None = None,
    ) -> Modifier:
        modifier = self._require_modifier(modifier_id)
        if name is not None:
            modifier.name = name
        if value is not None:
            modifier.value = value
        if kind is not None:
            modifier.kind = ModifierKind(kind)
        return modifier

    def remove_modifier(self, modifier_id: str) -> Modifier:
        modifier = self._require_modifier(modifier_id)
        self.state.modifiers = [m for m in self.state.modifiers if m.id != modifier_id]
        return modifier

    # ------------------------------------------------------------------
    # Damage calculation
    # ------------------------------------------------------------------

    def calculate(self) -> CalculationResult:
        """Run the damage pipeline once.

        Depletes pools, applies Kaioken strain, records statistics, and
        escalates the buffs of every active form for the next turn.
        """
        state = self.state
        attack = state.attack

        damage = base_damage(attack.base_damage, attack.base_multiplier, state.effects.form_multiplier)
        damage *= compression_factor(
            attack.compression_points,
            self.config.compression_rate,
            self.config.compression_bonus_step,
            self.config.compression_bonus,
        )
        damage = apply_multiplicative(damage, state.modifiers)

        energy_used = 0.0
        energy_damage = 0.0
        used_by_type: dict[str, float] = {}
        for type_id, pool in state.pools.items():
            if pool.slider_percent <= 0 or pool.current <= 0:
                continue
            used, pool_damage = consume_pool(pool, self.attack_cap_for(type_id))
            if used > 0:
                used_by_type[type_id] = used
            energy_used += used
            energy_damage += pool_damage
        damage += energy_damage

        damage = apply_additive(damage, state.modifiers)

        speed = state.stats.speed if state.stats is not None else 0.0
        speed_part = speed_damage(speed, state.speed_slider_percent)
        damage += speed_part

        health_depleted = False
        if attack.focused_type_id == self.config.primary_type_id and state.kaioken.enabled:
            health_depleted = apply_kaioken_strain(state.kaioken)
            if health_depleted:
                self._notify("warning", "Health depleted by Kaioken strain!")

        damage = max(0.0, damage)
        state.statistics.record(damage, energy_used)

        escalated = escalate_forms(state.active_forms())
        if escalated:
            # Totals pick up the escalated multipliers; spent energy stays spent.
            self._refresh_state(state, refill=False)

        logger.debug("Calculated damage=%s energy_used=%s", damage, energy_used)
        return CalculationResult(
            damage=damage,
            energy_used=energy_used,
            energy_damage=energy_damage,
            speed_damage=speed_part,
            health_depleted=health_depleted,
            escalated_form_ids=escalated,
            energy_used_by_type=used_by_type,
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def summary(self) -> StatsSummary:
        state = self.state
        stats = state.stats or CharacterStats()
        focused = state.pools.get(state.attack.focused_type_id)
        return StatsSummary(
            total_damage_dealt=state.statistics.total_damage_dealt,
            total_energy_spent=state.statistics.total_energy_spent,
            attack_count=state.statistics.attack_count,
            highest_damage=state.statistics.highest_damage,
            average_damage=state.statistics.average_damage,
            focused_type_id=state.attack.focused_type_id,
            focused_current_energy=focused.current if focused else 0.0,
            focused_total_energy=focused.total if focused else 0.0,
            form_multiplier=state.effects.form_multiplier,
            ac_bonus=state.effects.ac_bonus,
            true_resistance_bonus=state.effects.true_resistance_bonus,
            total_armor_class=stats.base_armor_class + state.effects.ac_bonus,
            total_true_resistance=stats.base_true_resistance + state.effects.true_resistance_bonus,
            speed=stats.speed,
            current_health=state.kaioken.current_health,
            max_health=state.kaioken.max_health,
            active_form_names=[f.name for f in state.active_forms()],
        )

    def equation(self) -> str:
        """The damage equation the next :meth:`calculate` would evaluate."""
        state = self.state
        attack = state.attack
        energy_terms: list[EnergyTerm] = []
        for type_id, pool in state.pools.items():
            if pool.slider_percent <= 0 or pool.current <= 0:
                continue
            used, _ = preview_consumption(pool, self.attack_cap_for(type_id))
            defn = self.registry.get(type_id)
            energy_terms.append(
                EnergyTerm(
                    type_name=defn.name if defn else type_id,
                    energy_used=used,
                    damage_per_point=pool.damage_per_point,
                )
            )
        speed = state.stats.speed if state.stats is not None else 0.0
        terms = EquationTerms(
            base_damage=attack.base_damage,
            base_multiplier=attack.base_multiplier,
            form_multiplier=state.effects.form_multiplier,
            compression_factor=compression_factor(
                attack.compression_points,
                self.config.compression_rate,
                self.config.compression_bonus_step,
                self.config.compression_bonus,
            ),
            multiplicative=[m.value for m in state.modifiers if m.kind is ModifierKind.MULTIPLICATIVE],
            energy=energy_terms,
            additive=[m.value for m in state.modifiers if m.kind is ModifierKind.ADDITIVE],
            speed_damage=speed_damage(speed, state.speed_slider_percent),
        )
        return render_equation(terms)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def gather(self) -> StateSnapshot | None:
        """Capture the inputs of the current state.

        Returns ``None`` (and logs an error) when no character stats have
        been supplied; the caller must abort the save.
        """
        state = self.state
        if state.stats is None:
            logger.error("Cannot gather state: character stats are missing")
            return None

        return StateSnapshot(
            version=self.config.snapshot_version,
            character_name=state.character_name,
            attack=state.attack.model_copy(),
            stats=state.stats.model_copy(),
            ryoko=state.ryoko.model_copy(),
            kaioken=state.kaioken.model_copy(),
            energy_pools={
                type_id: PoolSnapshot(
                    current_energy=pool.current,
                    max_multiplier=pool.pool_multiplier,
                    damage_per_point=pool.damage_per_point,
                    regen_percent=pool.regen_percent,
                    slider_percent=pool.slider_percent,
                )
                for type_id, pool in state.pools.items()
            },
            speed_slider_percent=state.speed_slider_percent,
            forms=[f.model_copy(deep=True) for f in state.forms],
            active_form_ids=list(state.active_form_ids),
            applied_ac_bonus=state.effects.ac_bonus,
            applied_true_resistance_bonus=state.effects.true_resistance_bonus,
            modifiers=[m.model_copy() for m in state.modifiers],
            active_attacks=dict(state.attacks),
            statistics=StatisticsSnapshot(**asdict(state.statistics)),
            active_view=state.active_view,
        )

    def apply(self, snapshot: StateSnapshot | dict[str, Any]) -> None:
        """Restore a snapshot.

        The new state is built aside and committed only once complete.
        Pool totals are recomputed, then each pool's current energy is set
        to ``min(saved, total)``.

        Raises
        ------
        pydantic.ValidationError
            If *snapshot* is a malformed dict.
        SnapshotError
            If the snapshot comes from a newer engine version.
        """
        if not isinstance(snapshot, StateSnapshot):
            snapshot = StateSnapshot.model_validate(snapshot)
        if snapshot.version > self.config.snapshot_version:
            raise SnapshotError(
                f"Snapshot version {snapshot.version} is newer than supported "
                f"version {self.config.snapshot_version}"
            )

        known_types = set(self.registry.type_ids())
        attacks: dict[str, AttackMode] = {}
        for type_id, mode in snapshot.active_attacks.items():
            if type_id in known_types:
                attacks[type_id] = mode
            else:
                logger.warning("Ignoring active attack for unknown energy type %r", type_id)

        focused = snapshot.attack.focused_type_id
        attack = snapshot.attack.model_copy()
        if focused not in known_types:
            logger.warning("Focused energy type %r is not registered; using %r",
                           focused, self.config.primary_type_id)
            attack.focused_type_id = self.config.primary_type_id

        forms = [f.model_copy(deep=True) for f in snapshot.forms]
        form_ids = {f.id for f in forms}

        new_state = EngineState(
            character_name=snapshot.character_name,
            stats=snapshot.stats.model_copy(),
            attack=attack,
            ryoko=snapshot.ryoko.model_copy(),
            kaioken=snapshot.kaioken.model_copy(),
            pools=self._fresh_pools(),
            speed_slider_percent=max(0.0, min(snapshot.speed_slider_percent, 100.0)),
            forms=forms,
            active_form_ids=[fid for fid in snapshot.active_form_ids if fid in form_ids],
            modifiers=[m.model_copy() for m in snapshot.modifiers],
            attacks=attacks,
            statistics=RunStatistics(**snapshot.statistics.model_dump()),
            active_view=snapshot.active_view,
        )
        clamp_health(new_state.kaioken)

        for type_id, pool in new_state.pools.items():
            saved = snapshot.energy_pools.get(type_id)
            if saved is None:
                continue
            pool.damage_per_point = saved.damage_per_point
            pool.regen_percent = saved.regen_percent
            pool.set_slider(saved.slider_percent)

        self._refresh_state(new_state)

        for type_id, pool in new_state.pools.items():
            saved = snapshot.energy_pools.get(type_id)
            if saved is not None:
                pool.set_current(saved.current_energy)

        self.state = new_state

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Restore the default state and rebuild the pools."""
        self.state = self._default_state()
        self._refresh_state(self.state)

    def reset_statistics(self) -> None:
        self.state.statistics.reset()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _default_state(self) -> EngineState:
        return EngineState(
            attack=AttackInputs(focused_type_id=self.config.primary_type_id),
            pools=self._fresh_pools(),
        )

    def _fresh_pools(self) -> dict[str, EnergyPool]:
        return {type_id: EnergyPool(type_id=type_id) for type_id in self.registry.type_ids()}

    def _require_type(self, type_id: str) -> None:
        if type_id not in self.registry:
            raise EnergyTypeError(f"Unknown energy type {type_id!r}")

    def _require_pool(self, type_id: str) -> EnergyPool:
        pool = self.state.pools.get(type_id)
        if pool is None:
            raise EnergyTypeError(f"No energy pool for type {type_id!r}")
        return pool

    def _require_form(self, form_id: str) -> FormDefinition:
        form = self.state.get_form(form_id)
        if form is None:
            raise FormError(f"Form {form_id!r} not found")
        return form

    def _require_modifier(self, modifier_id: str) -> Modifier:
        for modifier in self.state.modifiers:
            if modifier.id == modifier_id:
                return modifier
        raise InvalidOperation(f"Modifier {modifier_id!r} not found")
