"""Form aggregation -- combine the active forms into scalar effects.

Stacking rules:
    - Form multipliers stack by SUM; an empty (or zero) sum means 1.
    - Pool multipliers stack by PRODUCT, per energy type.  A form targeting
      ``"None"`` multiplies every type; an unregistered target is ignored.
    - AC / true-resistance bonuses sum over forms that affect resistances.

After each finished calculation every form that was active escalates its
own multipliers by its buffs.  Escalation rewrites the form definition, so
it compounds turn over turn.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from energy_calc.sim.core.state import FormEffects

if TYPE_CHECKING:
    from energy_calc.ir.forms import FormDefinition

logger = logging.getLogger(__name__)


def apply_active_forms(
    forms: Iterable[FormDefinition],
    active_ids: Iterable[str],
    type_ids: Iterable[str],
) -> FormEffects:
    """Aggregate the effects of the active subset of *forms*.

    Parameters
    ----------
    forms:
        Every defined form.
    active_ids:
        Ids of the equipped forms.  Unknown ids are ignored.
    type_ids:
        Registered energy type ids; each gets a pool multiplier entry.

    Returns
    -------
    FormEffects
        Combined form multiplier, per-type pool multipliers, and
        resistance bonuses.
    """
    by_id = {f.id: f for f in forms}
    pool_multipliers = {type_id: 1.0 for type_id in type_ids}

    multiplier_sum = 0.0
    ac_bonus = 0.0
    tr_bonus = 0.0

    for form_id in active_ids:
        form = by_id.get(form_id)
        if form is None:
            continue

        multiplier_sum += form.form_multiplier
        if form.affects_resistances:
            ac_bonus += form.ac_bonus
            tr_bonus += form.true_resistance_bonus

        if form.targets_all_types:
            for type_id in pool_multipliers:
                pool_multipliers[type_id] *= form.pool_max_multiplier
        elif form.energy_type in pool_multipliers:
            pool_multipliers[form.energy_type] *= form.pool_max_multiplier
        else:
            logger.debug(
                "Form %r targets unregistered energy type %r; pool multiplier ignored",
                form.name,
                form.energy_type,
            )

    return FormEffects(
        form_multiplier=multiplier_sum if multiplier_sum != 0 else 1.0,
        pool_multipliers=pool_multipliers,
        ac_bonus=ac_bonus,
        true_resistance_bonus=tr_bonus,
    )


def escalate_form(form: FormDefinition) -> bool:
    """Apply one step of *form*'s buffs in place.

    Returns True if either multiplier changed.
    """
    new_form_mult = form.form_buff.apply(form.form_multiplier)
    new_pool_mult = form.pool_buff.apply(form.pool_max_multiplier)
    changed = (
        new_form_mult != form.form_multiplier
        or new_pool_mult != form.pool_max_multiplier
    )
    form.form_multiplier = new_form_mult
    form.pool_max_multiplier = new_pool_mult
    return changed


def escalate_forms(forms: Iterable[FormDefinition]) -> list[str]:
    """Escalate every form in *forms*; return ids of those that changed."""
    changed: list[str] = []
    for form in forms:
        if escalate_form(form):
            changed.append(form.id)
            logger.debug(
                "Escalated form %r: multiplier=%s pool=%s",
                form.name,
                form.form_multiplier,
                form.pool_max_multiplier,
            )
    return changed
