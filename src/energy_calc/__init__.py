"""energy-calc -- derived-state calculation engine for character energy pools.

The package is split the same way the runtime is:

- :mod:`energy_calc.ir` holds the serialisable definitions (energy types,
  forms, modifiers, stats, snapshots).
- :mod:`energy_calc.sim` holds the rules that turn those definitions into
  pool totals and damage figures, plus the :class:`CalculatorEngine` that
  owns the mutable state.
- :mod:`energy_calc.persistence` stores snapshots keyed by user id.
"""
