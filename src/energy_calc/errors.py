"""Exception hierarchy for the calculation engine.

Only two kinds of failure exist:

- :class:`RecoverableError` -- the operation substitutes a safe default (or
  leaves state untouched) and the caller is told why.  Bad formulas, bad
  Ryoko equations, regenerating an empty pool, duplicate form names.
- :class:`SnapshotError` -- a snapshot could not be produced or restored.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every error raised by ``energy_calc``."""


class RecoverableError(EngineError):
    """The engine is still valid; the single operation was rejected."""


class FormulaError(RecoverableError):
    """An arithmetic formula failed to compile or evaluate."""


class InvalidOperation(RecoverableError):
    """An action was requested that cannot apply to the current state."""


class FormError(RecoverableError):
    """A form could not be created, edited, or found."""


class EnergyTypeError(RecoverableError):
    """A custom energy type definition is invalid or cannot be changed."""


class SnapshotError(EngineError):
    """A state snapshot could not be gathered or applied."""
