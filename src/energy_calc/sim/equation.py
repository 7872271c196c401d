"""Plain-text breakdown of the damage equation.

Renders the pipeline terms in evaluation order, e.g.::

    100 * 2 * 1.5 * 3 + (40 * 2) + 50 + 12

Neutral terms (a multiplier of 1, an additive 0, an empty slider) are left
out.  Numbers are rendered with at most two decimals.
"""

from __future__ import annotations

from dataclasses import dataclass, field


def format_number(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


@dataclass
class EnergyTerm:
    """One pool's contribution: energy used times damage per point."""

    type_name: str
    energy_used: float
    damage_per_point: float


@dataclass
class EquationTerms:
    """Every value the damage equation is built from."""

    base_damage: float
    base_multiplier: float = 1.0
    form_multiplier: float = 1.0
    compression_factor: float = 1.0
    multiplicative: list[float] = field(default_factory=list)
    energy: list[EnergyTerm] = field(default_factory=list)
    additive: list[float] = field(default_factory=list)
    speed_damage: float = 0.0


class _Expr:
    """Accumulates an expression, adding parentheses only where precedence needs them."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.top_op: str | None = None

    def extend(self, op: str, term: str) -> None:
        if not self.text:
            self.text = term
            return
        if op == "*" and self.top_op == "+":
            self.text = f"({self.text})"
        self.text = f"{self.text} {op} {term}"
        self.top_op = op


def _join(op: str, terms: list[str]) -> str:
    if len(terms) == 1:
        return terms[0]
    return "(" + f" {op} ".join(terms) + ")"


def render_equation(terms: EquationTerms) -> str:
    """Return the equation as a single line of text ("0" when empty)."""
    base_parts = [format_number(terms.base_damage)]
    if terms.base_multiplier != 1:
        base_parts.append(format_number(terms.base_multiplier))
    if terms.form_multiplier != 1:
        base_parts.append(format_number(terms.form_multiplier))

    expr = _Expr(base_parts[0])
    for part in base_parts[1:]:
        expr.extend("*", part)

    if terms.compression_factor != 1:
        expr.extend("*", format_number(terms.compression_factor))

    multiplicative = [format_number(v) for v in terms.multiplicative if v != 1]
    if multiplicative:
        expr.extend("*", _join("*", multiplicative))

    energy_terms: list[str] = []
    for term in terms.energy:
        if term.energy_used == 0:
            continue
        text = format_number(term.energy_used)
        if term.damage_per_point != 1:
            text = f"({text} * {format_number(term.damage_per_point)})"
        energy_terms.append(text)
    if energy_terms:
        expr.extend("+", _join("+", energy_terms))

    additive = [format_number(v) for v in terms.additive if v != 0]
    if additive:
        expr.extend("+", _join("+", additive))

    if terms.speed_damage != 0:
        expr.extend("+", format_number(terms.speed_damage))

    return expr.text or "0"
