"""Run one damage calculation from a saved snapshot.

Usage:
    uv run python scripts/run_calculation.py SNAPSHOT.json [--turns 3] [--custom-types data/custom_energy_types.json]
    uv run python scripts/run_calculation.py --user alice [--state-dir ~/.energy_calc]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from energy_calc.ir.snapshot import StateSnapshot
from energy_calc.persistence.store import JsonFileStateStore, save_state
from energy_calc.sim.content.registry import EnergyTypeRegistry
from energy_calc.sim.engine import CalculatorEngine


def main() -> None:
    parser = argparse.ArgumentParser(description="Run damage calculations from a snapshot")
    parser.add_argument("snapshot", nargs="?", type=str, help="Snapshot JSON file")
    parser.add_argument("--user", type=str, help="Load the snapshot saved for this user id instead")
    parser.add_argument("--state-dir", type=str, default=None, help="State store root directory")
    parser.add_argument("--custom-types", type=str, default=None, help="Custom energy types JSON")
    parser.add_argument("--turns", type=int, default=1, help="Number of calculations to run")
    parser.add_argument("--save", action="store_true", help="Save the resulting state back (with --user)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.snapshot and not args.user:
        parser.error("either SNAPSHOT or --user is required")

    registry = EnergyTypeRegistry()
    registry.load_custom_types(args.custom_types)
    engine = CalculatorEngine(registry=registry)

    store = JsonFileStateStore(args.state_dir)
    if args.user:
        snapshot = store.load(args.user)
        if snapshot is None:
            print(f"No saved state for {args.user!r}")
            sys.exit(1)
    else:
        snapshot = StateSnapshot.model_validate(json.loads(Path(args.snapshot).read_text()))

    engine.apply(snapshot)
    print(f"Character: {snapshot.character_name or '(unnamed)'}")

    for turn in range(1, args.turns + 1):
        equation = engine.equation()
        result = engine.calculate()
        print(f"Turn {turn}: {equation} = {result.damage:,.2f}")
        print(f"  energy used: {result.energy_used:,.2f}  extra damage: {result.extra_damage:,.2f}")
        if result.health_depleted:
            print("  Warning: health depleted by Kaioken strain!")
        for notice in engine.drain_notices():
            print(f"  [{notice.level}] {notice.message}")

    summary = engine.summary()
    print()
    print(f"Attacks: {summary.attack_count}  total damage: {summary.total_damage_dealt:,.2f}  "
          f"highest: {summary.highest_damage:,.2f}")
    print(f"AC: {summary.total_armor_class:g}  TR: {summary.total_true_resistance:g}")

    if args.save and args.user:
        if save_state(engine, store, args.user):
            print(f"Saved state for {args.user!r}")


if __name__ == "__main__":
    main()
