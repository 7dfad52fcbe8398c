#!/usr/bin/env python3
"""
Repertoire inspection — progress badges and per-variant weight factors

Loads a repertoire snapshot, applies today's epoch in memory (nothing is
written back) and prints what the trainer would see.

Usage:
  python inspect_repertoire.py --snapshot repertoire.json
  python inspect_repertoire.py --user alice --filter "Sicilian"
  python inspect_repertoire.py --snapshot repertoire.json --today 2025-01-23
"""

import argparse
import json
import sys
from datetime import date
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))
from badges import summarize
from epoch_manager import advance_epoch
from errors import VariantReplayError
from models import RepertoireSnapshot
from repertoire import snapshot_from_dict, to_variants
from session import TrainingSession
from training_set import filter_variants, for_orientation
from variants import plain_pgn


def load(args) -> RepertoireSnapshot | None:
    if args.snapshot:
        with open(args.snapshot, encoding="utf-8") as f:
            return snapshot_from_dict(json.load(f))
    from db import get_connection, load_snapshot

    with get_connection() as conn:
        loaded = load_snapshot(conn, args.user)
    return loaded[0] if loaded else None


def print_summary(snapshot: RepertoireSnapshot) -> None:
    s = summarize(snapshot)
    print(f"Epoch {snapshot.current_epoch} | last played {snapshot.last_played_date} | today {s.daily_count} rounds")
    print(
        f"Variants {s.total} | oldest {s.oldest} ({s.oldest_count}) | "
        f"80th pct {s.eightieth} (-1 after {s.eightieth_count}) | errors {s.errors_count}"
    )


def print_factors(session: TrainingSession, orientation: str) -> None:
    print(f"\n{orientation} ({len(session.variants)} variants)")
    print(f"  {'#':>3} {'new':>6} {'rec':>6} {'freq':>6} {'err':>7} {'weight':>9} {'p':>7}  pgn")
    rows = sorted(session.list_variants(), key=lambda r: -r.factors.weight)
    for r in rows:
        f = r.factors
        print(
            f"  {r.variant.number_of_times_played:3d} {f.newness:6.1f} {f.recency:6.1f} {f.frequency:6.2f} "
            f"{f.error:7.2f} {f.weight:9.2f} {r.probability:6.1%}  {plain_pgn(r.variant)[:60]}"
        )


def main():
    parser = argparse.ArgumentParser()
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--snapshot", help="Repertoire JSON file")
    source.add_argument("--user", help="Learner name in the database")
    parser.add_argument("--today", type=date.fromisoformat, default=None, help="Override today's date")
    parser.add_argument("--filter", default="", help="Classification text or FEN")
    args = parser.parse_args()

    snapshot = load(args)
    if snapshot is None:
        print(f"User '{args.user}' not found", file=sys.stderr)
        sys.exit(1)

    if advance_epoch(snapshot, args.today):
        print("(new epoch started; not saved)")
    print_summary(snapshot)

    try:
        variants = filter_variants(to_variants(snapshot), args.filter)
        for orientation in ("white", "black"):
            group = for_orientation(variants, orientation)
            if group:
                print_factors(TrainingSession(group, weight_settings=snapshot.weight_settings), orientation)
    except VariantReplayError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
