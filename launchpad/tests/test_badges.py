"""Tests for badges.py"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from badges import calculate_eightieth_count, summarize
from models import BadgeSummary, RepertoireSnapshot, VariantRecord


def make_snapshot(epoch: int, last_succeeded: list[int], error_emas=None, daily: int = 0) -> RepertoireSnapshot:
    error_emas = error_emas or [0.0] * len(last_succeeded)
    return RepertoireSnapshot(
        current_epoch=epoch,
        daily_play_count=daily,
        variants=[
            VariantRecord(pgn=f"v{i}", last_succeeded_epoch=e, error_ema=err)
            for i, (e, err) in enumerate(zip(last_succeeded, error_emas))
        ],
    )


def test_empty_repertoire():
    assert summarize(RepertoireSnapshot()) == BadgeSummary()


def test_summary_numbers():
    # ages: 0, 1, 2, 5, 5
    snapshot = make_snapshot(10, [10, 9, 8, 5, 5], error_emas=[0, 2.5, 1.0, 1.1, 0], daily=3)
    s = summarize(snapshot)
    assert s.oldest == 5
    assert s.oldest_count == 2
    assert s.eightieth == 5  # index floor(0.8 * 4) = 3
    assert s.errors_count == 2
    assert s.total == 5
    assert s.daily_count == 3


def test_eightieth_count_already_low():
    assert calculate_eightieth_count([0, 1, 1], 1) == 0


def test_eightieth_count_replays_oldest_first():
    # sorted ages [0, 1, 2, 5, 5]; 80th pct 5 -> replay one: [0, 0, 1, 2, 5] -> index 3 is 2
    assert calculate_eightieth_count([5, 2, 0, 5, 1], 5) == 1


def test_eightieth_count_uniform_ages():
    # every variant is 4 epochs old: four replays before index 3 drops
    assert calculate_eightieth_count([4, 4, 4, 4, 4], 4) == 4
