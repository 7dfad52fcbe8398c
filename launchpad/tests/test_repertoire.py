"""Tests for repertoire.py"""

import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from errors import VariantReplayError
from models import EPOCH_ZERO_DATE, WeightSettings
from repertoire import snapshot_from_dict, snapshot_to_dict, to_snapshot, to_variants


def test_empty_payload_gets_defaults():
    snapshot = snapshot_from_dict({})
    assert snapshot.variants == []
    assert snapshot.current_epoch == 0
    assert snapshot.daily_play_count == 0
    assert snapshot.last_played_date == EPOCH_ZERO_DATE
    assert snapshot.weight_settings == WeightSettings()
    assert snapshot_from_dict(None).variants == []


def test_missing_and_null_statistics_default_to_zero():
    snapshot = snapshot_from_dict(
        {
            "currentEpoch": None,
            "data": [
                {"pgn": "1. e4 e5", "orientation": "white"},
                {"pgn": "1. d4 d5", "orientation": "black", "errorEMA": None, "successEMA": "x", "numberOfTimesPlayed": -3},
            ],
        }
    )
    assert snapshot.current_epoch == 0
    for record in snapshot.variants:
        assert record.error_ema == 0
        assert record.success_ema == 0
        assert record.number_of_times_played == 0
        assert record.last_succeeded_epoch == 0
        assert record.classifications == []
    assert snapshot.variants[1].orientation == "black"


def test_alternative_field_names_and_datetime_dates():
    snapshot = snapshot_from_dict(
        {
            "lastPlayedDate": "2025-01-22T00:00:00.000Z",
            "variants": [{"moveSequencePgn": "1. e4 c5", "orientation": "white"}],
        }
    )
    assert snapshot.last_played_date == date(2025, 1, 22)
    assert snapshot.variants[0].pgn == "1. e4 c5"


def test_weight_settings_are_read():
    snapshot = snapshot_from_dict({"weightSettings": {"recencyPower": 1.5, "frequencyPower": 1, "errorPower": 3}})
    assert snapshot.weight_settings == WeightSettings(recency_power=1.5, frequency_power=1, error_power=3)


def test_dict_round_trip_keeps_wire_names():
    payload = {
        "currentEpoch": 12,
        "lastPlayedDate": "2025-01-23",
        "dailyPlayCount": 3,
        "data": [
            {
                "pgn": "1. e4 e5",
                "orientation": "white",
                "classifications": ["King's Pawn Game"],
                "errorEMA": 1.25,
                "numberOfTimesPlayed": 8,
                "lastSucceededEpoch": 11,
                "successEMA": 0.5,
            }
        ],
        "weightSettings": {"recencyPower": 1.0, "frequencyPower": 2.0, "errorPower": 2.0},
    }
    assert snapshot_to_dict(snapshot_from_dict(payload)) == payload


def test_to_variants_sorts_by_pgn_and_sets_epoch():
    snapshot = snapshot_from_dict(
        {
            "currentEpoch": 7,
            "data": [
                {"pgn": "1. e4 e5 2. Nf3", "orientation": "white", "errorEMA": 2},
                {"pgn": "1. d4 d5", "orientation": "black"},
            ],
        }
    )
    variants = to_variants(snapshot)
    assert [v.pgn for v in variants] == ["1. d4 d5", "1. e4 e5 2. Nf3"]
    assert all(v.current_epoch == 7 for v in variants)
    assert variants[1].error_ema == 2


def test_to_variants_fails_on_corrupt_record():
    snapshot = snapshot_from_dict({"data": [{"pgn": "1. e4 e5"}, {"pgn": "1. e4 e4"}]})
    with pytest.raises(VariantReplayError):
        to_variants(snapshot)


def test_to_snapshot_copies_statistics():
    snapshot = snapshot_from_dict({"currentEpoch": 4, "data": [{"pgn": "1. e4 e5", "orientation": "black"}]})
    variants = to_variants(snapshot)
    variants[0].number_of_times_played = 2
    variants[0].success_ema = 0.3333

    saved = to_snapshot(variants, 4, 6, WeightSettings(error_power=3), today=date(2025, 2, 1))

    assert saved.current_epoch == 4
    assert saved.daily_play_count == 6
    assert saved.last_played_date == date(2025, 2, 1)
    assert saved.weight_settings.error_power == 3
    assert saved.variants[0].number_of_times_played == 2
    assert saved.variants[0].success_ema == 0.3333
    assert saved.variants[0].orientation == "black"


def test_to_snapshot_of_empty_repertoire():
    saved = to_snapshot([], 9, 0)
    assert saved.current_epoch == 9
    assert saved.variants == []
