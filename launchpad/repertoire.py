"""Conversion between the persisted repertoire snapshot and live variants."""

import math
from datetime import date, datetime

from epoch_manager import current_date_only
from models import EPOCH_ZERO_DATE, RepertoireSnapshot, Variant, VariantRecord, WeightSettings
from variants import parse_variant


def _count(value) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(parsed, 0)


def _amount(value) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(parsed) or parsed < 0:
        return 0.0
    return parsed


def _date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return EPOCH_ZERO_DATE
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return EPOCH_ZERO_DATE


def record_from_dict(obj: dict) -> VariantRecord:
    orientation = obj.get("orientation")
    return VariantRecord(
        pgn=obj.get("pgn") or obj.get("moveSequencePgn") or "",
        orientation=orientation if orientation in ("white", "black") else "white",
        classifications=[str(c) for c in (obj.get("classifications") or [])],
        error_ema=_amount(obj.get("errorEMA")),
        number_of_times_played=_count(obj.get("numberOfTimesPlayed")),
        last_succeeded_epoch=_count(obj.get("lastSucceededEpoch")),
        success_ema=_amount(obj.get("successEMA")),
    )


def snapshot_from_dict(obj: dict | None) -> RepertoireSnapshot:
    """Hydrate stored JSON; absent or null fields take their zero value, never None."""
    obj = obj or {}
    records = obj.get("data")
    if records is None:
        records = obj.get("variants") or []
    return RepertoireSnapshot(
        current_epoch=_count(obj.get("currentEpoch")),
        last_played_date=_date(obj.get("lastPlayedDate")),
        daily_play_count=_count(obj.get("dailyPlayCount")),
        variants=[record_from_dict(r) for r in records],
        weight_settings=WeightSettings.from_dict(obj.get("weightSettings")),
    )


def snapshot_to_dict(snapshot: RepertoireSnapshot) -> dict:
    return {
        "currentEpoch": snapshot.current_epoch,
        "lastPlayedDate": snapshot.last_played_date.isoformat(),
        "dailyPlayCount": snapshot.daily_play_count,
        "data": [
            {
                "pgn": r.pgn,
                "orientation": r.orientation,
                "classifications": list(r.classifications),
                "errorEMA": r.error_ema,
                "numberOfTimesPlayed": r.number_of_times_played,
                "lastSucceededEpoch": r.last_succeeded_epoch,
                "successEMA": r.success_ema,
            }
            for r in snapshot.variants
        ],
        "weightSettings": snapshot.weight_settings.to_dict(),
    }


def to_variants(snapshot: RepertoireSnapshot) -> list[Variant]:
    """Live variants sorted by PGN text. Raises VariantReplayError on the first corrupt record."""
    variants = [
        parse_variant(
            r.pgn,
            r.orientation,
            r.classifications,
            error_ema=r.error_ema,
            number_of_times_played=r.number_of_times_played,
            last_succeeded_epoch=r.last_succeeded_epoch,
            success_ema=r.success_ema,
            current_epoch=snapshot.current_epoch,
        )
        for r in snapshot.variants
    ]
    variants.sort(key=lambda v: v.pgn)
    return variants


def to_snapshot(
    variants: list[Variant],
    current_epoch: int,
    daily_play_count: int,
    weight_settings: WeightSettings | None = None,
    today: date | None = None,
) -> RepertoireSnapshot:
    records = [
        VariantRecord(
            pgn=v.pgn,
            orientation=v.orientation,
            classifications=list(v.classifications),
            error_ema=v.error_ema,
            number_of_times_played=v.number_of_times_played,
            last_succeeded_epoch=v.last_succeeded_epoch,
            success_ema=v.success_ema,
        )
        for v in variants
    ]
    return RepertoireSnapshot(
        current_epoch=max([current_epoch] + [v.current_epoch for v in variants]),
        last_played_date=today or current_date_only(),
        daily_play_count=daily_play_count,
        variants=records,
        weight_settings=weight_settings or WeightSettings(),
    )
