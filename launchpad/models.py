"""Data models for the Chess Launchpad training engine."""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Literal

import chess

Orientation = Literal["white", "black"]
Brush = Literal["G", "Y", "R", "B"]

EPOCH_ZERO_DATE = date(1970, 1, 1)


@dataclass(frozen=True)
class Annotation:
    """Visual hint drawn on the board: an arrow, or a highlighted square when dest is None."""

    brush: Brush
    orig: str
    dest: str | None = None


@dataclass(eq=False)
class Variant:
    """One stored opening line plus its persisted learning statistics.

    Identity-hashed: the position index and round state key on the object,
    so two records with identical PGN stay distinct variants.
    """

    pgn: str
    orientation: Orientation
    moves: tuple[chess.Move, ...] = ()
    annotations: dict[str, list[Annotation]] = field(default_factory=dict)
    classifications: list[str] = field(default_factory=list)
    number_of_times_played: int = 0
    last_succeeded_epoch: int = 0
    error_ema: float = 0.0
    success_ema: float = 0.0
    current_epoch: int = 0

    @property
    def length(self) -> int:
        return len(self.moves)

    @property
    def key(self) -> str:
        return f"{self.pgn}_{self.orientation}"


@dataclass(frozen=True)
class WeightSettings:
    """User-tunable exponents of the recency, frequency and error factors."""

    DEFAULT_RECENCY_POWER = 1.0
    DEFAULT_FREQUENCY_POWER = 2.0
    DEFAULT_ERROR_POWER = 2.0

    recency_power: float = DEFAULT_RECENCY_POWER
    frequency_power: float = DEFAULT_FREQUENCY_POWER
    error_power: float = DEFAULT_ERROR_POWER

    @classmethod
    def from_dict(cls, obj: dict | None) -> "WeightSettings":
        """Hydrate persisted settings; any invalid coefficient falls back to its default."""
        if not obj:
            return cls()
        return cls(
            recency_power=_sanitize_power(obj.get("recencyPower"), cls.DEFAULT_RECENCY_POWER),
            frequency_power=_sanitize_power(obj.get("frequencyPower"), cls.DEFAULT_FREQUENCY_POWER),
            error_power=_sanitize_power(obj.get("errorPower"), cls.DEFAULT_ERROR_POWER),
        )

    def to_dict(self) -> dict:
        return {
            "recencyPower": self.recency_power,
            "frequencyPower": self.frequency_power,
            "errorPower": self.error_power,
        }


def _sanitize_power(value, fallback: float) -> float:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(parsed) or parsed < 0:
        return fallback
    return parsed


@dataclass(frozen=True)
class WeightFactors:
    recency: float
    frequency: float
    error: float
    newness: float
    weight: float


@dataclass(frozen=True)
class Candidate:
    """A variant claimed by one legal move from the queried position."""

    variant: Variant
    move: chess.Move
    factors: WeightFactors
    probability: float


@dataclass(frozen=True)
class Selection:
    """Result of one weighted draw: the move to play and every applicable candidate."""

    move: chess.Move
    picked: Candidate
    candidates: list[Candidate]


class MoveCheck(str, Enum):
    """Outcome of checking an attempted move against the index."""

    INVALID_MOVE = "invalid_move"
    CONTINUE = "continue"
    END_OF_VARIANT = "end_of_variant"


@dataclass
class VariantRecord:
    """Persisted statistics of one variant."""

    pgn: str = ""
    orientation: Orientation = "white"
    classifications: list[str] = field(default_factory=list)
    error_ema: float = 0.0
    number_of_times_played: int = 0
    last_succeeded_epoch: int = 0
    success_ema: float = 0.0


@dataclass
class RepertoireSnapshot:
    """Persisted state of one learner's repertoire."""

    current_epoch: int = 0
    last_played_date: date = EPOCH_ZERO_DATE
    daily_play_count: int = 0
    variants: list[VariantRecord] = field(default_factory=list)
    weight_settings: WeightSettings = field(default_factory=WeightSettings)


@dataclass(frozen=True)
class BadgeSummary:
    """Repertoire progress numbers shown above the board."""

    oldest: int = 0
    oldest_count: int = 0
    eightieth: int = 0
    eightieth_count: int = 0
    errors_count: int = 0
    total: int = 0
    daily_count: int = 0
