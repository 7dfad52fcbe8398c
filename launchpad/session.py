"""
Training session: the entry points the board UI calls during a round.

A session is bound to one variant set. Filtering, switching orientation
or reloading data means building a new session.
"""

import logging
import random
from dataclasses import dataclass

import chess

from fen_utils import normalize_fen
from models import Annotation, Candidate, MoveCheck, Selection, Variant, WeightFactors, WeightSettings
from move_selector import RandomSource, select_next_move
from position_index import PositionIndex
from progress_tracker import ProgressTracker
from weights import compute_factors, probabilities

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariantReport:
    """Read-only row of the debug table."""

    variant: Variant
    factors: WeightFactors
    probability: float
    number_of_errors: float
    picked: bool


class TrainingSession:
    def __init__(
        self,
        variants: list[Variant],
        rng: RandomSource | None = None,
        weight_settings: WeightSettings | None = None,
    ):
        self._variants = list(variants)
        self._rng = rng or random.Random()
        self.weight_settings = weight_settings or WeightSettings()
        self.index = PositionIndex.build(self._variants)
        self._tracker = ProgressTracker(self._variants, self.index)
        self._last_selection: Selection | None = None
        logger.info("Session built over %d variants", len(self._variants))

    @property
    def variants(self) -> list[Variant]:
        return list(self._variants)

    def is_valid_variant(self, position: str) -> bool:
        return self.index.is_known_position(position)

    def is_end_of_variant(self, position: str, ply_index: int) -> bool:
        return any(v.length == ply_index for v in self.index.lookup(position))

    def check_move(self, position: str, move: chess.Move, ply_index: int) -> MoveCheck:
        """
        Classify a move played from `position`, where `ply_index` plies have
        already been played. Statistics are left untouched; an INVALID_MOVE
        is reported so the caller can revert it and call mark_error itself.
        """
        board = chess.Board(position)
        if not board.is_legal(move):
            return MoveCheck.INVALID_MOVE
        board.push(move)
        resulting = board.fen()
        if not self.is_valid_variant(resulting):
            return MoveCheck.INVALID_MOVE
        return MoveCheck.END_OF_VARIANT if self.is_end_of_variant(resulting, ply_index + 1) else MoveCheck.CONTINUE

    def mark_error(self, position: str) -> None:
        self._tracker.mark_error(position)

    def reset_round(self) -> None:
        """Forget the errors of the current round without touching statistics."""
        self._tracker.reset_round()

    def had_errors(self) -> bool:
        return self._tracker.has_errors

    def number_of_errors(self, variant: Variant) -> float:
        return self._tracker.number_of_errors(variant)

    def complete_variant(self, position: str) -> Variant:
        self._last_selection = None
        return self._tracker.complete_variant(position)

    def select_next_move(self, position: str, ply_index: int) -> Selection:
        selection = select_next_move(position, ply_index, self.index, self._rng, self.weight_settings)
        self._last_selection = selection
        return selection

    def get_annotations(self, position: str) -> list[Annotation]:
        key = normalize_fen(position)
        annotations: list[Annotation] = []
        for variant in self.index.lookup(key):
            annotations.extend(variant.annotations.get(key, ()))
        return annotations

    def list_variants(self) -> list[VariantReport]:
        """Every variant with freshly computed factors; probabilities are over the whole set."""
        factors = [compute_factors(v, self.weight_settings) for v in self._variants]
        probs = probabilities([f.weight for f in factors]) if factors else []
        picked = self._last_selection.picked.variant if self._last_selection else None
        return [
            VariantReport(
                variant=v,
                factors=f,
                probability=p,
                number_of_errors=self._tracker.number_of_errors(v),
                picked=v is picked,
            )
            for v, f, p in zip(self._variants, factors, probs)
        ]

    def last_candidates(self) -> list[Candidate]:
        return list(self._last_selection.candidates) if self._last_selection else []
