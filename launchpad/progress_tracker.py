"""Apply round outcomes to variant learning statistics."""

import logging
from collections import defaultdict

from errors import AmbiguousCompletion, UnknownPosition
from models import Variant
from position_index import PositionIndex

logger = logging.getLogger(__name__)

ERROR_EMA_ALPHA = 0.7
SUCCESS_EMA_ALPHA = 0.6667  # roughly an average over three epochs


class ProgressTracker:
    """
    Holds the round-scoped error state of a session and folds it into the
    persisted statistics when a variant is completed.
    """

    def __init__(self, variants: list[Variant], index: PositionIndex):
        self._variants = variants
        self._index = index
        self.has_errors = False
        self._errors: dict[Variant, float] = defaultdict(float)

    def number_of_errors(self, variant: Variant) -> float:
        return self._errors.get(variant, 0.0)

    def mark_error(self, position: str) -> None:
        """Share one mistake equally between every variant mapped at `position`."""
        self.has_errors = True
        variants = self._index.lookup(position)
        if not variants:
            logger.warning("Error marked at unindexed position '%s'", position)
            return
        share = 1.0 / len(variants)
        for variant in variants:
            self._errors[variant] += share

    def complete_variant(self, position: str) -> Variant:
        """
        Record the completion of the single variant ending at `position`.

        A clean round credits that variant; a round with mistakes penalises
        every variant that received a share of an error, completed or not.
        The round state is reset afterwards.
        """
        variants = self._index.lookup(position)
        if len(variants) > 1:
            raise AmbiguousCompletion(position, len(variants))
        if not variants:
            raise UnknownPosition(position)

        variant = variants[0]
        variant.number_of_times_played += 1

        if not self.has_errors:
            variant.last_succeeded_epoch = variant.current_epoch
            variant.error_ema *= ERROR_EMA_ALPHA
            variant.success_ema += 1 - SUCCESS_EMA_ALPHA
            logger.info("Completed %r cleanly (played %d times)", variant.pgn, variant.number_of_times_played)
        else:
            penalised = 0
            for other in self._variants:
                errors = self._errors.get(other, 0.0)
                if errors > 0:
                    other.error_ema = other.error_ema * ERROR_EMA_ALPHA + errors
                    other.success_ema = 0.0
                    penalised += 1
            logger.info("Completed %r with errors; penalised %d variants", variant.pgn, penalised)

        self.reset_round()
        return variant

    def reset_round(self) -> None:
        self.has_errors = False
        self._errors.clear()
