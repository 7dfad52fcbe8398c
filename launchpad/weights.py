"""Per-variant priority weight from recency, frequency, error and newness factors."""

from models import Variant, WeightFactors, WeightSettings

NEWNESS_THRESHOLD = 7
NEWNESS_POWER = 2


def compute_factors(variant: Variant, settings: WeightSettings | None = None) -> WeightFactors:
    """
    recency   grows by one per epoch since the last clean completion
    frequency shrinks as recent successes accumulate
    error     grows with recent mistakes
    newness   boosts variants played fewer than NEWNESS_THRESHOLD times
    """
    settings = settings or WeightSettings()
    # A success stamped in a later epoch than the current one counts as age zero.
    age = max(variant.current_epoch - variant.last_succeeded_epoch, 0)
    recency = (1 + age) ** settings.recency_power
    frequency = 1.0 / (1 + variant.success_ema) ** settings.frequency_power
    error = (1.0 + variant.error_ema) ** settings.error_power
    newness = float((1 + max(NEWNESS_THRESHOLD - variant.number_of_times_played, 0)) ** NEWNESS_POWER)
    return WeightFactors(
        recency=recency,
        frequency=frequency,
        error=error,
        newness=newness,
        weight=recency * frequency * error * newness,
    )


def probabilities(weights: list[float]) -> list[float]:
    total = sum(weights)
    if total <= 0:
        return [1.0 / len(weights)] * len(weights)
    return [w / total for w in weights]
