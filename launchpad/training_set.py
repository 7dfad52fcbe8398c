"""Choose which variants take part in a training round."""

import random

from fen_utils import is_likely_fen, normalize_fen, normalized_fens_from_pgn
from models import Orientation, Variant


def filter_variants(variants: list[Variant], query: str | None) -> list[Variant]:
    """
    Keep variants matching `query`: a FEN matches variants passing through
    that position, any other text matches classification names.
    """
    query = (query or "").strip()
    if not query:
        return list(variants)
    if is_likely_fen(query):
        key = normalize_fen(query)
        return [v for v in variants if key in normalized_fens_from_pgn(v.pgn)]
    needle = query.lower()
    return [v for v in variants if any(needle in c.lower() for c in v.classifications)]


def choose_orientation(
    variants: list[Variant],
    rng: random.Random | None = None,
) -> tuple[Orientation, list[Variant]]:
    """Pick a side in proportion to how many variants each side has."""
    if not variants:
        raise ValueError("No variants to train")
    rng = rng or random.Random()
    white = [v for v in variants if v.orientation == "white"]
    black = [v for v in variants if v.orientation == "black"]
    white_ratio = len(white) / len(variants)
    if rng.random() < white_ratio:
        return "white", white
    return "black", black


def for_orientation(variants: list[Variant], orientation: Orientation) -> list[Variant]:
    return [v for v in variants if v.orientation == orientation]
