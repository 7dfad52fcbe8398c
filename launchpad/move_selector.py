"""Weighted-random choice of the next move among variants consistent with a position."""

import logging
import random
from typing import Protocol

import chess

from errors import NoApplicableMove
from fen_utils import board_key
from models import Candidate, Selection, Variant, WeightSettings
from position_index import PositionIndex
from weights import compute_factors, probabilities

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def random(self) -> float: ...


def claim_variants(board: chess.Board, index: PositionIndex) -> list[tuple[Variant, chess.Move]]:
    """
    Attribute each variant reachable in one move to exactly one legal move.

    Moves are tried in python-chess legal_moves order; a variant belongs to
    the first move whose resulting position it passes through. The returned
    list is in claim order, which is also the sampling order.
    """
    claims: list[tuple[Variant, chess.Move]] = []
    claimed: set[int] = set()
    for move in board.legal_moves:
        board.push(move)
        key = board_key(board)
        board.pop()
        for variant in index.lookup(key):
            if id(variant) in claimed:
                continue
            claimed.add(id(variant))
            claims.append((variant, move))
    return claims


def weigh_candidates(
    claims: list[tuple[Variant, chess.Move]],
    settings: WeightSettings | None = None,
) -> list[Candidate]:
    factors = [compute_factors(variant, settings) for variant, _ in claims]
    probs = probabilities([f.weight for f in factors])
    return [
        Candidate(variant=variant, move=move, factors=f, probability=p)
        for (variant, move), f, p in zip(claims, factors, probs)
    ]


def draw_candidate(candidates: list[Candidate], draw: float) -> Candidate:
    """Subtract probabilities from a uniform draw in [0, 1) until it is used up."""
    remaining = draw
    for candidate in candidates:
        remaining -= candidate.probability
        if remaining <= 0:
            return candidate
    logger.warning(
        "Probability walk ended with remainder %.3g over %d candidates; picking the last one",
        remaining,
        len(candidates),
    )
    return candidates[-1]


def select_next_move(
    position: str,
    ply_index: int,
    index: PositionIndex,
    rng: RandomSource | None = None,
    settings: WeightSettings | None = None,
) -> Selection:
    """
    Pick the reply to play from `position`. Pure apart from one rng draw:
    variants are not mutated, the outcome is returned as a Selection.
    """
    rng = rng or random.Random()
    board = chess.Board(position)
    claims = claim_variants(board, index)
    if not claims:
        raise NoApplicableMove(position, ply_index)

    candidates = weigh_candidates(claims, settings)
    picked = draw_candidate(candidates, rng.random())
    logger.debug(
        "Ply %d: picked %s (p=%.3f) among %d candidates",
        ply_index,
        picked.move.uci(),
        picked.probability,
        len(candidates),
    )
    return Selection(move=picked.move, picked=picked, candidates=candidates)
