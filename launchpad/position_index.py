"""Transposition-aware map from normalized position to the variants passing through it."""

import logging
from collections.abc import Iterator

import chess

from errors import VariantReplayError
from fen_utils import board_key, normalize_fen
from models import Variant

logger = logging.getLogger(__name__)


class PositionIndex:
    """
    Built once from the full variant set and never mutated afterwards;
    a changed variant set needs a new index.
    Variants are referenced, not owned, and listed in insertion order.
    """

    def __init__(self, entries: dict[str, list[Variant]]):
        self._entries = entries

    @classmethod
    def build(cls, variants: list[Variant]) -> "PositionIndex":
        """Replay every variant from the start position. Any illegal move aborts the build."""
        entries: dict[str, list[Variant]] = {}
        for variant in variants:
            for key in replay_keys(variant):
                bucket = entries.setdefault(key, [])
                if variant not in bucket:
                    bucket.append(variant)
        logger.info("Indexed %d variants over %d positions", len(variants), len(entries))
        return cls(entries)

    def lookup(self, position: str) -> list[Variant]:
        return list(self._entries.get(normalize_fen(position), ()))

    def is_known_position(self, position: str) -> bool:
        return normalize_fen(position) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, position: str) -> bool:
        return self.is_known_position(position)

    def positions(self) -> Iterator[str]:
        return iter(self._entries)


def replay_keys(variant: Variant) -> list[str]:
    """Normalized keys of the start position and of the position after every move."""
    board = chess.Board()
    keys = [board_key(board)]
    for ply, move in enumerate(variant.moves, start=1):
        if not board.is_legal(move):
            logger.error("Variant %r: illegal move %s at ply %d", variant.pgn, move.uci(), ply)
            raise VariantReplayError(variant.pgn, f"illegal move {move.uci()} at ply {ply}")
        board.push(move)
        keys.append(board_key(board))
    return keys
