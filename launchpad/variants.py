"""Parse stored PGN text into Variant objects."""

import io
import logging

import chess
import chess.pgn

from errors import VariantReplayError
from fen_utils import board_key
from models import Annotation, Variant

logger = logging.getLogger(__name__)

# python-chess arrow colours -> single-letter brushes used by the board UI
BRUSHES = {"green": "G", "yellow": "Y", "red": "R", "blue": "B"}


def read_mainline(pgn: str) -> chess.pgn.Game:
    """Read a PGN, failing on anything python-chess could not replay."""
    game = chess.pgn.read_game(io.StringIO(pgn))
    if game is None:
        raise VariantReplayError(pgn, "no game found")
    if game.errors:
        raise VariantReplayError(pgn, str(game.errors[0]))
    if game.next() is None:
        raise VariantReplayError(pgn, "empty move sequence")
    return game


def node_annotations(node: chess.pgn.GameNode) -> list[Annotation]:
    annotations = []
    for arrow in node.arrows():
        brush = BRUSHES.get(arrow.color)
        if brush is None:
            continue
        orig = chess.square_name(arrow.tail)
        dest = chess.square_name(arrow.head) if arrow.head != arrow.tail else None
        annotations.append(Annotation(brush=brush, orig=orig, dest=dest))
    return annotations


def parse_variant(
    pgn: str,
    orientation: str,
    classifications: list[str] | None = None,
    **stats,
) -> Variant:
    """
    Build a Variant from PGN text. Comment markup ([%cal], [%csl]) becomes
    annotations keyed by the normalized position the comment follows.
    Raises VariantReplayError on corrupt data.
    """
    game = read_mainline(pgn)
    board = game.board()
    annotations: dict[str, list[Annotation]] = {}

    start_marks = node_annotations(game)
    if start_marks:
        annotations.setdefault(board_key(board), []).extend(start_marks)

    moves = []
    for node in game.mainline():
        board.push(node.move)
        moves.append(node.move)
        marks = node_annotations(node)
        if marks:
            annotations.setdefault(board_key(board), []).extend(marks)

    logger.debug("Parsed variant %r (%d plies, %d annotated positions)", pgn, len(moves), len(annotations))
    return Variant(
        pgn=pgn,
        orientation=orientation,
        moves=tuple(moves),
        annotations=annotations,
        classifications=list(classifications or []),
        **stats,
    )


def plain_pgn(variant: Variant) -> str:
    """Movetext without comments or headers, e.g. '1. e4 e5 2. Nf3'."""
    return chess.Board().variation_san(variant.moves)
