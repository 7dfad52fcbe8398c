"""FEN helpers. The normalized FEN is the lookup key used everywhere in the engine."""

import io

import chess
import chess.pgn


def normalize_fen(fen: str) -> str:
    """Reset the halfmove clock and fullmove number so transpositions share one key.

    1. e4 c5 2. Nf3 e6 3. d4 cxd4 4. Nxd4 Nc6 and
    1. e4 c5 2. Nf3 Nc6 3. d4 cxd4 4. Nxd4 e6 reach the same position with
    different halfmove clocks; both map to
    r1bqkbnr/pp1p1ppp/2n1p3/8/3NP3/8/PPP2PPP/RNBQKB1R w KQkq - 0 1.
    """
    parts = fen.split()
    if len(parts) < 4:
        return " ".join(parts)
    return " ".join(parts[:4] + ["0", "1"])


def board_key(board: chess.Board) -> str:
    return normalize_fen(board.fen())


def is_likely_fen(value: str) -> bool:
    """Six space-delimited fields and eight ranks; cheap enough to tell FENs from opening names."""
    parts = value.strip().split()
    if len(parts) != 6:
        return False
    return len(parts[0].split("/")) == 8


def normalized_fens_from_pgn(pgn: str) -> list[str]:
    """Unique normalized positions along a PGN mainline, start position first. Empty on parse errors."""
    game = chess.pgn.read_game(io.StringIO(pgn))
    if game is None or game.errors:
        return []
    board = game.board()
    fens = [board_key(board)]
    for move in game.mainline_moves():
        board.push(move)
        fens.append(board_key(board))
    return list(dict.fromkeys(fens))
