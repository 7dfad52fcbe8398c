"""Tests for move_selector.py"""

import random
import sys
from pathlib import Path

import chess
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from errors import NoApplicableMove
from move_selector import claim_variants, draw_candidate, select_next_move, weigh_candidates
from position_index import PositionIndex
from variants import parse_variant

MORPHY = "1. e4 e5 2. Nf3 Nc6 3. Bb5 a6"
BERLIN = "1. e4 e5 2. Nf3 Nc6 3. Bb5 Nf6"
A6 = chess.Move.from_uci("a7a6")
NF6 = chess.Move.from_uci("g8f6")


def fen_after(*sans: str) -> str:
    board = chess.Board()
    for san in sans:
        board.push_san(san)
    return board.fen()


AFTER_BB5 = fen_after("e4", "e5", "Nf3", "Nc6", "Bb5")


class FixedDraw:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


def test_single_variant_replays_its_moves():
    variant = parse_variant(MORPHY, "white")
    index = PositionIndex.build([variant])
    board = chess.Board()
    for ply, expected in enumerate(variant.moves):
        selection = select_next_move(board.fen(), ply, index, random.Random(ply))
        assert selection.move == expected
        board.push(selection.move)


def test_leaf_position_has_no_next_move():
    index = PositionIndex.build([parse_variant(MORPHY, "white")])
    with pytest.raises(NoApplicableMove):
        select_next_move(fen_after("e4", "e5", "Nf3", "Nc6", "Bb5", "a6"), 6, index, random.Random(0))


def test_each_variant_claimed_by_its_move():
    morphy = parse_variant(MORPHY, "white")
    berlin = parse_variant(BERLIN, "white")
    index = PositionIndex.build([morphy, berlin])
    claims = claim_variants(chess.Board(AFTER_BB5), index)
    assert {(v.pgn, m) for v, m in claims} == {(MORPHY, A6), (BERLIN, NF6)}


def test_claim_order_follows_legal_move_order():
    morphy = parse_variant(MORPHY, "white")
    berlin = parse_variant(BERLIN, "white")
    index = PositionIndex.build([morphy, berlin])
    board = chess.Board(AFTER_BB5)
    legal = list(board.legal_moves)
    claims = claim_variants(board, index)
    assert [m for _, m in claims] == sorted([A6, NF6], key=legal.index)


def test_probabilities_sum_to_one():
    variants = [
        parse_variant(MORPHY, "white", error_ema=3.0),
        parse_variant(BERLIN, "white", success_ema=0.7),
        parse_variant("1. e4 e5 2. Nf3 Nc6 3. Bb5 d6", "white", number_of_times_played=12),
    ]
    index = PositionIndex.build(variants)
    selection = select_next_move(AFTER_BB5, 5, index, random.Random(1))
    assert len(selection.candidates) == 3
    assert sum(c.probability for c in selection.candidates) == pytest.approx(1.0, abs=1e-9)
    assert selection.picked in selection.candidates


def test_selection_does_not_mutate_variants():
    morphy = parse_variant(MORPHY, "white")
    berlin = parse_variant(BERLIN, "white")
    before = (vars(morphy).copy(), vars(berlin).copy())
    select_next_move(AFTER_BB5, 5, PositionIndex.build([morphy, berlin]), random.Random(3))
    assert (vars(morphy), vars(berlin)) == before


def test_equal_weights_split_evenly():
    index = PositionIndex.build([parse_variant(MORPHY, "white"), parse_variant(BERLIN, "white")])
    rng = random.Random(2024)
    picks = {A6: 0, NF6: 0}
    for _ in range(1000):
        picks[select_next_move(AFTER_BB5, 5, index, rng).move] += 1
    assert 400 <= picks[A6] <= 600
    assert 400 <= picks[NF6] <= 600


def test_skewed_weights_favour_the_struggling_variant():
    morphy = parse_variant(MORPHY, "white", error_ema=10, last_succeeded_epoch=9, current_epoch=10)
    berlin = parse_variant(BERLIN, "white", error_ema=0.5, last_succeeded_epoch=1, current_epoch=10)
    index = PositionIndex.build([morphy, berlin])
    rng = random.Random(7)
    picks = {A6: 0, NF6: 0}
    for _ in range(1000):
        picks[select_next_move(AFTER_BB5, 5, index, rng).move] += 1
    assert picks[A6] > 850
    assert picks[NF6] > 50


def test_same_seed_same_sequence():
    index = PositionIndex.build([parse_variant(MORPHY, "white"), parse_variant(BERLIN, "white")])

    def run(seed):
        rng = random.Random(seed)
        return [select_next_move(AFTER_BB5, 5, index, rng).move for _ in range(20)]

    assert run(5) == run(5)
    assert len(set(run(5))) == 2


def test_draw_walks_in_claim_order():
    index = PositionIndex.build([parse_variant(MORPHY, "white"), parse_variant(BERLIN, "white")])
    candidates = weigh_candidates(claim_variants(chess.Board(AFTER_BB5), index))
    assert draw_candidate(candidates, 0.0) is candidates[0]
    assert draw_candidate(candidates, 0.49) is candidates[0]
    assert draw_candidate(candidates, 0.51) is candidates[1]


def test_draw_falls_back_to_last_candidate():
    index = PositionIndex.build([parse_variant(MORPHY, "white"), parse_variant(BERLIN, "white")])
    candidates = weigh_candidates(claim_variants(chess.Board(AFTER_BB5), index))
    assert draw_candidate(candidates, 1.5) is candidates[-1]


def test_fixed_draw_is_deterministic():
    index = PositionIndex.build([parse_variant(MORPHY, "white"), parse_variant(BERLIN, "white")])
    low = select_next_move(AFTER_BB5, 5, index, FixedDraw(0.1))
    high = select_next_move(AFTER_BB5, 5, index, FixedDraw(0.9))
    assert low.move == low.candidates[0].move
    assert high.move == high.candidates[1].move


def test_shared_sicilian_position_offers_both_lines():
    x = parse_variant("1. e4 c5 2. Nf3 e6 3. d4 cxd4 4. Nxd4 a6", "white")
    y = parse_variant("1. e4 c5 2. Nf3 Nc6 3. d4 cxd4 4. Nxd4 e6", "white")
    index = PositionIndex.build([x, y])
    fen = fen_after("e4", "c5", "Nf3")
    seen = set()
    rng = random.Random(11)
    for _ in range(50):
        seen.add(chess.Board(fen).san(select_next_move(fen, 3, index, rng).move))
    assert seen == {"e6", "Nc6"}


def test_transposition_continues_either_line():
    x = parse_variant("1. e4 c5 2. Nf3 e6 3. d4 cxd4 4. Nxd4 Nc6 5. Nc3", "white")
    y = parse_variant("1. e4 c5 2. Nf3 Nc6 3. d4 cxd4 4. Nxd4 e6 5. Nb5", "white")
    index = PositionIndex.build([x, y])
    fen = fen_after("e4", "c5", "Nf3", "e6", "d4", "cxd4", "Nxd4", "Nc6")
    seen = set()
    rng = random.Random(13)
    for _ in range(50):
        selection = select_next_move(fen, 8, index, rng)
        seen.add(chess.Board(fen).san(selection.move))
    assert seen == {"Nc3", "Nb5"}
