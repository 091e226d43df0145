import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest

from anagram_index import AnagramIndex
from board import Board, Move, board_valid
from errors import ConfigurationError, IllegalPlacement, OutOfBounds
from search import (
    DriverState,
    GreedyDriver,
    best_move,
    evaluate_move,
    fits_pattern,
    generate_moves,
    is_legal,
    play_greedy,
    rack_combinations,
    validate_move,
)
from utils import LETTER_SCORES, Direction

N = 7


def plain_board(width=N, height=N):
    return Board.new(width, height, "-" * (width * height))


def hello_board():
    board, _ = plain_board().apply(Move(0, 0, Direction.RIGHT, "HELLO", "....."), LETTER_SCORES)
    return board


OWL = Move(0, 4, Direction.DOWN, "OWL", "O..")


def test_rack_combinations_counts_duplicate_tiles():
    combos = list(rack_combinations(["B", "A", "A"], 2))
    assert combos == [("A", "A"), ("A", "B")]
    assert list(rack_combinations("AAB", 3)) == [("A", "A", "B")]
    assert list(rack_combinations("AB", 3)) == []


def test_rack_combinations_restart():
    first = list(rack_combinations("ABC", 2))
    assert list(rack_combinations("ABC", 2)) == first


def test_fits_pattern():
    assert fits_pattern("OWL", "O..")
    assert not fits_pattern("LOW", "O..")
    assert not fits_pattern("OWLS", "O..")


def test_generate_moves_finds_owl():
    index = AnagramIndex.build(["HELLO", "OWL"])
    moves = generate_moves(hello_board(), ["W", "L"], index)
    assert moves == [OWL]


def test_owl_is_best_move_when_in_dictionary():
    index = AnagramIndex.build(["HELLO", "OWL"])
    best = best_move(hello_board(), ["W", "L"], index, LETTER_SCORES)
    assert best.move == OWL
    assert best.score == 1 + 4 + 1
    assert best.legal
    assert board_valid(best.board, index, connected=True)


def test_no_move_without_owl_in_dictionary():
    index = AnagramIndex.build(["HELLO"])
    assert best_move(hello_board(), ["W", "L"], index, LETTER_SCORES) is None


def test_is_legal_checks_touched_lines():
    index = AnagramIndex.build(["HELLO"])
    board, _ = hello_board().apply(Move(1, 0, Direction.RIGHT, "XY", ".."), LETTER_SCORES)
    assert not is_legal(board, [1], [0, 1], index)
    assert is_legal(board, [0], [], index)


def test_evaluate_move_discards_out_of_bounds():
    index = AnagramIndex.build(["HELLO"])
    move = Move(0, 3, Direction.RIGHT, "HELLO", ".....")
    assert evaluate_move(plain_board(), move, index, LETTER_SCORES) is None


def test_best_move_stays_on_narrow_board():
    board = plain_board(width=3, height=N)
    index = AnagramIndex.build(["HELLO"])
    best = best_move(board, list("HELLO"), index, LETTER_SCORES)
    assert best is not None
    assert best.move.direction == Direction.DOWN
    assert all(board.in_bounds(r, c) for _, r, c in best.move.squares())
    with pytest.raises(OutOfBounds):
        board.apply(Move(3, 0, Direction.RIGHT, "HELLO", "....."), LETTER_SCORES)


def test_tie_break_policies():
    board = plain_board()
    index = AnagramIndex.build(["AB", "BA"])
    values = {"A": 1, "B": 1}
    moves = generate_moves(board, ["A", "B"], index)
    assert len(moves) > 2
    first = best_move(board, ["A", "B"], index, values)
    last = best_move(board, ["A", "B"], index, values, tie_break="last")
    assert first.move == moves[0]
    assert last.move == moves[-1]
    with pytest.raises(ConfigurationError):
        best_move(board, ["A", "B"], index, values, tie_break="random")


def test_max_candidates_caps_evaluation():
    board = plain_board()
    index = AnagramIndex.build(["AB", "BA"])
    values = {"A": 1, "B": 1}
    moves = generate_moves(board, ["A", "B"], index)
    capped = best_move(board, ["A", "B"], index, values, max_candidates=1, tie_break="last")
    assert capped.move == moves[0]


def test_threaded_search_matches_sequential():
    index = AnagramIndex.build(["HELLO", "OWL", "LOW", "HE", "EH", "LO", "OH", "HO", "HOLE", "HELL"])
    rack = list("HOLWE")
    board = hello_board()
    seq = best_move(board, rack, index, LETTER_SCORES)
    par = best_move(board, rack, index, LETTER_SCORES, workers=4)
    assert seq is not None
    assert (par.move, par.score) == (seq.move, seq.score)


def test_driver_consumes_rack_and_terminates():
    index = AnagramIndex.build(["HELLO"])
    driver = GreedyDriver(plain_board(), list("HELLO"), index, LETTER_SCORES, consume_rack=True)
    assert driver.state == DriverState.READY
    ply = driver.step()
    assert ply.move.word == "HELLO"
    assert ply.score == 8
    assert driver.rack == []
    assert driver.state == DriverState.TERMINAL
    assert driver.step() is None
    assert driver.total_score == 8


def test_driver_reuses_rack_by_default():
    index = AnagramIndex.build(["HELLO", "HE", "LO", "OH"])
    driver = play_greedy(plain_board(), list("HELLO"), index, LETTER_SCORES, max_plies=3)
    assert 1 <= len(driver.history) <= 3
    assert driver.rack == list("HELLO")
    assert driver.total_score == sum(p.score for p in driver.history)
    assert all(p.score > 0 for p in driver.history)
    assert board_valid(driver.board, index)


def test_driver_with_no_moves():
    index = AnagramIndex.build(["HELLO"])
    driver = GreedyDriver(plain_board(), list("XYZ"), index, LETTER_SCORES)
    assert driver.run() == []
    assert driver.state == DriverState.TERMINAL
    assert driver.board.is_empty()
    empty = GreedyDriver(plain_board(), [], index, LETTER_SCORES)
    assert empty.state == DriverState.TERMINAL


def test_validate_move_accepts_owl():
    index = AnagramIndex.build(["HELLO", "OWL"])
    board = hello_board()
    new_board, score = validate_move(board, OWL, index, LETTER_SCORES, rack=["W", "L", "Q"])
    assert score == 6
    assert new_board.get(2, 4) == "L"
    assert board.get(2, 4) == "."


@pytest.mark.parametrize("move,rack", [
    (Move(0, 0, Direction.RIGHT, "HELLO", "HELLO"), None),
    (OWL, ["W"]),
    (Move(4, 0, Direction.RIGHT, "OWL", "..."), None),
    (Move(1, 0, Direction.RIGHT, "XY", ".."), None),
])
def test_validate_move_rejections(move, rack):
    index = AnagramIndex.build(["HELLO", "OWL"])
    with pytest.raises(IllegalPlacement):
        validate_move(hello_board(), move, index, LETTER_SCORES, rack=rack)


def test_validate_move_requires_connected_board():
    index = AnagramIndex.build(["HELLO", "OWL"])
    with pytest.raises(IllegalPlacement, match="connect"):
        validate_move(hello_board(), Move(4, 0, Direction.RIGHT, "OWL", "..."), index, LETTER_SCORES)
    new_board, _ = validate_move(plain_board(), Move(3, 1, Direction.RIGHT, "OWL", "..."), index, LETTER_SCORES)
    assert board_valid(new_board, index, connected=True)
