import os, sys
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

import pytest

from anagram_index import AnagramIndex
from board import Move
from errors import ConfigurationError, IllegalPlacement
from protocol import (
    decode_board,
    encode_board,
    handle_initialize_request,
    handle_move_request,
    move_between,
    validate_submitted_board,
)
from utils import LETTER_SCORES, Direction

N = 7


def grid_with(letters=None, squares=None):
    letters = letters or {}
    squares = squares or {}
    return [
        [{"square": squares.get((r, c), " "), "letter": letters.get((r, c), "")} for c in range(N)]
        for r in range(N)
    ]


def hello_grid(**extra):
    letters = {(0, i): ch for i, ch in enumerate("hello")}
    letters.update(extra.get("letters", {}))
    return grid_with(letters)


def test_decode_and_encode_board():
    grid = grid_with({(0, 0): "a"}, {(0, 0): "tw", (1, 1): "dl", (3, 3): "st"})
    board = decode_board(grid)
    assert board.get(0, 0) == "A"
    assert board.multiplier(0, 0) == "W"
    assert board.multiplier(1, 1) == "l"
    assert board.multiplier(3, 3) == "*"
    assert encode_board(board) == grid


@pytest.mark.parametrize("grid", [
    [],
    [[{"square": " ", "letter": ""}], []],
    [[{"square": "xx", "letter": ""}]],
])
def test_decode_board_errors(grid):
    with pytest.raises(ConfigurationError):
        decode_board(grid)


def test_handle_initialize_request():
    payload = {
        "board": grid_with(),
        "words": ["hello", " owl ", ""],
        "letters": {"a": {"value": 1, "n": 9, "left": 9}, "q": {"value": 10, "n": 1, "left": 1}},
    }
    board, words, values = handle_initialize_request(payload)
    assert board.is_empty()
    assert words == ["HELLO", "OWL"]
    assert values == {"A": 1, "Q": 10}


def move_payload(letters, tiles_left=10, player_index=0):
    return {
        "board": hello_grid(),
        "tilesLeft": tiles_left,
        "players": [{"tilesInHand": len(letters), "points": 0}, {"tilesInHand": 7, "points": 3}],
        "letters": letters,
        "playerIndex": player_index,
    }


def test_handle_move_request_plays_owl():
    index = AnagramIndex.build(["HELLO", "OWL"])
    response = handle_move_request(move_payload(["w", "l"]), index, LETTER_SCORES)
    assert response["bank"] == []
    assert response["board"][1][4]["letter"] == "w"
    assert response["board"][2][4]["letter"] == "l"


def test_handle_move_request_banks_when_stuck():
    index = AnagramIndex.build(["HELLO"])
    response = handle_move_request(move_payload(["w", "l"]), index, LETTER_SCORES)
    assert response["bank"] == [0, 1]
    assert response["board"] == hello_grid()
    response = handle_move_request(move_payload(["w", "l"], tiles_left=0), index, LETTER_SCORES)
    assert response["bank"] == []


def test_handle_move_request_bad_player_index():
    index = AnagramIndex.build(["HELLO"])
    with pytest.raises(ConfigurationError):
        handle_move_request(move_payload(["w"], player_index=2), index, LETTER_SCORES)


def test_move_between():
    before = decode_board(hello_grid())
    after = decode_board(hello_grid(letters={(1, 4): "w", (2, 4): "l"}))
    assert move_between(before, after) == Move(0, 4, Direction.DOWN, "OWL", "O..")


def test_move_between_single_tile_extends_row():
    before = decode_board(hello_grid())
    after = decode_board(hello_grid(letters={(0, 5): "s"}))
    assert move_between(before, after) == Move(0, 0, Direction.RIGHT, "HELLOS", "HELLO.")


def test_move_between_rejects_gaps_and_overwrites():
    before = decode_board(hello_grid())
    with pytest.raises(IllegalPlacement):
        move_between(before, decode_board(hello_grid(letters={(1, 4): "w", (3, 4): "l"})))
    with pytest.raises(IllegalPlacement):
        move_between(before, decode_board(hello_grid(letters={(0, 0): "j"})))
    with pytest.raises(IllegalPlacement):
        move_between(before, before)


def test_validate_submitted_board():
    index = AnagramIndex.build(["HELLO", "OWL"])
    ok = validate_submitted_board(
        hello_grid(), hello_grid(letters={(1, 4): "w", (2, 4): "l"}), ["w", "l"], index, LETTER_SCORES
    )
    assert ok == (True, 6)
    valid, reason = validate_submitted_board(
        hello_grid(), hello_grid(letters={(1, 4): "w", (3, 4): "l"}), ["w", "l"], index, LETTER_SCORES
    )
    assert not valid
    assert "gap" in reason


@pytest.mark.parametrize("payload", [
    {"words": ["owl"], "letters": {}},
    {"board": grid_with(), "letters": {}},
    {"board": grid_with(), "words": ["owl"]},
    {"board": grid_with(), "words": ["owl"], "letters": {"o": {"n": 8}}},
])
def test_initialize_request_missing_fields(payload):
    with pytest.raises(ConfigurationError):
        handle_initialize_request(payload)


def test_move_request_missing_fields():
    index = AnagramIndex.build(["HELLO"])
    with pytest.raises(ConfigurationError):
        handle_move_request({"letters": ["w"]}, index, LETTER_SCORES)
    with pytest.raises(ConfigurationError):
        handle_move_request({"board": hello_grid()}, index, LETTER_SCORES)
