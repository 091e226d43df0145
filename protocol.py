"""JSON request/response translation for the move service.

Boards travel as ``[[{"square": tag, "letter": "a"}, ...], ...]`` indexed
``grid[row][col]``. Square tags are ``" "``, ``"dl"``, ``"tl"``, ``"dw"``,
``"tw"`` and ``"st"``; letters are lower case on the wire and ``""`` when
the square is empty.
"""

from colorama import Fore

from board import Board, Move
from errors import ConfigurationError, IllegalPlacement, OutOfBounds
from search import best_move, validate_move
from utils import (
    EMPTY,
    PLAIN,
    DOUBLE_LETTER,
    TRIPLE_LETTER,
    DOUBLE_WORD,
    TRIPLE_WORD,
    START,
    Direction,
    check_letter_values,
    log_with_time,
    vlog,
)

SQUARE_TAGS = {
    " ": PLAIN,
    "dl": DOUBLE_LETTER,
    "tl": TRIPLE_LETTER,
    "dw": DOUBLE_WORD,
    "tw": TRIPLE_WORD,
    "st": START,
}
TAG_FOR_SYMBOL = {symbol: tag for tag, symbol in SQUARE_TAGS.items()}


def decode_board(grid):
    """Convert a wire grid into a Board."""
    if not grid or not grid[0]:
        raise ConfigurationError("board grid is empty")
    height = len(grid)
    width = len(grid[0])
    layout = []
    letters = {}
    for r, row in enumerate(grid):
        if len(row) != width:
            raise ConfigurationError(f"board row {r} has {len(row)} squares, expected {width}")
        for c, tile in enumerate(row):
            square = tile.get("square", " ")
            if square not in SQUARE_TAGS:
                raise ConfigurationError(f"unknown square type {square!r} at ({r},{c})")
            layout.append(SQUARE_TAGS[square])
            letter = tile.get("letter", "")
            if letter:
                letters[(r, c)] = letter.upper()
    return Board.new(width, height, "".join(layout)).with_letters(letters)


def encode_board(board):
    grid = []
    for r in range(board.height):
        row = []
        for c in range(board.width):
            cell = board.get(r, c)
            row.append({
                "square": TAG_FOR_SYMBOL[board.multiplier(r, c)],
                "letter": "" if cell == EMPTY else cell.lower(),
            })
        grid.append(row)
    return grid


def _field(payload, key, what="request"):
    try:
        return payload[key]
    except (KeyError, TypeError):
        raise ConfigurationError(f"{what} is missing {key!r}") from None


def handle_initialize_request(payload):
    """Return ``(board, words, letter_values)`` from an initialize payload."""
    board = decode_board(_field(payload, "board"))
    words = [w.strip().upper() for w in _field(payload, "words") if w.strip()]
    letter_values = check_letter_values({
        letter.upper(): _field(info, "value", f"letter {letter!r}")
        for letter, info in _field(payload, "letters").items()
    })
    return board, words, letter_values


def handle_move_request(payload, index, letter_values, **search_options):
    """
    Answer one move request with ``{"bank": [...], "board": grid}``. With no
    scoring move the board comes back unchanged, and the whole rack is
    banked if tiles remain to draw.
    """
    board = decode_board(_field(payload, "board"))
    rack = [ch.upper() for ch in _field(payload, "letters")]
    players = payload.get("players", [])
    player_index = payload.get("playerIndex", 0)
    if players and not 0 <= player_index < len(players):
        raise ConfigurationError(f"playerIndex {player_index} is outside the {len(players)} players")
    vlog(f"move request: rack {''.join(rack)}, {payload.get('tilesLeft', 0)} tiles left, player {player_index}")

    best = best_move(board, rack, index, letter_values, **search_options)
    if best is None:
        bank = list(range(len(rack))) if payload.get("tilesLeft", 0) > 0 else []
        log_with_time(f"No scoring move for rack {''.join(rack)}; banking {len(bank)} tiles", color=Fore.YELLOW)
        return {"bank": bank, "board": encode_board(board)}
    log_with_time(f"Playing {best.move} for {best.score}", color=Fore.GREEN)
    return {"bank": [], "board": encode_board(best.board)}


def move_between(before, after):
    """Infer the Move that turns ``before`` into ``after``."""
    if (before.width, before.height, before.multipliers) != (after.width, after.height, after.multipliers):
        raise IllegalPlacement("board layout changed")
    changes = []
    for r in range(before.height):
        for c in range(before.width):
            b, a = before.get(r, c), after.get(r, c)
            if b != EMPTY and a != b:
                raise IllegalPlacement(f"letter at ({r},{c}) changed from {b!r} to {a!r}")
            if b == EMPTY and a != EMPTY:
                changes.append((r, c))
    if not changes:
        raise IllegalPlacement("no tiles placed")

    rows = {r for r, _ in changes}
    cols = {c for _, c in changes}
    if len(rows) > 1 and len(cols) > 1:
        raise IllegalPlacement("new tiles are not in one row or column")
    r0, c0 = changes[0]
    if len(rows) == 1 and len(cols) == 1:
        horizontal = any(
            after.in_bounds(r0, c) and after.get(r0, c) != EMPTY for c in (c0 - 1, c0 + 1)
        )
        direction = Direction.RIGHT if horizontal else Direction.DOWN
    else:
        direction = Direction.RIGHT if len(rows) == 1 else Direction.DOWN

    dr, dc = (0, 1) if direction == Direction.RIGHT else (1, 0)
    r, c = r0, c0
    while after.in_bounds(r - dr, c - dc) and after.get(r - dr, c - dc) != EMPTY:
        r, c = r - dr, c - dc
    start = (r, c)
    word, mask = [], []
    while after.in_bounds(r, c) and after.get(r, c) != EMPTY:
        word.append(after.get(r, c))
        mask.append(before.get(r, c))
        r, c = r + dr, c + dc
    covered = {(start[0] + i * dr, start[1] + i * dc) for i in range(len(word))}
    if not set(changes) <= covered:
        raise IllegalPlacement("new tiles leave a gap")
    return Move(start[0], start[1], direction, "".join(word), "".join(mask))


def validate_submitted_board(before_grid, after_grid, rack, index, letter_values):
    """
    Check a board a caller sent back against the one it was given. Returns
    ``(True, score)`` or ``(False, reason)``; the board given first is the
    authority either way.
    """
    before = decode_board(before_grid)
    after = decode_board(after_grid)
    try:
        move = move_between(before, after)
        _, score = validate_move(before, move, index, letter_values, rack=[ch.upper() for ch in rack])
    except (IllegalPlacement, OutOfBounds) as e:
        vlog(f"rejected submitted board: {e}")
        return False, str(e)
    return True, score
