from collections import deque
from typing import NamedTuple

from colorama import Fore, Style
from errors import ConfigurationError, IllegalPlacement, OutOfBounds, UnknownLetter
from utils import (
    EMPTY,
    MULTIPLIER_SYMBOLS,
    LETTER_MULTIPLIERS,
    WORD_MULTIPLIERS,
    DOUBLE_LETTER,
    TRIPLE_LETTER,
    DOUBLE_WORD,
    TRIPLE_WORD,
    START,
    PRINT_LOCK,
    Direction,
)


def step(direction):
    """Row/column increment for one square along ``direction``."""
    return (1, 0) if direction == Direction.DOWN else (0, 1)


class Move(NamedTuple):
    """A word to lay down from (row, col). ``mask`` marks new tiles with '.'
    and squares the word passes through with the letter already there."""
    row: int
    col: int
    direction: Direction
    word: str
    mask: str

    def squares(self):
        """Yield (offset, row, col) for every square the word covers."""
        dr, dc = step(self.direction)
        for i in range(len(self.word)):
            yield i, self.row + i * dr, self.col + i * dc

    def new_letters(self):
        return [wc for wc, mc in zip(self.word, self.mask) if mc == EMPTY]

    def __str__(self):
        return f"{self.word} at ({self.row},{self.col}) {self.direction.value} [{self.mask}]"


def letter_value(letter_values, letter):
    try:
        return letter_values[letter]
    except KeyError:
        raise UnknownLetter(letter) from None


class Board:
    """Immutable ``width`` x ``height`` grid plus its multiplier overlay.

    Cells and multipliers are row-major tuples; ``(row, col)`` lives at
    ``row * width + col``. Placing a move never touches the receiver, it
    builds a new Board, so one board can be shared by any number of
    candidate evaluations at once.
    """

    __slots__ = ("width", "height", "cells", "multipliers")

    def __init__(self, width, height, cells, multipliers):
        self.width = width
        self.height = height
        self.cells = tuple(cells)
        self.multipliers = tuple(multipliers)

    @classmethod
    def new(cls, width, height, multiplier_layout):
        """Empty board with the given layout string, one symbol per cell."""
        if not isinstance(width, int) or not isinstance(height, int) or width <= 0 or height <= 0:
            raise ConfigurationError(f"board dimensions must be positive, got {width}x{height}")
        if len(multiplier_layout) != width * height:
            raise ConfigurationError(
                f"multiplier layout has {len(multiplier_layout)} symbols, expected {width * height}"
            )
        for i, symbol in enumerate(multiplier_layout):
            if symbol not in MULTIPLIER_SYMBOLS:
                raise ConfigurationError(f"unrecognized multiplier symbol {symbol!r} at cell {i}")
        return cls(width, height, [EMPTY] * (width * height), multiplier_layout)

    # ---------- Queries ----------
    def index(self, row, col):
        return row * self.width + col

    def in_bounds(self, row, col):
        return 0 <= row < self.height and 0 <= col < self.width

    def get(self, row, col):
        return self.cells[self.index(row, col)]

    def multiplier(self, row, col):
        return self.multipliers[self.index(row, col)]

    def is_empty(self):
        return all(c == EMPTY for c in self.cells)

    def row(self, i):
        start = i * self.width
        return self.cells[start:start + self.width]

    def col(self, j):
        return self.cells[j::self.width]

    def line(self, direction, row, col):
        """The row or column a word starting at (row, col) would run along."""
        return self.row(row) if direction == Direction.RIGHT else self.col(col)

    def letters_on_board(self):
        return [c for c in self.cells if c != EMPTY]

    # ---------- Building ----------
    def with_letters(self, placements):
        """New board with ``{(row, col): letter}`` written in (setup only, no scoring)."""
        cells = list(self.cells)
        for (r, c), ch in placements.items():
            if not self.in_bounds(r, c):
                raise ConfigurationError(f"cell ({r},{c}) is outside the {self.width}x{self.height} board")
            if not isinstance(ch, str) or len(ch) != 1 or ch == EMPTY or ch.isspace():
                raise ConfigurationError(f"cell ({r},{c}) holds {ch!r}, not a single letter")
            cells[self.index(r, c)] = ch
        return Board(self.width, self.height, cells, self.multipliers)

    def apply(self, move, letter_values):
        """Place ``move`` and return ``(new_board, score)``.

        Squares the word passes through add their letter's raw value.
        Newly filled squares apply their own multiplier from this board's
        layout: letter multipliers scale that letter only, word multipliers
        are collected and applied once to the whole sum at the end. A move
        that fills nothing scores 0.
        """
        word, mask = move.word, move.mask
        if not word or len(word) != len(mask):
            raise IllegalPlacement(f"word {word!r} and mask {mask!r} differ in length")
        for wc, mc in zip(word, mask):
            if mc != EMPTY and mc != wc:
                raise IllegalPlacement(f"{word!r} contradicts its own mask {mask!r}")

        dr, dc = step(move.direction)
        last_r = move.row + (len(word) - 1) * dr
        last_c = move.col + (len(word) - 1) * dc
        if not (self.in_bounds(move.row, move.col) and self.in_bounds(last_r, last_c)):
            raise OutOfBounds(f"{word!r} from ({move.row},{move.col}) does not fit a {self.width}x{self.height} board")

        cells = list(self.cells)
        move_score = 0
        multiplier = 1
        placed = 0
        for i, r, c in move.squares():
            idx = self.index(r, c)
            ch = word[i]
            existing = self.cells[idx]
            if existing != EMPTY:
                if existing != ch:
                    raise IllegalPlacement(f"{word!r} needs {ch!r} at ({r},{c}) but the board has {existing!r}")
                if mask[i] == EMPTY:
                    raise IllegalPlacement(f"mask expects an empty square at ({r},{c}) but it holds {existing!r}")
                move_score += letter_value(letter_values, ch)
                continue
            if mask[i] != EMPTY:
                raise IllegalPlacement(f"mask expects {mask[i]!r} at ({r},{c}) but the square is empty")
            symbol = self.multipliers[idx]
            move_score += letter_value(letter_values, ch) * LETTER_MULTIPLIERS.get(symbol, 1)
            multiplier *= WORD_MULTIPLIERS.get(symbol, 1)
            cells[idx] = ch
            placed += 1

        if placed == 0:
            return self, 0
        return Board(self.width, self.height, cells, self.multipliers), move_score * multiplier

    def affected_lines(self, move):
        """Rows and columns holding a square ``move`` newly fills on this board."""
        rows, cols = set(), set()
        for _, r, c in move.squares():
            if self.in_bounds(r, c) and self.get(r, c) == EMPTY:
                rows.add(r)
                cols.add(c)
        return sorted(rows), sorted(cols)

    # ---------- Dunder ----------
    def __eq__(self, other):
        if not isinstance(other, Board):
            return NotImplemented
        return (self.width, self.height, self.cells, self.multipliers) == (
            other.width, other.height, other.cells, other.multipliers)

    def __hash__(self):
        return hash((self.width, self.height, self.cells, self.multipliers))

    def __str__(self):
        return "\n".join(" ".join(self.row(r)) for r in range(self.height))

    def __repr__(self):
        return f"Board({self.width}x{self.height}, {len(self.letters_on_board())} letters)"


_SQUARE_COLORS = {
    DOUBLE_LETTER: Fore.CYAN,
    TRIPLE_LETTER: Fore.BLUE,
    DOUBLE_WORD: Fore.MAGENTA,
    TRIPLE_WORD: Fore.RED,
    START: Fore.YELLOW,
}

_SQUARE_LABELS = {
    DOUBLE_LETTER: 'DL',
    TRIPLE_LETTER: 'TL',
    DOUBLE_WORD: 'DW',
    TRIPLE_WORD: 'TW',
    START: 'ST',
}


def print_board(board):
    """Thread-safe printing of a board. Letters take the color of the square
    they cover; empty premium squares show their label."""
    with PRINT_LOCK:
        lines = []
        for r in range(board.height):
            line = []
            for c in range(board.width):
                cell = board.get(r, c)
                symbol = board.multiplier(r, c)
                color = _SQUARE_COLORS.get(symbol)
                if cell != EMPTY:
                    line.append((color or Fore.GREEN) + f' {cell}' + Style.RESET_ALL)
                elif color:
                    line.append(color + _SQUARE_LABELS[symbol] + Style.RESET_ALL)
                else:
                    line.append(Style.DIM + '··' + Style.RESET_ALL)
            lines.append(' '.join(line))
        print('\n'.join(lines), flush=True)
        print(flush=True)


def line_runs(line):
    """Maximal runs of letters along a row or column, in order."""
    return [run for run in "".join(line).split(EMPTY) if run]


def board_valid(board, index, connected=False):
    """
    Return True if every run of 2+ letters in every row and column is in
    ``index``; with ``connected`` also require all tiles to form one group.
    """
    if board.is_empty():
        return True
    lines = [board.row(r) for r in range(board.height)] + [board.col(c) for c in range(board.width)]
    for line in lines:
        for run in line_runs(line):
            if len(run) >= 2 and not index.is_word(run):
                return False
    if connected and not _is_connected(board):
        return False
    return True

# Helper: check if all letters on the board are orthogonally connected
def _is_connected(board):
    tile_positions = [
        (r, c) for r in range(board.height) for c in range(board.width) if board.get(r, c) != EMPTY
    ]
    if not tile_positions:
        return True
    visited = set()
    queue = deque([tile_positions[0]])
    while queue:
        r, c = queue.popleft()
        if (r, c) in visited:
            continue
        visited.add((r, c))
        for dr, dc in [(-1, 0), (1, 0), (0, -1), (0, 1)]:
            nr, nc = r + dr, c + dc
            if board.in_bounds(nr, nc) and board.get(nr, nc) != EMPTY and (nr, nc) not in visited:
                queue.append((nr, nc))
    return len(visited) == len(tile_positions)
