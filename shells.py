import time
from typing import NamedTuple

from board import step
from utils import EMPTY, MAX_TILES, Direction, vlog


class Shell(NamedTuple):
    """A slot a new word could occupy: '.' squares still need a tile, letters
    are already on the board and the word must spell them."""
    row: int
    col: int
    direction: Direction
    pattern: str

    @property
    def blank_count(self):
        return self.pattern.count(EMPTY)

    @property
    def fixed_letters(self):
        return [c for c in self.pattern if c != EMPTY]

    def __str__(self):
        return f"({self.row},{self.col}) {self.direction.value} {self.pattern}"


def shell_from_line(line, blank_count, start):
    """
    Read a shell pattern off ``line`` beginning at ``start``: take squares
    until ``blank_count`` empty ones are used, then keep any letters that run
    on directly after the last one. An empty square before ``start`` throws
    away whatever was gathered so far.
    """
    result = []
    spaces_used = 0
    for idx, c in enumerate(line):
        if spaces_used == blank_count and c == EMPTY:
            break
        if idx >= start:
            result.append(c)
            if c == EMPTY:
                spaces_used += 1
        elif c == EMPTY:
            result = []
        else:
            result.append(c)
    return "".join(result)


def touches_letters(board, row, col, direction, length):
    """True if any of the ``length`` squares from (row, col) holds a letter or
    sits next to one."""
    dr, dc = step(direction)
    for i in range(length):
        r, c = row + i * dr, col + i * dc
        if board.get(r, c) != EMPTY:
            return True
        for nr, nc in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)):
            if board.in_bounds(nr, nc) and board.get(nr, nc) != EMPTY:
                return True
    return False


def initial_shells(board, max_blanks=None):
    """Blank shells of 2..7 squares through the middle of an empty board."""
    limit = MAX_TILES if max_blanks is None else min(MAX_TILES, max_blanks)
    mid_row = board.height // 2
    mid_col = board.width // 2
    shells = []
    for s_count in range(2, limit + 1):
        for offset in range(s_count):
            if mid_row >= offset and mid_row - offset + s_count <= board.height:
                shells.append(Shell(mid_row - offset, mid_col, Direction.DOWN, EMPTY * s_count))
            if mid_col >= offset and mid_col - offset + s_count <= board.width:
                shells.append(Shell(mid_row, mid_col - offset, Direction.RIGHT, EMPTY * s_count))
    return shells


def find_shells(board, max_blanks=None):
    """
    Every slot where a word could start on ``board``, for both directions and
    1..7 blanks. ``max_blanks`` (usually the rack size) drops shells that need
    more tiles than the mover holds.
    """
    t0 = time.time()
    if board.is_empty():
        shells = initial_shells(board, max_blanks)
        vlog(f"find_shells: {len(shells)} opening shells", t0)
        return shells

    limit = MAX_TILES if max_blanks is None else min(MAX_TILES, max_blanks)
    shells = []
    seen = set()
    for direction in (Direction.RIGHT, Direction.DOWN):
        size = board.width if direction == Direction.RIGHT else board.height
        for length in range(1, limit + 1):
            for row in range(board.height):
                for col in range(board.width):
                    start = col if direction == Direction.RIGHT else row
                    if start + length >= size:
                        continue
                    line = board.line(direction, row, col)
                    if line[start] != EMPTY and line[start + 1] != EMPTY:
                        continue
                    if start != 0 and line[start - 1] != EMPTY:
                        continue
                    shell = Shell(row, col, direction, shell_from_line(line, length, start))
                    if shell in seen:
                        continue
                    if shell.blank_count == 0 or shell.blank_count > limit:
                        continue
                    if not touches_letters(board, row, col, direction, len(shell.pattern)):
                        continue
                    seen.add(shell)
                    shells.append(shell)
    vlog(f"find_shells: {len(shells)} shells", t0)
    return shells
