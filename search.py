from collections import Counter
from enum import Enum
from itertools import combinations
from typing import NamedTuple
import concurrent.futures
import time
from colorama import Fore
from utils import EMPTY, log_with_time, vlog
from errors import ConfigurationError, IllegalPlacement, OutOfBounds
from anagram_index import anagram_key
from board import Move, board_valid, line_runs
from shells import find_shells

TIE_BREAKS = ("first", "last")


class Candidate(NamedTuple):
    move: Move
    score: int
    legal: bool
    board: object


class Ply(NamedTuple):
    move: Move
    score: int
    board: object


# ============== Move generation ==============
def rack_combinations(rack, size):
    """
    Each distinct multiset of ``size`` tiles drawable from ``rack``, as a
    sorted tuple. Repeated letters are separate tiles, so a rack with two
    'A's yields combinations holding up to two 'A's. Calling again restarts.
    """
    seen = set()
    for combo in combinations(sorted(rack), size):
        if combo in seen:
            continue
        seen.add(combo)
        yield combo


def fits_pattern(word, pattern):
    if len(word) != len(pattern):
        return False
    return all(p == EMPTY or p == w for w, p in zip(word, pattern))


def generate_moves(board, rack, index, shells=None):
    """Every dictionary word that fits a shell using rack tiles for its blanks."""
    t0 = time.time()
    if shells is None:
        shells = find_shells(board, max_blanks=len(rack))
    combos_by_size = {}
    moves = []
    for shell in shells:
        size = shell.blank_count
        if size > len(rack):
            continue
        if size not in combos_by_size:
            combos_by_size[size] = list(rack_combinations(rack, size))
        fixed = shell.fixed_letters
        for combo in combos_by_size[size]:
            words = index.lookup(anagram_key(list(combo) + fixed))
            if not words:
                continue
            for w in words:
                if fits_pattern(w, shell.pattern):
                    moves.append(Move(shell.row, shell.col, shell.direction, w, shell.pattern))
    vlog(f"generate_moves: {len(moves)} moves from {len(shells)} shells", t0)
    return moves


# ============== Legality ==============
def line_legal(line, index):
    for run in line_runs(line):
        if len(run) <= 1:
            continue
        bucket = index.lookup(anagram_key(run))
        if bucket is None or run not in bucket:
            return False
    return True


def is_legal(board, rows, cols, index):
    """
    True if every run of 2+ letters in the given rows and columns of
    ``board`` is a dictionary word. Pass only lines a move newly filled a
    square in; the rest were legal before the move.
    """
    for r in rows:
        if not line_legal(board.row(r), index):
            return False
    for c in cols:
        if not line_legal(board.col(c), index):
            return False
    return True


# ============== Evaluation ==============
def evaluate_move(board, move, index, letter_values):
    """Simulate ``move`` on ``board``; None if it cannot be placed at all."""
    try:
        new_board, score = board.apply(move, letter_values)
    except (OutOfBounds, IllegalPlacement) as e:
        vlog(f"discarded {move}: {e}")
        return None
    rows, cols = board.affected_lines(move)
    return Candidate(move, score, is_legal(new_board, rows, cols, index), new_board)


def _evaluate_batch(board, moves, index, letter_values, deadline):
    out = []
    for mv in moves:
        if deadline is not None and time.time() > deadline:
            break
        out.append(evaluate_move(board, mv, index, letter_values))
    return out


def _chunks(items, n):
    size = max(1, -(-len(items) // n))
    return [items[i:i + size] for i in range(0, len(items), size)]


def best_move(
    board,
    rack,
    index,
    letter_values,
    *,
    workers=1,
    max_candidates=None,
    time_budget=None,
    tie_break="first",
):
    """
    One ply: generate, simulate and check every candidate against ``board``
    and return the best legal Candidate with a positive score, or None.
    Equal scores keep the first candidate in generation order, or the last
    with ``tie_break="last"``.
    """
    if tie_break not in TIE_BREAKS:
        raise ConfigurationError(f"unknown tie-break policy {tie_break!r}")
    t0 = time.time()
    moves = generate_moves(board, rack, index)
    if max_candidates is not None and len(moves) > max_candidates:
        vlog(f"best_move: capping {len(moves)} candidates at {max_candidates}")
        moves = moves[:max_candidates]
    deadline = t0 + time_budget if time_budget is not None else None

    if workers > 1 and len(moves) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            batches = executor.map(
                lambda chunk: _evaluate_batch(board, chunk, index, letter_values, deadline),
                _chunks(moves, workers * 4),
            )
            results = [cand for batch in batches for cand in batch]
    else:
        results = _evaluate_batch(board, moves, index, letter_values, deadline)

    if len(results) < len(moves):
        log_with_time(f"Time budget spent after {len(results)} of {len(moves)} candidates", color=Fore.YELLOW)

    best = None
    legal = 0
    for cand in results:
        if cand is None or not cand.legal:
            continue
        legal += 1
        if cand.score <= 0:
            continue
        if best is None or cand.score > best.score or (tie_break == "last" and cand.score == best.score):
            best = cand
    vlog(f"best_move: {len(results)} evaluated, {legal} legal, best {best.score if best else 0}", t0)
    return best


def validate_move(board, move, index, letter_values, rack=None):
    """
    Check a caller-supplied move against ``board`` and return
    ``(new_board, score)``. Raises IllegalPlacement (or OutOfBounds) when it
    places nothing, needs tiles the rack lacks, floats free of the letters
    already down, or forms a word not in ``index``. ``board`` is untouched.
    """
    new_board, score = board.apply(move, letter_values)
    if new_board is board:
        raise IllegalPlacement(f"{move.word!r} places no new tiles")
    placed = Counter(move.word[i] for i, r, c in move.squares() if board.get(r, c) == EMPTY)
    if rack is not None and placed - Counter(rack):
        missing = "".join(sorted((placed - Counter(rack)).elements()))
        raise IllegalPlacement(f"rack lacks tiles {missing!r} for {move.word!r}")
    rows, cols = board.affected_lines(move)
    if not is_legal(new_board, rows, cols, index):
        raise IllegalPlacement(f"{move.word!r} forms a word that is not in the dictionary")
    if not board_valid(new_board, index, connected=True):
        raise IllegalPlacement(f"{move.word!r} does not connect to the letters on the board")
    return new_board, score


# ============== Greedy driver ==============
class DriverState(Enum):
    READY = "ready"
    EVALUATING = "evaluating"
    APPLYING = "applying"
    TERMINAL = "terminal"


class GreedyDriver:
    """Plays the best-scoring legal move again and again until none is left."""

    def __init__(
        self,
        board,
        rack,
        index,
        letter_values,
        *,
        workers=1,
        max_candidates=None,
        time_budget=None,
        tie_break="first",
        consume_rack=False,
    ):
        if tie_break not in TIE_BREAKS:
            raise ConfigurationError(f"unknown tie-break policy {tie_break!r}")
        self.board = board
        self.rack = list(rack)
        self.index = index
        self.letter_values = letter_values
        self.workers = workers
        self.max_candidates = max_candidates
        self.time_budget = time_budget
        self.tie_break = tie_break
        self.consume_rack = consume_rack
        self.state = DriverState.READY if self.rack else DriverState.TERMINAL
        self.history = []

    @property
    def total_score(self):
        return sum(p.score for p in self.history)

    def step(self):
        """Run one ply; returns the Ply played, or None once terminal."""
        if self.state == DriverState.TERMINAL:
            return None
        t0 = time.time()
        self.state = DriverState.EVALUATING
        best = best_move(
            self.board,
            self.rack,
            self.index,
            self.letter_values,
            workers=self.workers,
            max_candidates=self.max_candidates,
            time_budget=self.time_budget,
            tie_break=self.tie_break,
        )
        if best is None:
            self.state = DriverState.TERMINAL
            vlog(f"ply {len(self.history) + 1}: no scoring legal move", t0)
            return None

        self.state = DriverState.APPLYING
        if self.consume_rack:
            for _, r, c in best.move.squares():
                if self.board.get(r, c) == EMPTY:
                    self.rack.remove(best.board.get(r, c))
        self.board = best.board
        ply = Ply(best.move, best.score, best.board)
        self.history.append(ply)
        self.state = DriverState.READY if self.rack else DriverState.TERMINAL
        vlog(f"ply {len(self.history)}: {best.move} scoring {best.score}", t0)
        return ply

    def run(self, max_plies=None):
        while self.state != DriverState.TERMINAL:
            if max_plies is not None and len(self.history) >= max_plies:
                break
            if self.step() is None:
                break
        return self.history


def play_greedy(board, rack, index, letter_values, max_plies=None, **options):
    driver = GreedyDriver(board, rack, index, letter_values, **options)
    driver.run(max_plies)
    return driver
