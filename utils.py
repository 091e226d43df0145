# --- utils.py ---

import time
import threading
import string
from enum import Enum
from colorama import Fore, Style, init

from errors import ConfigurationError

init()

# Longest rack a player can hold, and so the most blanks a shell may need
MAX_TILES = 7

# Board cell with no letter on it
EMPTY = '.'

# Multiplier layout symbols
PLAIN = '-'
DOUBLE_LETTER = 'l'
TRIPLE_LETTER = 'L'
DOUBLE_WORD = 'w'
TRIPLE_WORD = 'W'
START = '*'

MULTIPLIER_SYMBOLS = (PLAIN, DOUBLE_WORD, TRIPLE_WORD, DOUBLE_LETTER, TRIPLE_LETTER, START)

# Symbols a random layout is drawn from (the start square is never random)
RANDOM_LAYOUT_SYMBOLS = (PLAIN, DOUBLE_WORD, TRIPLE_WORD, DOUBLE_LETTER, TRIPLE_LETTER)

LETTER_MULTIPLIERS = {DOUBLE_LETTER: 2, TRIPLE_LETTER: 3}
WORD_MULTIPLIERS = {DOUBLE_WORD: 2, TRIPLE_WORD: 3}

# Standard Scrabble letter values
LETTER_SCORES = {
    **dict.fromkeys(list("AEILNORSTU"), 1),
    **dict.fromkeys(list("DG"), 2),
    **dict.fromkeys(list("BCMP"), 3),
    **dict.fromkeys(list("FHVWY"), 4),
    'K': 5,
    **dict.fromkeys(list("JX"), 8),
    **dict.fromkeys(list("QZ"), 10)
}


class Direction(Enum):
    RIGHT = 'R'
    DOWN = 'D'


VERBOSE = False
start_time = None

# Lock used for synchronized printing across threads
PRINT_LOCK = threading.Lock()

def log_with_time(msg, color=Fore.LIGHTBLUE_EX):
    """Print ``msg`` with a timestamp."""
    global start_time
    if start_time is None:
        start_time = time.time()
    elapsed = time.time() - start_time
    mins = int(elapsed // 60)
    secs = elapsed % 60
    timestamp = Style.DIM + f"[{mins:02}:{secs:06.3f}]" + Style.RESET_ALL
    with PRINT_LOCK:
        print(f"{timestamp} {color}{msg}{Style.RESET_ALL}", flush=True)

def vlog(msg, t0=None):
    if VERBOSE:
        if t0 is not None:
            elapsed = time.time() - t0
            log_with_time(f"{msg} (took {elapsed:.3f}s)")
        else:
            log_with_time(msg)


def build_letter_values(rng, low=0, high=9):
    """Draw a point value in ``low..high`` for every letter A-Z from ``rng``."""
    return {ch: rng.randint(low, high) for ch in string.ascii_uppercase}


def build_score_string(width, height, rng):
    """Draw a random multiplier layout of ``width * height`` symbols from ``rng``."""
    return "".join(rng.choice(RANDOM_LAYOUT_SYMBOLS) for _ in range(width * height))


def check_letter_values(letter_values):
    """Reject letter-value tables the scorer cannot use."""
    for letter, value in letter_values.items():
        if not isinstance(letter, str) or len(letter) != 1 or not letter.isalpha():
            raise ConfigurationError(f"letter-value key {letter!r} is not a single letter")
        if not isinstance(value, int) or value < 0:
            raise ConfigurationError(f"letter {letter!r} has invalid point value {value!r}")
    return letter_values
