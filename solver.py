import argparse
import json
import random
import sys
import time
import requests
import utils
from utils import LETTER_SCORES, log_with_time, vlog, build_letter_values, build_score_string, check_letter_values
from colorama import Fore
from anagram_index import AnagramIndex
from board import Board, print_board
from errors import ConfigurationError, EngineError
from protocol import handle_initialize_request, handle_move_request
from search import GreedyDriver, TIE_BREAKS


DEFAULT_WIDTH = 11
DEFAULT_HEIGHT = 11
DEFAULT_RACK = "ANDREWPO"


def load_dictionary(path=None, url=None):
    """Read a newline-delimited word list from ``path`` or download it from ``url``."""
    t0 = time.time()
    if url:
        log_with_time("⟳ Downloading dictionary…")
        resp = requests.get(url, timeout=30)
        resp.raise_for_status()
        text = resp.text
    elif path:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    else:
        raise ConfigurationError("no dictionary given: pass --dict PATH or --dict-url URL")

    words = []
    seen = set()
    for line in text.splitlines():
        w = line.strip().upper()
        if not w.isalpha() or w in seen:
            continue
        seen.add(w)
        words.append(w)
    if not words:
        raise ConfigurationError(f"dictionary {url or path} holds no words")
    vlog(f"Dictionary loaded and filtered ({len(words)} words)", t0)
    log_with_time(f"✅ {len(words)} words")
    return words


def build_config(width, height, layout=None, seed=None, values="standard"):
    """Board and letter values for a game; anything not given is drawn from ``seed``."""
    rng = random.Random(seed)
    if layout is None:
        layout = build_score_string(width, height, rng)
    board = Board.new(width, height, layout)
    if values == "standard":
        letter_values = dict(LETTER_SCORES)
    else:
        letter_values = build_letter_values(rng)
    return board, check_letter_values(letter_values)


def _search_options(args):
    return {
        "workers": args.workers,
        "max_candidates": args.max_candidates,
        "time_budget": args.time_budget,
        "tie_break": args.tie_break,
    }


def answer_request(args, index, letter_values):
    with open(args.request, "r", encoding="utf-8") as f:
        payload = json.load(f)
    response = handle_move_request(payload, index, letter_values, **_search_options(args))
    print(json.dumps(response))
    return 0


def play_game(args, board, index, letter_values):
    rack = list(args.rack.upper())
    print("Starting board:")
    print_board(board)
    print("Rack:", " ".join(rack))

    driver = GreedyDriver(
        board,
        rack,
        index,
        letter_values,
        consume_rack=args.consume_rack,
        **_search_options(args),
    )
    while args.max_plies is None or len(driver.history) < args.max_plies:
        t0 = time.time()
        ply = driver.step()
        if ply is None:
            break
        log_with_time(f"Ply {len(driver.history)}: {ply.move} scoring {ply.score}", color=Fore.GREEN)
        vlog("ply search", t0)
        print_board(driver.board)

    if not driver.history:
        log_with_time("No legal scoring move found.", color=Fore.YELLOW)
    log_with_time(f"{len(driver.history)} plies, total score {driver.total_score}", color=Fore.GREEN)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(description="Greedy word-placement engine")
    parser.add_argument("--dict", type=str, default=None, help="Path to a newline-delimited word list")
    parser.add_argument("--dict-url", type=str, default=None, help="Download the word list from this URL instead")
    parser.add_argument("--init", type=str, default=None,
                        help="JSON initialize request supplying board, words and letter values")
    parser.add_argument("--request", type=str, default=None,
                        help="JSON move request to answer; the response is printed as JSON")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH, help=f"Board width (default: {DEFAULT_WIDTH})")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT, help=f"Board height (default: {DEFAULT_HEIGHT})")
    parser.add_argument("--layout", type=str, default=None,
                        help="Multiplier layout, one of - w W l L * per cell in row-major order; pass it as "
                             "--layout=LAYOUT since a plain first square starts with '-' (default: random)")
    parser.add_argument("--values", choices=["standard", "random"], default="standard",
                        help="Letter values: standard table or drawn from --seed (default: standard)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for random layout and letter values")
    parser.add_argument("--rack", type=str, default=DEFAULT_RACK, help=f"Tiles in hand (default: {DEFAULT_RACK})")
    parser.add_argument("--consume-rack", action="store_true", help="Remove placed tiles from the rack after each ply")
    parser.add_argument("--max-plies", type=int, default=None, help="Stop after this many plies")
    parser.add_argument("--workers", type=int, default=1, help="Threads evaluating candidates (default: 1)")
    parser.add_argument("--max-candidates", type=int, default=None, help="Cap on candidates evaluated per ply")
    parser.add_argument("--time-budget", type=float, default=None, help="Seconds allowed per ply for evaluation")
    parser.add_argument("--tie-break", choices=TIE_BREAKS, default="first",
                        help="Which of several equal best moves to play (default: first generated)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def run_solver(argv=None):
    args = build_parser().parse_args(argv)
    utils.start_time = time.time()
    utils.VERBOSE = args.verbose

    try:
        if args.init:
            with open(args.init, "r", encoding="utf-8") as f:
                board, words, letter_values = handle_initialize_request(json.load(f))
        else:
            words = load_dictionary(args.dict, args.dict_url)
            board, letter_values = build_config(args.width, args.height, args.layout, args.seed, args.values)
        index = AnagramIndex.build(words)
        vlog(f"Anagram index: {len(index)} words in {index.key_count} keys")

        if args.request:
            return answer_request(args, index, letter_values)
        return play_game(args, board, index, letter_values)
    except (EngineError, OSError, requests.RequestException, json.JSONDecodeError) as e:
        log_with_time(f"{type(e).__name__}: {e}", color=Fore.RED)
        return 1


def main():
    sys.exit(run_solver())
