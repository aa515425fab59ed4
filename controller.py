"""
controller.py
-------------
Command-line Streams EV solver: prints the expected final score of a board,
and with --card, the EV of placing that just-drawn card in each empty cell.
"""

from __future__ import annotations
from typing import List, Optional
import argparse
import logging
import sys, time

from streams_engine import GameState, EMPTY, board_from_str, parse_card, card_to_char
from expectimax_ev import (
    EVParams, compute_expected_value, compute_expected_values_per_cell, best_cell,
    _numba_warmup,
)

logger = logging.getLogger(__name__)

# ---------- Helpers ----------

def build_parser() -> argparse.ArgumentParser:
    defaults = EVParams()
    ap = argparse.ArgumentParser(
        prog="controller.py",
        description="Expected final score of a Streams board (exact search + Monte Carlo rollouts).",
    )
    ap.add_argument("board", help="20-char board: _ empty, 1-9, A-U = 10..30, ★ joker")
    ap.add_argument("--sims", type=int, default=defaults.sims, help="Rollout samples per truncated subtree")
    ap.add_argument("--depth", type=int, default=defaults.rollout_limit,
                    help="Draws searched exactly before rolling out")
    ap.add_argument("--card", default=None, help="Just-drawn card; prints per-cell EVs for it")
    ap.add_argument("--seed", type=int, default=None, help="Rollout seed for reproducible output")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap

def print_cell_values(board, values) -> None:
    for pos, code in enumerate(board.tolist()):
        if code == EMPTY:
            print(f"  cell {pos:>2}:  {values[pos]:8.3f}")
        else:
            print(f"  cell {pos:>2}:  ({card_to_char(code)})")

# ---------- Main ----------

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        board = board_from_str(args.board)
        card = parse_card(args.card) if args.card is not None else None
        # built up front so bad flags or an over-used board fail before any search
        params = EVParams(sims=args.sims, rollout_limit=args.depth)
        state = GameState.new(board)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    logger.debug("board %s: %d empty cells, %d cards undrawn, %s",
                 args.board, len(state.empty_positions()), state.deck_len, params)
    _numba_warmup()
    t0 = time.perf_counter()
    ev = compute_expected_value(board, params.sims, rollout_limit=params.rollout_limit, seed=args.seed)
    print(f"EV = {ev:.3f}")

    if card is not None:
        vals = compute_expected_values_per_cell(board, card, params.sims,
                                                rollout_limit=params.rollout_limit, seed=args.seed)
        print(f"Per-cell EV for card {card_to_char(card)}:")
        print_cell_values(board, vals)
        pos = best_cell(vals, board)
        if pos is not None:
            print(f"Suggested cell: {pos} (EV {vals[pos]:.3f})")

    logger.debug("computed in %.2fs", time.perf_counter() - t0)
    return 0

if __name__ == "__main__":
    sys.exit(main())
