# expectimax_ev.py
"""
Deck-aware hybrid Expectimax for Streams (uses streams_engine.py)

- Chance nodes: average over the NEXT draw using remaining deck counts.
  * A card with n copies left out of T undrawn cards has probability n/T.
- Max nodes: the drawn card goes to whichever empty cell gives the best EV.
- Terminal: full board or empty deck -> exact score.
- Past `rollout_limit` draws the subtree is replaced by a random-completion
  Monte Carlo estimate (monte_carlo_ev.rollout).

- Search state is a single GameState, mutated in place and restored on the way
  out (GameState.drawn / GameState.placed), so there is no per-node copying.
"""

from __future__ import annotations
import argparse
import logging
import math
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union
import numpy as np

# ---- Engine glue ----
from streams_engine import (
    GameState,
    XorShiftRng,
    BOARD_SIZE,
    EMPTY,
    MIN_CARD,
    JOKER,
    board_from_str,
    board_to_str,
    score_board_nb,
)
from monte_carlo_ev import rollout

logger = logging.getLogger(__name__)

BoardLike = Union[str, np.ndarray, Sequence[int]]

# ---- Numba warmup ----
def _numba_warmup():
    """Touch the scoring kernel once so it JITs before timing the real search."""
    b = np.zeros(BOARD_SIZE, dtype=np.uint8)
    _ = score_board_nb(b)

# ---- Params ----

@dataclass(frozen=True)
class EVParams:
    sims: int = 5            # rollout samples per truncated subtree
    rollout_limit: int = 1   # draws searched exactly before rolling out

    def __post_init__(self):
        if self.sims < 1:
            raise ValueError(f"sims must be >= 1, got {self.sims}")
        if self.rollout_limit < 0:
            raise ValueError(f"rollout_limit must be >= 0, got {self.rollout_limit}")

# ---- Deck helpers ----

def draw_outcomes(st: GameState) -> List[Tuple[int, float]]:
    """
    Given remaining counts, return list of (card_code, probability) for the next draw.
    Empty deck -> empty list.
    """
    T = st.deck_len
    outcomes: List[Tuple[int, float]] = []
    if T == 0:
        return outcomes
    for card in range(MIN_CARD, JOKER + 1):
        n = int(st.deck_count[card])
        if n:
            outcomes.append((card, n / T))
    return outcomes

# ---- Expectimax core ----

def ev_before_draw(st: GameState, params: EVParams, rng: XorShiftRng, level: int = 0) -> float:
    if st.deck_len == 0 or st.is_full():
        return float(st.score())
    if level >= params.rollout_limit:
        return rollout(st, params.sims, rng)

    ev = 0.0
    for card, prob in draw_outcomes(st):
        with st.drawn(card):
            child_ev = ev_after_draw(st, card, params, rng, level)
        ev += prob * child_ev
    return ev

def ev_after_draw(st: GameState, card: int, params: EVParams, rng: XorShiftRng, level: int) -> float:
    best = -math.inf
    for pos in st.empty_positions():
        with st.placed(pos, card):
            v = ev_before_draw(st, params, rng, level + 1)
        if v > best:
            best = v
    return best

# ---- Entry points ----

def _resolve_params(sims: int, rollout_limit: Optional[int]) -> EVParams:
    if rollout_limit is None:
        return EVParams(sims=sims)
    return EVParams(sims=sims, rollout_limit=rollout_limit)

def compute_expected_value(board: BoardLike, sims: int, rollout_limit: Optional[int] = None,
                           seed: Optional[int] = None) -> float:
    """Expected final score of `board` before the next draw."""
    st = GameState.new(board)
    params = _resolve_params(sims, rollout_limit)
    rng = XorShiftRng(seed)
    logger.debug("EV search: board=%s deck_len=%d params=%s",
                 board_to_str(st.board), st.deck_len, params)
    return ev_before_draw(st, params, rng, 0)

def compute_expected_values_per_cell(board: BoardLike, card: int, sims: int,
                                     rollout_limit: Optional[int] = None,
                                     seed: Optional[int] = None) -> np.ndarray:
    """
    EV of placing `card` in each empty cell, evaluated from the next draw.
    Deck counters are left as they are; occupied cells report 0.0.
    """
    st = GameState.new(board)
    params = _resolve_params(sims, rollout_limit)
    rng = XorShiftRng(seed)
    if not (MIN_CARD <= card <= JOKER):
        raise ValueError(f"card must be 1..{JOKER}, got {card}")

    vals = np.zeros(BOARD_SIZE, dtype=np.float64)
    for pos in st.empty_positions():
        with st.placed(pos, card):
            vals[pos] = ev_before_draw(st, params, rng, 0)
    logger.debug("per-cell EVs for %s: %s", board_to_str([card]), vals.tolist())
    return vals

def best_cell(values: Sequence[float], board: BoardLike) -> Optional[int]:
    """Empty cell with the highest EV (lowest index on ties); None if the board is full."""
    cells = board_from_str(board) if isinstance(board, str) else np.asarray(board)
    best_pos: Optional[int] = None
    best_val = -math.inf
    for pos in range(BOARD_SIZE):
        if cells[pos] != EMPTY:
            continue
        if values[pos] > best_val:
            best_val = values[pos]
            best_pos = pos
    return best_pos

# ---- CLI ----

if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Hybrid exact/Monte Carlo EV for Streams boards (timing run)")
    ap.add_argument("board", help="20-char board, e.g. 123456789ABCDEFGHI__")
    ap.add_argument("--sims", type=int, default=5, help="Rollout samples per truncated subtree")
    ap.add_argument("--depth", type=int, nargs="+", default=[0, 1, 2], help="rollout_limit values to time")
    ap.add_argument("--seed", type=int, default=None)
    args = ap.parse_args()

    _numba_warmup()
    for d in args.depth:
        t0 = time.perf_counter()
        ev = compute_expected_value(args.board, args.sims, rollout_limit=d, seed=args.seed)
        dt = time.perf_counter() - t0
        print(f"depth={d}  sims={args.sims}  EV={ev:.3f}  ({dt:.3f}s)")
