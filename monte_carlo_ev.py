# monte_carlo_ev.py
"""
Random-completion Monte Carlo for Streams boards (uses streams_engine.py)

- Each trial works on a local copy of the board and deck counters.
- Empty cells are filled in board order; every cell takes the next card drawn
  from the remaining deck (weighted by counts), with no choice of where it goes.
- The result estimates "expected score under random completion", not under
  optimal play. It is only used to cut off deep subtrees of the exact search.
"""

from __future__ import annotations
import numpy as np

from streams_engine import (
    GameState,
    XorShiftRng,
    MIN_CARD,
    JOKER,
    score_board,
)

# ---- Deck sampling ----

def sample_card(deck: np.ndarray, deck_len: int, rng: XorShiftRng) -> int:
    """
    Draw one card: pick idx in [0, deck_len) and return the card whose
    cumulative count range contains it.
    """
    idx = rng.gen_range(deck_len)
    acc = 0
    for card in range(MIN_CARD, JOKER + 1):
        c = int(deck[card])
        if acc + c > idx:
            return card
        acc += c
    raise AssertionError(f"deck counts do not sum to {deck_len}")

# ---- Rollout ----

def rollout(st: GameState, sims: int, rng: XorShiftRng) -> float:
    """Mean final score over `sims` random completions of `st` (st is not modified)."""
    empties = st.empty_positions()
    total = 0.0
    for _ in range(sims):
        board = st.board.copy()
        deck = st.deck_count.copy()
        deck_len = st.deck_len
        for pos in empties:
            drawn = sample_card(deck, deck_len, rng)
            deck[drawn] -= 1
            deck_len -= 1
            board[pos] = drawn
        total += score_board(board)
    return total / sims
