# streams_engine.py
# Streams engine for EV search: fixed-size board/deck arrays + Numba-compiled scoring.
# Python 3.10+

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Union
import numpy as _np  # type: ignore
from numba import njit  # type: ignore

U64_MASK = (1 << 64) - 1
_NUMBA_OK = True

# ---------------------------
# Constants
# ---------------------------

BOARD_SIZE = 20
EMPTY = 0
MIN_CARD = 1
MAX_CARD = 30
JOKER = 31          # internal code for the joker
JOKER_GLYPH = "★"
EMPTY_GLYPH = "_"
DECK_SLOTS = JOKER + 1
DUPLICATE_RANGE = range(11, 20)
DUPLICATE_COUNT = 2

# index == run length, value == points
SCORE_TABLE_PY: List[int] = [
    0, 0, 1, 3, 5, 7, 9, 10, 15, 20, 25, 30, 20, 40, 50, 60, 70, 50, 100, 150, 300,
]

if _NUMBA_OK:
    SCORE_TABLE = _np.asarray(SCORE_TABLE_PY, dtype=_np.int64)
else:
    SCORE_TABLE = SCORE_TABLE_PY

# ---------------------------
# Text encoding
# ---------------------------

def card_from_char(ch: str) -> int:
    if ch == EMPTY_GLYPH:
        return EMPTY
    if ch == JOKER_GLYPH:
        return JOKER
    if "0" <= ch <= "9":
        return ord(ch) - ord("0")
    if "A" <= ch <= "U":
        return 10 + (ord(ch) - ord("A"))
    raise ValueError(f"bad char {ch!r}")

def card_to_char(code: int) -> str:
    if code == EMPTY:
        return EMPTY_GLYPH
    if code == JOKER:
        return JOKER_GLYPH
    if code < 10:
        return chr(ord("0") + code)
    return chr(ord("A") + code - 10)

def board_from_str(s: str) -> _np.ndarray:
    """
    Parse a 20-char board string into a uint8 board.
    '_' = empty, '0'-'9' = face value, 'A'-'U' = 10..30, '★' = joker.
    '0' maps to the empty code, same as '_'.
    """
    if len(s) != BOARD_SIZE:
        raise ValueError(f"board string must be {BOARD_SIZE} chars, got {len(s)}")
    arr = _np.zeros(BOARD_SIZE, dtype=_np.uint8)
    for i, ch in enumerate(s):
        try:
            arr[i] = card_from_char(ch)
        except ValueError:
            raise ValueError(f"bad char {ch!r} at position {i}") from None
    return arr

def board_to_str(board: Sequence[int]) -> str:
    return "".join(card_to_char(int(c)) for c in board)

def parse_card(text: str) -> int:
    """Card glyph ('7', 'K', '★') or decimal value 1..31 -> card code."""
    t = text.strip()
    if t.isdigit() and len(t) > 1:
        code = int(t)
    elif len(t) == 1:
        code = card_from_char(t)
    else:
        raise ValueError(f"bad card {text!r}")
    if not (MIN_CARD <= code <= JOKER):
        raise ValueError(f"card must be 1..{MAX_CARD} or joker, got {text!r}")
    return code

# ---------------------------
# Scoring
# ---------------------------

def _score_board_py(board: Sequence[int]) -> int:
    total = 0
    length = 0
    prev = -1  # -1 = no value yet in the current run
    for cell in board:
        c = int(cell)
        if c == EMPTY:
            total += SCORE_TABLE_PY[length]
            length = 0
            prev = -1
        elif c == JOKER:
            if prev == -1:
                # no value to carry: a 1-run of its own
                total += SCORE_TABLE_PY[length]
                length = 1
            else:
                length += 1
        elif prev == -1:
            total += SCORE_TABLE_PY[length]
            length = 1
            prev = c
        elif c >= prev:
            length += 1
            prev = c
        else:
            total += SCORE_TABLE_PY[length]
            length = 1
            prev = c
    return total + SCORE_TABLE_PY[length]

if _NUMBA_OK:

    @njit(cache=True)
    def score_board_nb(board: _np.ndarray) -> int:
        """Run-length score of a uint8 board (see _score_board_py)."""
        total = 0
        length = 0
        prev = -1
        for i in range(board.shape[0]):
            c = _np.int64(board[i])
            if c == 0:
                total += SCORE_TABLE[length]
                length = 0
                prev = -1
            elif c == 31:
                if prev == -1:
                    total += SCORE_TABLE[length]
                    length = 1
                else:
                    length += 1
            elif prev == -1:
                total += SCORE_TABLE[length]
                length = 1
                prev = c
            elif c >= prev:
                length += 1
                prev = c
            else:
                total += SCORE_TABLE[length]
                length = 1
                prev = c
        return total + SCORE_TABLE[length]

def score_board(board: Union[_np.ndarray, Sequence[int]]) -> int:
    if _NUMBA_OK and isinstance(board, _np.ndarray) and board.dtype == _np.uint8:
        return int(score_board_nb(board))
    return _score_board_py(board)

# ---------------------------
# PRNG (xorshift*)
# ---------------------------

def entropy_seed() -> int:
    """64-bit seed from the OS entropy pool (via numpy's SeedSequence)."""
    return int(_np.random.SeedSequence().generate_state(1, dtype=_np.uint64)[0])

class XorShiftRng:
    """
    Small xorshift* generator over a single 64-bit word.

    gen_range() reduces the low byte of the output modulo `upper`, which is
    biased whenever `upper` is not a power of two. Rollout sampling was tuned
    against this sampler, so the bias is kept.
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = entropy_seed()
        self.state = (seed & U64_MASK) or 1

    def next_u64(self) -> int:
        x = self.state
        x ^= x >> 12
        x ^= (x << 25) & U64_MASK
        x ^= x >> 27
        self.state = x
        return (x * 0x2545F4914F6CDD1D) & U64_MASK

    def gen_range(self, upper: int) -> int:
        return (self.next_u64() & 0xFF) % upper

# ---------------------------
# Board + deck state
# ---------------------------

def full_deck_counts() -> _np.ndarray:
    counts = _np.zeros(DECK_SLOTS, dtype=_np.uint8)
    for n in range(MIN_CARD, MAX_CARD + 1):
        counts[n] = DUPLICATE_COUNT if n in DUPLICATE_RANGE else 1
    counts[JOKER] = 1
    return counts

@dataclass
class GameState:
    board: _np.ndarray       # uint8[20]: 0 = empty, 1..30 = value, 31 = joker
    deck_count: _np.ndarray  # uint8[32]: undrawn copies per card code
    deck_len: int = 0        # undrawn cards in total

    @staticmethod
    def new(board: Union[str, _np.ndarray, Sequence[int]]) -> "GameState":
        if isinstance(board, str):
            arr = board_from_str(board)
        else:
            arr = _np.asarray(board, dtype=_np.uint8).copy()
            if arr.shape != (BOARD_SIZE,):
                raise ValueError(f"board must have {BOARD_SIZE} cells, got shape {arr.shape}")
            if int(arr.max(initial=0)) > JOKER:
                raise ValueError(f"board cell out of range: {int(arr.max())}")

        # Start from the full deck and remove what is already on the board
        counts = full_deck_counts().astype(_np.int16)
        for c in arr:
            if c != EMPTY:
                counts[c] -= 1
        if (counts < 0).any():
            over = [board_to_str([c]) for c in _np.flatnonzero(counts < 0)]
            raise ValueError(f"board uses more copies than the deck holds: {', '.join(over)}")

        deck_count = counts.astype(_np.uint8)
        return GameState(board=arr, deck_count=deck_count, deck_len=int(deck_count.sum()))

    def copy(self) -> "GameState":
        return GameState(self.board.copy(), self.deck_count.copy(), self.deck_len)

    # ---------- Mutations (each has an exact inverse) ----------

    def place(self, pos: int, card: int) -> None:
        assert self.board[pos] == EMPTY, f"cell {pos} already holds {self.board[pos]}"
        self.board[pos] = card

    def remove(self, pos: int) -> None:
        self.board[pos] = EMPTY

    def draw(self, card: int) -> None:
        assert self.deck_count[card] > 0, f"no copies of {card} left"
        self.deck_count[card] -= 1
        self.deck_len -= 1

    def undraw(self, card: int) -> None:
        self.deck_count[card] += 1
        self.deck_len += 1

    @contextmanager
    def placed(self, pos: int, card: int) -> Iterator["GameState"]:
        self.place(pos, card)
        try:
            yield self
        finally:
            self.remove(pos)

    @contextmanager
    def drawn(self, card: int) -> Iterator["GameState"]:
        self.draw(card)
        try:
            yield self
        finally:
            self.undraw(card)

    # ---------- Queries ----------

    def empty_positions(self) -> List[int]:
        return [int(i) for i in _np.flatnonzero(self.board == EMPTY)]

    def is_full(self) -> bool:
        return not (self.board == EMPTY).any()

    def score(self) -> int:
        return score_board(self.board)

    def print_board(self):
        print(board_to_str(self.board))
        print(" ".join(f"{c:>2}" if c != JOKER else " J" for c in self.board.tolist()))
