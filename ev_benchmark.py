# ev_benchmark.py
"""
Self-play benchmark for the Streams EV solver.

Each game shuffles the 40-card deck, draws 20 cards one at a time and places
each with a policy:
- ev:     cell with the best per-cell EV (expectimax_ev)
- first:  first empty cell
- random: uniform random empty cell

Prints a low/median/high score summary and, optionally, quick-look plots.
"""

from __future__ import annotations
import argparse
import logging
import os
import statistics
import time
from typing import Callable, Dict, List, Optional
import numpy as np
import matplotlib.pyplot as plt

from streams_engine import GameState, BOARD_SIZE, full_deck_counts
from expectimax_ev import (
    EVParams, compute_expected_values_per_cell, best_cell, _numba_warmup,
)

logger = logging.getLogger(__name__)

Policy = Callable[[GameState, int, np.random.Generator], int]

# ---- Deck ----

def shuffled_deck(rng: np.random.Generator) -> List[int]:
    counts = full_deck_counts()
    cards = [card for card in range(len(counts)) for _ in range(int(counts[card]))]
    rng.shuffle(cards)
    return cards

# ---- Policies ----

def first_policy(st: GameState, card: int, rng: np.random.Generator) -> int:
    return st.empty_positions()[0]

def random_policy(st: GameState, card: int, rng: np.random.Generator) -> int:
    empties = st.empty_positions()
    return empties[int(rng.integers(len(empties)))]

def make_ev_policy(params: EVParams) -> Policy:
    def ev_policy(st: GameState, card: int, rng: np.random.Generator) -> int:
        seed = int(rng.integers(1, 2**62))
        vals = compute_expected_values_per_cell(st.board, card, params.sims,
                                                rollout_limit=params.rollout_limit, seed=seed)
        return best_cell(vals, st.board)
    return ev_policy

# ---- Play a single game ----

def play(policy: Policy, seed: Optional[int] = None, verbose: bool = False) -> int:
    """Run one game with `policy`; returns the final score."""
    rng = np.random.default_rng(seed)
    deck = shuffled_deck(rng)
    st = GameState.new([0] * BOARD_SIZE)

    for step in range(BOARD_SIZE):
        card = deck[step]
        pos = policy(st, card, rng)
        st.draw(card)
        st.place(pos, card)
        if verbose:
            print(f"\nStep {step}  Card: {card}  Cell: {pos}")
            st.print_board()

    if verbose:
        print("\nGame over.")
        st.print_board()
        print(f"Score: {st.score()}")
    return st.score()

# ---- Summary helpers ----

def _format_total_time(seconds: float) -> str:
    """Format as HH:MM:SS.fffffff (7 fractional digits)."""
    t = seconds
    h = int(t // 3600); t -= 3600 * h
    m = int(t // 60);   t -= 60 * m
    s = int(t);         t -= s
    return f"{h:02d}:{m:02d}:{s:02d}.{int(round(t * 10_000_000)):07d}"

def summarize(scores: List[int]) -> Dict[str, float]:
    if not scores:
        return {"games": 0, "low": 0, "median": 0, "high": 0, "mean": 0.0}
    return {
        "games": len(scores),
        "low": min(scores),
        "median": statistics.median(scores),
        "high": max(scores),
        "mean": statistics.mean(scores),
    }

def print_summary(policy_name: str, scores: List[int], total_seconds: float):
    s = summarize(scores)
    print(f"[{policy_name}] {s['games']} games completed!")
    print(f"Total time: {_format_total_time(total_seconds)}")
    print(f"Low Score: {s['low']}")
    print(f"Median Score: {s['median']}")
    print(f"High Score: {s['high']}")
    print(f"Mean Score: {s['mean']:.2f}")

# ---- Plotting helpers ----

def plot_results(results: Dict[str, List[int]], show=True, outdir=None):
    """
    Quick-look plots per policy:
      - Overlaid score histograms
      - Box-and-whisker plot
      - ECDF
    Optionally saves PNGs if outdir is provided.
    """
    results = {k: v for k, v in results.items() if v}
    if not results:
        print("No scores to plot.")
        return

    fig1 = plt.figure()
    for name, scores in results.items():
        plt.hist(np.asarray(scores, dtype=float), bins="auto", alpha=0.5, edgecolor="black", label=name)
    plt.title("Final Score Distribution (Histogram)")
    plt.xlabel("Score")
    plt.ylabel("Count")
    plt.legend()
    plt.tight_layout()

    fig2 = plt.figure()
    plt.boxplot([np.asarray(v, dtype=float) for v in results.values()], showfliers=True)
    plt.xticks(range(1, len(results) + 1), list(results.keys()))
    plt.title("Final Score Distribution (Box & Whisker)")
    plt.ylabel("Score")
    plt.tight_layout()

    fig3 = plt.figure()
    for name, scores in results.items():
        xs = np.sort(np.asarray(scores, dtype=float))
        ys = np.arange(1, len(xs) + 1) / len(xs)
        plt.plot(xs, ys, label=name)
    plt.title("Final Score ECDF")
    plt.xlabel("Score")
    plt.ylabel("Proportion ≤ score")
    plt.legend()
    plt.tight_layout()

    figs = [fig1, fig2, fig3]
    if outdir:
        os.makedirs(outdir, exist_ok=True)
        paths = [
            os.path.join(outdir, "scores_hist.png"),
            os.path.join(outdir, "scores_boxplot.png"),
            os.path.join(outdir, "scores_ecdf.png"),
        ]
        for p, fig in zip(paths, figs):
            fig.savefig(p, dpi=150)
        print("Saved plots:")
        for p in paths:
            print(" -", p)

    if show:
        plt.show()
    else:
        for fig in figs:
            plt.close(fig)

# ---- CLI ----

def run_benchmark(policies: List[str], games: int, seed: Optional[int], params: EVParams,
                  verbose: bool = False) -> Dict[str, List[int]]:
    table: Dict[str, Policy] = {
        "ev": make_ev_policy(params),
        "first": first_policy,
        "random": random_policy,
    }
    results: Dict[str, List[int]] = {}
    for name in policies:
        policy = table[name]
        scores: List[int] = []
        t0 = time.perf_counter()
        for i in range(games):
            # Same seed sequence for every policy so they see the same decks
            game_seed = None if seed is None else seed + i
            scores.append(play(policy, seed=game_seed, verbose=verbose))
            logger.debug("%s game %d/%d: %d", name, i + 1, games, scores[-1])
        print_summary(name, scores, time.perf_counter() - t0)
        results[name] = scores
    return results

if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Streams self-play benchmark (serial only)")
    ap.add_argument("--seed", type=int, default=3000)
    ap.add_argument("--games", type=int, default=10, help="Number of games per policy")
    ap.add_argument("--policy", nargs="+", choices=["ev", "first", "random"], default=["ev", "random"])
    ap.add_argument("--sims", type=int, default=32, help="Rollout samples per truncated subtree (ev policy)")
    ap.add_argument("--depth", type=int, default=0, help="Draws searched exactly before rolling out (ev policy)")
    ap.add_argument("--verbose", action="store_true", help="Print every placement")

    # ---- Plotting args ----
    ap.add_argument("--plot", action="store_true", default=False, help="Show result plots after runs")
    ap.add_argument("--save-plots", metavar="DIR", default=None,
                    help="Save plots to DIR (e.g., 'plots').")
    ap.add_argument("--no-show", action="store_true", default=False,
                    help="Create/Save plots without opening a window (useful on headless runs)")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO)
    _numba_warmup()
    res = run_benchmark(args.policy, args.games, args.seed,
                        EVParams(sims=args.sims, rollout_limit=args.depth), verbose=args.verbose)

    if args.plot or args.save_plots is not None:
        plot_results(res, show=not args.no_show, outdir=args.save_plots)
