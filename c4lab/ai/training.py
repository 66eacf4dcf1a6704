"""
training.py - Self-play scaffolding shared by the genetic and LMS trainers

Both learners pit candidate evaluation functions against each other through
AlphaBetaPlayers and run_game; this module holds the match helper, random
initialisation of weights, and the win/draw bookkeeping.
"""

import time
from typing import Dict, List, Optional

import numpy as np

from c4lab.debug import debug
from c4lab.utils import Piece
from c4lab.game.rules import run_game, ShowHook
from c4lab.ai.evaluation import NUM_FEATURES, EvaluationWeights
from c4lab.ai.minimax import AlphaBetaPlayer, EvalFunc

# Default search depth for training games
SEARCH_DEPTH = 4


def random_weights(rng: np.random.Generator) -> EvaluationWeights:
    """Coefficients drawn uniformly from [-1, 1)."""
    return EvaluationWeights.from_iterable(2.0 * rng.random(NUM_FEATURES) - 1.0)


def play_match(red_eval: EvalFunc, black_eval: EvalFunc, depth: int = SEARCH_DEPTH,
               on_show: Optional[ShowHook] = None,
               max_workers: Optional[int] = None) -> Piece:
    """
    Play one game between two evaluation functions.

    Args:
        red_eval: Evaluation used by the RED search player
        black_eval: Evaluation used by the BLACK search player
        depth: Search depth for both players
        on_show: Optional observer for every state of the game
        max_workers: Root fan-out threads per search (None uses one per column)

    Returns:
        The winner, or Piece.EMPTY for a draw
    """
    workers = {} if max_workers is None else {'max_workers': max_workers}
    red = AlphaBetaPlayer(Piece.RED, depth, red_eval, **workers)
    black = AlphaBetaPlayer(Piece.BLACK, depth, black_eval, **workers)
    return run_game(red, black, on_show=on_show, on_error=_report_error)


def _report_error(error: Exception):
    debug.error(f"Search player produced an illegal move: {error}", "training")


class TrainingStats:
    """Track game outcomes and per-generation summaries during training."""

    def __init__(self):
        self.reset()

    def reset(self):
        """Reset all statistics."""
        self.games = 0
        self.red_wins = 0
        self.black_wins = 0
        self.draws = 0
        self.history: List[Dict[str, float]] = []
        self._started = time.time()

    def add_game(self, winner: Piece):
        self.games += 1
        if winner == Piece.RED:
            self.red_wins += 1
        elif winner == Piece.BLACK:
            self.black_wins += 1
        else:
            self.draws += 1

    def add_generation(self, index: int, best_value: float, **extra: float):
        """Record the summary of one generation or iteration."""
        entry = {'index': index, 'best': float(best_value),
                 'elapsed': time.time() - self._started}
        entry.update({key: float(value) for key, value in extra.items()})
        self.history.append(entry)

    def get_summary(self) -> Dict[str, float]:
        """Win/draw rates over every game recorded so far."""
        if self.games == 0:
            return {'games': 0, 'red_win_rate': 0.0, 'black_win_rate': 0.0, 'draw_rate': 0.0}
        return {
            'games': self.games,
            'red_win_rate': self.red_wins / self.games,
            'black_win_rate': self.black_wins / self.games,
            'draw_rate': self.draws / self.games,
        }
