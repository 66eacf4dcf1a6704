"""
minimax.py - Depth-bounded alpha-beta search for Connect Four

This module provides AlphaBetaPlayer, a Player that searches the game tree to
a fixed depth and scores the leaves with a pluggable evaluation callable.

At the root every column is searched as its own task on a thread pool, each
with a full (-inf, +inf) window. States are immutable, so the tasks share
nothing but the read-only root position and the evaluation function.
"""

import math
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple

from c4lab.debug import debug
from c4lab.utils import COLS, Piece, center_distance, center_out_order
from c4lab.game.board import BoardState
from c4lab.game.players import Player

EvalFunc = Callable[[BoardState, Piece], float]


class AlphaBetaPlayer(Player):
    """
    A Connect Four player using alpha-beta pruned minimax.

    The search is deterministic for a fixed evaluation function and depth:
    root scores are collected per column and ties go to the column nearest
    the centre, whatever order the parallel tasks finish in.
    """

    name = "alphabeta"

    def __init__(self, color: Piece, depth: int, evaluate: EvalFunc,
                 move_order: Optional[Sequence[int]] = None,
                 max_workers: Optional[int] = COLS):
        """
        Initialize the search player.

        Args:
            color: The colour this player moves for
            depth: Search depth in plies, at least 1
            evaluate: Scores a state from a given colour's perspective
            move_order: Column order tried at inner nodes (centre-out default)
            max_workers: Threads for the root fan-out (None or 1 searches serially)
        """
        if depth < 1:
            raise ValueError(f"Search depth must be at least 1, got {depth}")
        if color == Piece.EMPTY:
            raise ValueError("Search player needs a colour")
        self.color = color
        self.depth = depth
        self.evaluate = evaluate
        self.move_order: Tuple[int, ...] = tuple(move_order) if move_order is not None else center_out_order()
        self.max_workers = max_workers
        self.nodes_evaluated = 0
        self._nodes_lock = threading.Lock()

    def next_move(self, state: BoardState) -> int:
        """
        Get the best column for this player.

        Args:
            state: The current position, with this player to move

        Returns:
            The chosen column; never a full one while a legal move exists
        """
        self.nodes_evaluated = 0
        debug.start_timer(f"search-{id(self)}")

        scores = self.root_scores(state)
        best_column = max(range(COLS), key=lambda col: (scores[col], -center_distance(col)))

        elapsed = debug.end_timer(f"search-{id(self)}", "search")
        debug.debug(f"{self.color.name} depth {self.depth}: column {best_column} "
                    f"(scores {['%.3f' % s for s in scores]}, nodes {self.nodes_evaluated}, "
                    f"{elapsed or 0.0:.3f}s)", "search")
        return best_column

    def root_scores(self, state: BoardState) -> List[float]:
        """
        Score every column of ``state``; illegal columns score -inf.

        All columns are searched before any result is used.
        """
        if self.max_workers is None or self.max_workers <= 1:
            return [self._score_column(state, col) for col in range(COLS)]
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [pool.submit(self._score_column, state, col) for col in range(COLS)]
            return [future.result() for future in futures]

    def _score_column(self, state: BoardState, col: int) -> float:
        if not state.is_valid_move(state.turn, col):
            return -math.inf
        child = state.apply(state.turn, col)
        return self.alphabeta(child, self.depth - 1, -math.inf, math.inf)

    def alphabeta(self, state: BoardState, depth: int, alpha: float, beta: float) -> float:
        """
        Alpha-beta search value of ``state`` for this player's colour.

        Args:
            state: Position to evaluate
            depth: Remaining plies
            alpha: Best value the maximizer can already guarantee
            beta: Best value the minimizer can already guarantee

        Returns:
            The value clamped to [alpha, beta]; exact with a full window
        """
        with self._nodes_lock:
            self.nodes_evaluated += 1

        if depth == 0 or state.is_terminal():
            return self.evaluate(state, self.color)

        turn = state.turn
        if turn == self.color:
            for col in self.move_order:
                if not state.is_valid_move(turn, col):
                    continue
                alpha = max(alpha, self.alphabeta(state.apply(turn, col), depth - 1, alpha, beta))
                if beta <= alpha:
                    break
            return alpha

        for col in self.move_order:
            if not state.is_valid_move(turn, col):
                continue
            beta = min(beta, self.alphabeta(state.apply(turn, col), depth - 1, alpha, beta))
            if beta <= alpha:
                break
        return beta

    def minimax(self, state: BoardState, depth: int) -> float:
        """Plain minimax value without pruning, for checking alphabeta."""
        if depth == 0 or state.is_terminal():
            return self.evaluate(state, self.color)
        values = [self.minimax(state.apply(state.turn, col), depth - 1)
                  for col in self.move_order if state.is_valid_move(state.turn, col)]
        return max(values) if state.turn == self.color else min(values)

    def __repr__(self) -> str:
        return f"AlphaBetaPlayer(color={self.color.name}, depth={self.depth})"
