"""
players.py - The player capability and simple player implementations

Anything with a ``next_move(state) -> column`` method can take either side in
run_game: search agents, console humans, scripted replays and random movers.
"""

from typing import Iterable, List, Optional

import numpy as np

from c4lab.debug import debug
from c4lab.game.board import BoardState


class Player:
    """Base class for anything that can choose a move."""

    name = "player"

    def next_move(self, state: BoardState) -> int:
        """
        Choose a column to play in ``state``.

        Args:
            state: Current position; ``state.turn`` is this player's colour

        Returns:
            Column index (0-indexed)
        """
        raise NotImplementedError


class ScriptedPlayer(Player):
    """Replays a fixed list of columns, e.g. a recorded game."""

    name = "scripted"

    def __init__(self, columns: Iterable[int]):
        self.columns: List[int] = list(columns)
        self._index = 0

    def next_move(self, state: BoardState) -> int:
        if self._index >= len(self.columns):
            raise IndexError(f"Scripted player ran out of moves after {self._index}")
        column = self.columns[self._index]
        self._index += 1
        debug.trace(f"Scripted move {self._index}: column {column}", "runner")
        return column

    @property
    def remaining(self) -> int:
        return len(self.columns) - self._index


class RandomPlayer(Player):
    """Plays uniformly among the legal columns."""

    name = "random"

    def __init__(self, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def next_move(self, state: BoardState) -> int:
        return int(self.rng.choice(state.legal_moves()))
