"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from c4lab.debug import debug, DebugLevel
from c4lab.game.board import BoardState
from c4lab.game.players import RandomPlayer
from c4lab.ai.evaluation import EvaluationWeights

# Vertical win for RED in column 3 while BLACK plays 0, 1, 2
VERTICAL_WIN = [3, 0, 3, 1, 3, 2, 3]

# 42 moves filling the board without a four anywhere. Columns 0, 1, 4, 5
# read R B R B R B bottom-up, columns 2, 3, 6 read B R B R B R.
DRAW_GAME = ([0, 2, 2, 0, 0, 2, 2, 0, 0, 2, 2, 0]
             + [1, 3, 3, 1, 1, 3, 3, 1, 1, 3, 3, 1]
             + [4, 6, 6, 4, 4, 6, 6, 4, 4, 6, 6, 4]
             + [5, 5, 5, 5, 5, 5])

# RED holds (1,1), (2,2), (3,3) with (0,0) and (4,4) empty; BLACK to move.
# BLACK has no diagonal run of three, so it has no threats.
DIAGONAL_THREAT = [6, 1, 1, 2, 6, 2, 2, 3, 5, 3, 3, 5, 3]


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Keep test output free of training chatter."""
    debug.configure(level=DebugLevel.ERROR)
    yield


@pytest.fixture
def empty_state():
    return BoardState()


@pytest.fixture
def threat_state():
    return BoardState.from_moves(DIAGONAL_THREAT)


@pytest.fixture
def win_loss_weights():
    """Only the outcome features count."""
    return EvaluationWeights(1.0, -1.0, 0.0, 0.0, 0.0, 0.0)


@pytest.fixture
def threat_weights():
    return EvaluationWeights(10.0, -10.0, 1.0, -1.0, 0.5, -0.5)


def random_game(seed: int, max_moves: int = 42):
    """Play a seeded random game; returns the list of columns played."""
    player = RandomPlayer(seed=seed)
    state = BoardState()
    moves = []
    while not state.is_terminal() and len(moves) < max_moves:
        column = player.next_move(state)
        state = state.apply(state.turn, column)
        moves.append(column)
    return moves


@pytest.fixture
def random_positions():
    """A spread of mid-game positions from seeded random games."""
    positions = []
    for seed in range(6):
        moves = random_game(seed, max_moves=8 + 2 * seed)
        positions.append(BoardState.from_moves(moves))
    return positions


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
