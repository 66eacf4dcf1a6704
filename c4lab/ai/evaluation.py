"""
evaluation.py - Linear evaluation function over threat features

A position is described by six features from one side's perspective:

    [win, lose, my_even_threats, their_even_threats, my_odd_threats, their_odd_threats]

and scored as the dot product with an EvaluationWeights vector. Both learners
(genetic and LMS) tune those six weights; the search agents only ever see the
resulting ``(state, piece) -> float`` callable.

A threat is an empty cell that would complete a diagonal run of four for a
piece, looking past the cell in each of the four diagonal directions. Threats
are split by the parity of their row: who can be forced to fill an even or an
odd row decides most endgames.
"""

from typing import Iterable, NamedTuple

import numpy as np

from c4lab.utils import ROWS, COLS, CONNECT_N, THREAT_DIRECTIONS, Piece
from c4lab.game.board import BoardState

NUM_FEATURES = 6
FEATURE_NAMES = ('win', 'lose', 'my_even_threats', 'their_even_threats',
                 'my_odd_threats', 'their_odd_threats')

_PAD = CONNECT_N - 1


class EvaluationWeights(NamedTuple):
    """Coefficients of one candidate evaluation function."""
    win: float
    lose: float
    my_even_threats: float
    their_even_threats: float
    my_odd_threats: float
    their_odd_threats: float

    @classmethod
    def from_iterable(cls, values: Iterable[float]) -> 'EvaluationWeights':
        values = [float(v) for v in values]
        if len(values) != NUM_FEATURES:
            raise ValueError(f"Expected {NUM_FEATURES} coefficients, got {len(values)}")
        return cls(*values)

    def as_array(self) -> np.ndarray:
        return np.array(self, dtype=np.float64)

    def to_list(self):
        return [float(v) for v in self]


def count_threats(state: BoardState, piece: Piece, col: int, row: int) -> int:
    """
    Count the diagonal threats ``piece`` would have by playing at (col, row).

    Args:
        state: Position to inspect
        piece: Colour whose threats are counted
        col: Target column
        row: Target row

    Returns:
        Number of diagonal directions (0-4) whose next three cells past the
        target all hold ``piece``; 0 if the target is occupied
    """
    if state.piece_at(col, row) != Piece.EMPTY:
        return 0
    threats = 0
    for dc, dr in THREAT_DIRECTIONS:
        if all(state.piece_at(col + k * dc, row + k * dr) == piece
               for k in range(1, CONNECT_N)):
            threats += 1
    return threats


def threat_map(state: BoardState, piece: Piece) -> np.ndarray:
    """
    count_threats for every cell at once.

    Returns:
        int array of shape (COLS, ROWS) indexed [col, row]
    """
    padded = np.zeros((COLS + 2 * _PAD, ROWS + 2 * _PAD), dtype=np.int8)
    padded[_PAD:_PAD + COLS, _PAD:_PAD + ROWS] = state.cells
    mine = padded == piece.value

    result = np.zeros((COLS, ROWS), dtype=np.int64)
    for dc, dr in THREAT_DIRECTIONS:
        run = np.ones((COLS, ROWS), dtype=bool)
        for k in range(1, CONNECT_N):
            c0 = _PAD + k * dc
            r0 = _PAD + k * dr
            run &= mine[c0:c0 + COLS, r0:r0 + ROWS]
        result += run
    result[state.cells != Piece.EMPTY.value] = 0
    return result


def extract_features(state: BoardState, perspective: Piece) -> np.ndarray:
    """
    Feature vector of ``state`` seen by ``perspective``.

    Even rows are those with ``row % 2 == 0`` (the bottom row is row 0).
    A drawn game leaves both the win and lose features at 0.
    """
    features = np.zeros(NUM_FEATURES, dtype=np.float64)
    winner = state.winner()
    if winner == perspective:
        features[0] = 1.0
    elif winner != Piece.EMPTY:
        features[1] = 1.0

    mine = threat_map(state, perspective)
    theirs = threat_map(state, perspective.other())
    features[2] = mine[:, 0::2].sum()
    features[3] = theirs[:, 0::2].sum()
    features[4] = mine[:, 1::2].sum()
    features[5] = theirs[:, 1::2].sum()
    return features


def score(weights: EvaluationWeights, state: BoardState, perspective: Piece) -> float:
    """Linear score of ``state`` for ``perspective`` under ``weights``."""
    return float(np.dot(weights.as_array(), extract_features(state, perspective)))


class LinearEvaluator:
    """Callable ``(state, piece) -> float`` bound to fixed weights."""

    def __init__(self, weights: EvaluationWeights):
        self.weights = weights
        self._coeffs = weights.as_array()

    def __call__(self, state: BoardState, perspective: Piece) -> float:
        return float(np.dot(self._coeffs, extract_features(state, perspective)))

    def __repr__(self) -> str:
        return f"LinearEvaluator({self.weights})"
