"""
lms.py - Online least-mean-squares learning of evaluation weights

An LMSEvaluator is an evaluation function that remembers every position it
scores. After a batch of games, ``learn`` nudges its coefficients toward a
target value for each remembered position:

- BOOTSTRAP (default): a TD(0)-style target taken from the memoized scores of
  the position's successors, max when the evaluator's side is to move and
  min otherwise. Terminal positions target their reward (win 1, loss -1,
  draw 0). Positions with no memoized successor are skipped for this batch.
- OUTCOME: the final result of the game the position was seen in, reported
  through ``end_game``.

Scores are produced from worker threads during the root fan-out, so records
pass through a bounded queue. ``LearningMemory.flush`` drains it and is the
barrier every reader goes through.
"""

import queue
import threading
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from c4lab.debug import debug
from c4lab.utils import Piece, TrainingInvariantError
from c4lab.game.board import BoardState, successors
from c4lab.ai.evaluation import EvaluationWeights, extract_features
from c4lab.ai.training import SEARCH_DEPTH, TrainingStats, play_match, random_weights
from c4lab.data.data_manager import LMSRecord, load_lms_state, save_lms_state

POPULATION_SIZE = 3
LEARNING_RATE = 0.00001
QUEUE_SIZE = 4096

WIN_REWARD = 1.0
LOSE_REWARD = -1.0
DRAW_REWARD = 0.0

MemoKey = Tuple[bytes, Piece]


def outcome_reward(winner: Piece, perspective: Piece) -> float:
    """Reward of a finished game for ``perspective``."""
    if winner == perspective:
        return WIN_REWARD
    if winner == Piece.EMPTY:
        return DRAW_REWARD
    return LOSE_REWARD


class TargetPolicy(Enum):
    """Where the learning target of a remembered position comes from."""
    BOOTSTRAP = "bootstrap"
    OUTCOME = "outcome"


class LearningMemory:
    """
    Positions scored since the last learning pass.

    ``features``, ``states``, ``perspectives`` and ``scores`` are parallel
    lists, one entry per evaluation. ``memo`` maps (board contents,
    perspective) to the latest score for that position. ``outcomes`` holds
    one final game result per recorded position once ``end_game`` has run.
    Everything is discarded by ``clear``.
    """

    def __init__(self, queue_size: int = QUEUE_SIZE):
        self._pending: "queue.Queue[Tuple[np.ndarray, BoardState, Piece, float]]" = queue.Queue(maxsize=queue_size)
        self._lock = threading.Lock()
        self.features: List[np.ndarray] = []
        self.states: List[BoardState] = []
        self.perspectives: List[Piece] = []
        self.scores: List[float] = []
        self.outcomes: List[float] = []
        self.memo: Dict[MemoKey, float] = {}

    def record(self, features: np.ndarray, state: BoardState, perspective: Piece, value: float):
        """Queue one evaluation; drains the queue itself when it is full."""
        item = (features, state, perspective, value)
        while True:
            try:
                self._pending.put_nowait(item)
                return
            except queue.Full:
                self.flush()

    def flush(self):
        """Move every queued evaluation into the lists and memo."""
        with self._lock:
            while True:
                try:
                    features, state, perspective, value = self._pending.get_nowait()
                except queue.Empty:
                    break
                self.features.append(features)
                self.states.append(state)
                self.perspectives.append(perspective)
                self.scores.append(value)
                self.memo[(state.key(), perspective)] = value

    def end_game(self, winner: Piece):
        """Give every position recorded since the last game its final reward."""
        self.flush()
        with self._lock:
            for perspective in self.perspectives[len(self.outcomes):]:
                self.outcomes.append(outcome_reward(winner, perspective))

    def lookup(self, state: BoardState, perspective: Piece) -> Optional[float]:
        return self.memo.get((state.key(), perspective))

    def clear(self):
        self.flush()
        with self._lock:
            self.features = []
            self.states = []
            self.perspectives = []
            self.scores = []
            self.outcomes = []
            self.memo = {}

    def __len__(self) -> int:
        return len(self.features)


class LMSEvaluator:
    """
    An evaluation function that learns from the positions it scores.

    Calling the evaluator scores a state as ``coeffs . features`` and records
    it in ``memory``; the search agents use it like any other evaluation.
    """

    def __init__(self, weights: EvaluationWeights,
                 learning_rate: float = LEARNING_RATE,
                 target_policy: TargetPolicy = TargetPolicy.BOOTSTRAP,
                 memory: Optional[LearningMemory] = None):
        self.coeffs = weights.as_array()
        self.learning_rate = learning_rate
        self.target_policy = target_policy
        self.memory = memory if memory is not None else LearningMemory()

    @property
    def weights(self) -> EvaluationWeights:
        return EvaluationWeights.from_iterable(self.coeffs)

    def approximate(self, features: np.ndarray) -> float:
        return float(np.dot(self.coeffs, features))

    def __call__(self, state: BoardState, perspective: Piece) -> float:
        features = extract_features(state, perspective)
        value = self.approximate(features)
        self.memory.record(features, state, perspective, value)
        return value

    def end_game(self, winner: Piece):
        """Report the winner (Piece.EMPTY for a draw) of the game just played."""
        self.memory.end_game(winner)

    def bootstrap_target(self, state: BoardState, perspective: Piece) -> Optional[float]:
        """
        One-step lookahead target for ``state``.

        Returns:
            The reward of a terminal state, the max/min memoized successor
            score otherwise, or None if no successor has been scored
        """
        if state.is_terminal():
            return outcome_reward(state.winner(), perspective)
        values = [self.memory.lookup(child, perspective) for _, child in successors(state)]
        values = [value for value in values if value is not None]
        if not values:
            return None
        return max(values) if state.turn == perspective else min(values)

    def _check_invariants(self):
        memory = self.memory
        counts = {len(memory.features), len(memory.states),
                  len(memory.perspectives), len(memory.scores)}
        if len(counts) != 1:
            raise TrainingInvariantError(
                f"Recorded sample lists disagree in length: {sorted(counts)}")
        if self.target_policy == TargetPolicy.OUTCOME and len(memory.outcomes) != len(memory.features):
            raise TrainingInvariantError(
                f"{len(memory.features)} feature vectors but {len(memory.outcomes)} outcomes")

    def learn(self) -> float:
        """
        Update the coefficients from everything recorded since the last pass.

        Every sample is visited once in recording order, approximated with
        the latest coefficients, and corrected by
        ``coeff[j] += mu * (target - approx) * feature[j]``.

        Returns:
            Mean absolute error over the trained samples after the update
            (0.0 if nothing could be trained)

        Raises:
            TrainingInvariantError: If the recorded data is inconsistent
        """
        memory = self.memory
        memory.flush()
        self._check_invariants()

        trained: List[Tuple[np.ndarray, float]] = []
        skipped = 0
        for i, features in enumerate(memory.features):
            if self.target_policy == TargetPolicy.OUTCOME:
                target = memory.outcomes[i]
            else:
                target = self.bootstrap_target(memory.states[i], memory.perspectives[i])
                if target is None:
                    skipped += 1
                    continue
            approx = self.approximate(features)
            self.coeffs = self.coeffs + self.learning_rate * (target - approx) * features
            trained.append((features, target))

        if trained:
            errors = [abs(self.approximate(features) - target) for features, target in trained]
            average_error = float(np.mean(errors))
        else:
            average_error = 0.0

        debug.debug(f"Learned from {len(trained)} samples ({skipped} skipped), "
                    f"mean error {average_error:.4f}", "lms")
        memory.clear()
        return average_error


class LMSTrainer:
    """
    Round-robin self-play between LMS evaluators.

    Every iteration each ordered pair of evaluators (self-pairs included)
    plays one game, then each evaluator learns from its batch. The
    coefficients with the least error are kept as the iteration's best.
    """

    def __init__(self, population_size: int = POPULATION_SIZE,
                 depth: int = SEARCH_DEPTH,
                 learning_rate: float = LEARNING_RATE,
                 target_policy: TargetPolicy = TargetPolicy.BOOTSTRAP,
                 coefficients: Optional[Sequence[EvaluationWeights]] = None,
                 save_path: Optional[str] = None,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None,
                 max_workers: Optional[int] = None):
        if population_size < 1:
            raise ValueError("LMS training needs at least one evaluator")
        self.population_size = population_size
        self.depth = depth
        self.save_path = save_path
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.max_workers = max_workers
        self.stats = TrainingStats()

        self.iteration = 0
        self.best_coefficients: Optional[EvaluationWeights] = None
        self.least_error = float('inf')

        if coefficients is None and save_path is not None:
            record = load_lms_state(save_path)
            if record is not None:
                coefficients = record.coefficients
                self.iteration = record.iteration
                self.best_coefficients = record.best_coefficients
                self.least_error = record.least_error
            else:
                debug.info(f"Starting fresh coefficients for {save_path}", "lms")

        coefficients = list(coefficients or [])[:population_size]
        while len(coefficients) < population_size:
            coefficients.append(random_weights(self.rng))
        self.evaluators = [LMSEvaluator(weights, learning_rate, target_policy)
                           for weights in coefficients]

    def play_round(self) -> np.ndarray:
        """Play every ordered pairing once; returns wins per evaluator."""
        wins = np.zeros(self.population_size, dtype=np.int64)
        for g1, red in enumerate(self.evaluators):
            for g2, black in enumerate(self.evaluators):
                debug.debug(f"Iteration {self.iteration}, coeffs {g1 + 1} vs {g2 + 1}", "lms")
                winner = play_match(red, black, self.depth, max_workers=self.max_workers)
                self.stats.add_game(winner)
                red.end_game(winner)
                if black is not red:
                    black.end_game(winner)
                if winner == Piece.RED:
                    wins[g1] += 1
                elif winner == Piece.BLACK:
                    wins[g2] += 1
        return wins

    def step(self) -> Tuple[EvaluationWeights, float]:
        """
        Run one iteration: play the round, learn, pick the best coefficients.

        Returns:
            The best coefficients of this iteration and their error
        """
        wins = self.play_round()

        self.least_error = float('inf')
        for evaluator in self.evaluators:
            error = evaluator.learn()
            if error < self.least_error:
                self.least_error = error
                self.best_coefficients = evaluator.weights

        self.stats.add_generation(self.iteration, self.least_error, wins=float(wins.max()))
        debug.info(f"Iteration {self.iteration}: least error {self.least_error:.4f}, "
                   f"best coeffs {self.best_coefficients.to_list()}", "lms")
        self.iteration += 1
        self.save()
        return self.best_coefficients, self.least_error

    def run(self, iterations: int) -> Tuple[Optional[EvaluationWeights], float]:
        for _ in range(iterations):
            self.step()
        return self.best_coefficients, self.least_error

    def save(self) -> bool:
        if self.save_path is None:
            return False
        return save_lms_state(self.save_path, LMSRecord(
            coefficients=[evaluator.weights for evaluator in self.evaluators],
            iteration=self.iteration,
            best_coefficients=self.best_coefficients,
            least_error=self.least_error,
        ))
