"""Tests for the alpha-beta search player."""

import math

import numpy as np
import pytest

from c4lab.utils import ROWS, COLS, Piece
from c4lab.game.board import BoardState
from c4lab.ai.evaluation import EvaluationWeights, LinearEvaluator
from c4lab.ai.minimax import AlphaBetaPlayer
from c4lab.ai.training import random_weights


def zero_eval(state, piece):
    return 0.0


class TestConstruction:

    def test_depth_must_be_positive(self):
        with pytest.raises(ValueError):
            AlphaBetaPlayer(Piece.RED, 0, zero_eval)

    def test_needs_a_colour(self):
        with pytest.raises(ValueError):
            AlphaBetaPlayer(Piece.EMPTY, 2, zero_eval)

    def test_default_move_order_is_centre_out(self):
        player = AlphaBetaPlayer(Piece.RED, 2, zero_eval)
        assert player.move_order == (3, 2, 4, 1, 5, 0, 6)


class TestMoveChoice:

    def test_takes_immediate_win(self, win_loss_weights):
        state = BoardState.from_moves([3, 0, 3, 1, 3, 2])
        for depth in (1, 2, 3):
            player = AlphaBetaPlayer(Piece.RED, depth, LinearEvaluator(win_loss_weights),
                                     max_workers=1)
            assert player.next_move(state) == 3

    def test_blocks_immediate_loss(self, win_loss_weights):
        state = BoardState.from_moves([3, 0, 3, 1, 3])
        player = AlphaBetaPlayer(Piece.BLACK, 2, LinearEvaluator(win_loss_weights),
                                 max_workers=1)
        assert player.next_move(state) == 3

    def test_ties_go_to_the_centre(self, empty_state):
        player = AlphaBetaPlayer(Piece.RED, 2, zero_eval, max_workers=1)
        assert player.next_move(empty_state) == 3

    def test_tie_between_neighbours_prefers_right(self):
        state = BoardState.from_moves([3] * ROWS)
        player = AlphaBetaPlayer(Piece.RED, 2, zero_eval, max_workers=1)
        assert player.next_move(state) == 4

    def test_never_picks_full_column(self):
        # Make the full column the only attractive one by scoring it highest
        state = BoardState.from_moves([0] * ROWS)

        def favour_column_zero(s, piece):
            return 1.0 if s.last_move == 0 else 0.0

        player = AlphaBetaPlayer(Piece.RED, 1, favour_column_zero, max_workers=1)
        scores = player.root_scores(state)
        assert scores[0] == -math.inf
        assert player.next_move(state) != 0

    def test_deterministic(self, random_positions):
        weights = random_weights(np.random.default_rng(5))
        for state in random_positions:
            if state.is_terminal():
                continue
            player = AlphaBetaPlayer(state.turn, 3, LinearEvaluator(weights), max_workers=1)
            first = player.next_move(state)
            assert all(player.next_move(state) == first for _ in range(3))

    def test_threaded_matches_serial(self, random_positions):
        weights = random_weights(np.random.default_rng(11))
        for state in random_positions:
            if state.is_terminal():
                continue
            serial = AlphaBetaPlayer(state.turn, 3, LinearEvaluator(weights), max_workers=1)
            threaded = AlphaBetaPlayer(state.turn, 3, LinearEvaluator(weights), max_workers=COLS)
            assert serial.root_scores(state) == threaded.root_scores(state)
            assert serial.next_move(state) == threaded.next_move(state)


class TestSearchValue:

    def test_alphabeta_equals_minimax(self, random_positions):
        rng = np.random.default_rng(3)
        for state in random_positions:
            for color in (Piece.RED, Piece.BLACK):
                player = AlphaBetaPlayer(color, 3, LinearEvaluator(random_weights(rng)))
                for depth in (1, 2, 3):
                    expected = player.minimax(state, depth)
                    assert player.alphabeta(state, depth, -math.inf, math.inf) == pytest.approx(expected)

    def test_terminal_state_is_evaluated_directly(self, win_loss_weights):
        state = BoardState.from_moves([3, 0, 3, 1, 3, 2, 3])
        player = AlphaBetaPlayer(Piece.RED, 4, LinearEvaluator(win_loss_weights))
        assert player.alphabeta(state, 4, -math.inf, math.inf) == 1.0
        assert player.nodes_evaluated == 1

    def test_counts_nodes(self, empty_state):
        player = AlphaBetaPlayer(Piece.RED, 2, zero_eval, max_workers=1)
        player.next_move(empty_state)
        assert player.nodes_evaluated > COLS
