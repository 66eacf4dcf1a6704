"""
board.py - Immutable Connect Four board state and win detection

This module implements BoardState, the value passed between the game runner,
the search agents and the learners. A state is never changed in place:
``apply`` returns a new state, so any number of threads can explore
hypothetical futures of the same ancestor without locking.
"""

import operator
from typing import Iterable, List, Optional, Tuple

import numpy as np

from c4lab.debug import debug
from c4lab.utils import (ROWS, COLS, CONNECT_N, WIN_DIRECTIONS, Piece,
                         InvalidMoveError, is_valid_position, render_board_ascii)


class _RunCounter:
    """Running count of identical non-empty pieces along a line."""

    __slots__ = ("count", "last_piece")

    def __init__(self):
        self.count = 0
        self.last_piece = Piece.EMPTY

    def add(self, piece: Piece) -> Piece:
        """Feed the next cell; returns the piece once it reaches CONNECT_N."""
        if piece == Piece.EMPTY:
            self.count = 0
            self.last_piece = Piece.EMPTY
            return Piece.EMPTY
        if piece == self.last_piece:
            self.count += 1
            if self.count >= CONNECT_N:
                return piece
        else:
            self.count = 1
            self.last_piece = piece
        return Piece.EMPTY


def _check_direction(state: 'BoardState', col: int, row: int, dc: int, dr: int) -> Piece:
    # Window from CONNECT_N - 1 cells before (col, row) to CONNECT_N - 1 after
    counter = _RunCounter()
    for step in range(-(CONNECT_N - 1), CONNECT_N):
        found = counter.add(state.piece_at(col + step * dc, row + step * dr))
        if found != Piece.EMPTY:
            return found
    return Piece.EMPTY


def _as_column(column) -> Optional[int]:
    """Column as a plain int, or None for floats, strings and the like."""
    try:
        return operator.index(column)
    except TypeError:
        return None


def find_winner(state: 'BoardState') -> Piece:
    """
    Find a winning line through the most recently placed piece.

    Any win must include the newest piece, so only the four lines through it
    are scanned. The cost is constant regardless of how full the board is.

    Args:
        state: The state to check

    Returns:
        The winning Piece, or Piece.EMPTY if there is none
    """
    col = state.last_move
    row = state.heights[col] - 1
    if state.piece_at(col, row) == Piece.EMPTY:
        return Piece.EMPTY
    for dc, dr in WIN_DIRECTIONS:
        found = _check_direction(state, col, row, dc, dr)
        if found != Piece.EMPTY:
            return found
    return Piece.EMPTY


class BoardState:
    """
    A Connect Four position.

    Attributes:
        cells: Read-only int8 array of Piece values indexed [col, row]
        heights: Number of pieces in each column
        turn: The Piece to move next
        last_move: The column most recently played (0 on the empty board)
    """

    __slots__ = ("cells", "heights", "turn", "last_move", "_winner")

    def __init__(self):
        """Create the empty board with RED to move."""
        self._set(np.zeros((COLS, ROWS), dtype=np.int8), (0,) * COLS, Piece.RED, 0)

    def _set(self, cells: np.ndarray, heights: Tuple[int, ...], turn: Piece, last_move: int):
        cells.flags.writeable = False
        self.cells = cells
        self.heights = heights
        self.turn = turn
        self.last_move = last_move
        self._winner = find_winner(self)

    @classmethod
    def from_moves(cls, columns: Iterable[int]) -> 'BoardState':
        """
        Replay a sequence of columns from the empty board.

        Raises:
            InvalidMoveError: If any move in the sequence is illegal
        """
        state = cls()
        for column in columns:
            state = state.apply(state.turn, column)
        return state

    def is_valid_move(self, player: Piece, column: int) -> bool:
        """Check whether ``player`` may drop a piece in ``column`` now."""
        index = _as_column(column)
        return (player == self.turn
                and player != Piece.EMPTY
                and index is not None
                and 0 <= index < COLS
                and self.heights[index] < ROWS)

    def apply(self, player: Piece, column: int) -> 'BoardState':
        """
        Drop a piece for ``player`` into ``column``.

        Args:
            player: The colour making the move; must be the side to move
            column: Column index (0-indexed)

        Returns:
            A new BoardState; this one is left untouched

        Raises:
            InvalidMoveError: Wrong turn, a bad column index, or a full column
        """
        reason = None
        index = _as_column(column)
        if player != self.turn or player == Piece.EMPTY:
            reason = f"it is {self.turn.name}'s turn"
        elif index is None:
            reason = "column is not an integer"
        elif not 0 <= index < COLS:
            reason = "column out of range"
        elif self.heights[index] >= ROWS:
            reason = "column is full"
        if reason is not None:
            debug.debug(f"Rejected move by {player.name} to column {column}: {reason}", "board")
            raise InvalidMoveError(player, column, reason)

        height = self.heights[index]
        cells = self.cells.copy()
        cells[index, height] = player.value
        heights = self.heights[:index] + (height + 1,) + self.heights[index + 1:]

        new_state = BoardState.__new__(BoardState)
        new_state._set(cells, heights, self.turn.other(), index)
        return new_state

    def piece_at(self, col: int, row: int) -> Piece:
        """Get the piece at (col, row); EMPTY for coordinates off the board."""
        if is_valid_position(col, row):
            return Piece(int(self.cells[col, row]))
        return Piece.EMPTY

    def winner(self) -> Piece:
        """The colour with four in a row through the last move, else EMPTY."""
        return self._winner

    def is_full(self) -> bool:
        return all(height == ROWS for height in self.heights)

    def is_terminal(self) -> bool:
        """True once someone has won or the board is full (a draw)."""
        return self._winner != Piece.EMPTY or self.is_full()

    def legal_moves(self) -> List[int]:
        """Columns that are not yet full, or none once the game is over."""
        if self.is_terminal():
            return []
        return [col for col in range(COLS) if self.heights[col] < ROWS]

    @property
    def move_count(self) -> int:
        return sum(self.heights)

    def key(self) -> bytes:
        """Content key of the board, identical for identical positions."""
        return self.cells.tobytes()

    def to_array(self) -> np.ndarray:
        """Board as a (ROWS, COLS) array with the top row first."""
        return np.flipud(self.cells.T).copy()

    def render(self) -> str:
        return render_board_ascii(self.cells)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (f"BoardState(heights={list(self.heights)}, turn={self.turn.name}, "
                f"last_move={self.last_move})")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoardState):
            return NotImplemented
        return (self.turn == other.turn
                and self.last_move == other.last_move
                and np.array_equal(self.cells, other.cells))

    def __hash__(self) -> int:
        return hash((self.key(), self.turn, self.last_move))


def successors(state: BoardState) -> List[Tuple[int, BoardState]]:
    """All (column, state) pairs reachable in one legal move."""
    result = []
    for col in state.legal_moves():
        result.append((col, state.apply(state.turn, col)))
    return result
