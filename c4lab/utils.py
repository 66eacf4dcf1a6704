"""
utils.py - Constants, enumerations and helpers shared across c4lab

Coordinates are always (column, row) with row 0 at the bottom of the board,
matching the way pieces fall.
"""

from enum import Enum
from typing import Tuple

import numpy as np

# Game constants
ROWS = 6
COLS = 7
CONNECT_N = 4  # Number of pieces in a row to win
CENTER_COL = COLS // 2


class Piece(Enum):
    """Cell contents and player colours."""
    EMPTY = 0
    RED = 1    # Moves first
    BLACK = 2

    def other(self) -> 'Piece':
        """Get the opposing colour (EMPTY stays EMPTY)."""
        if self == Piece.RED:
            return Piece.BLACK
        elif self == Piece.BLACK:
            return Piece.RED
        return Piece.EMPTY

    def __str__(self):
        if self == Piece.RED:
            return "R"
        elif self == Piece.BLACK:
            return "B"
        return " "


class InvalidMoveError(ValueError):
    """Raised when a move is out of turn, out of range, or into a full column."""

    def __init__(self, player: Piece, column: int, reason: str):
        super().__init__(f"Invalid move by {player.name} to column {column}: {reason}")
        self.player = player
        self.column = column
        self.reason = reason


class TrainingInvariantError(RuntimeError):
    """Raised when recorded training data is inconsistent; aborts training."""


# (column, row) offsets checked by the win detector
WIN_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (0, 1),   # vertical
    (1, 0),   # horizontal
    (1, 1),   # diagonal up-right
    (1, -1),  # diagonal down-right
)

# Directions looked past by the threat counter
THREAT_DIRECTIONS: Tuple[Tuple[int, int], ...] = (
    (1, 1),
    (1, -1),
    (-1, -1),
    (-1, 1),
)


def is_valid_position(col: int, row: int) -> bool:
    """Check if (col, row) lies on the board."""
    return 0 <= col < COLS and 0 <= row < ROWS


def center_out_order(cols: int = COLS) -> Tuple[int, ...]:
    """
    Column search order starting at the centre and alternating outward.

    For 7 columns this is (3, 2, 4, 1, 5, 0, 6).
    """
    center = cols // 2
    order = [center]
    for offset in range(1, cols):
        for col in (center - offset, center + offset):
            if 0 <= col < cols:
                order.append(col)
    return tuple(order)


def center_distance(col: int) -> float:
    """
    Tie-break distance from the centre column.

    The 0.25 offset makes the right neighbour of a symmetric pair strictly
    closer, so ties never depend on evaluation order.
    """
    return abs(col - CENTER_COL - 0.25)


def render_board_ascii(cells: np.ndarray) -> str:
    """
    Render a (COLS, ROWS) cell array as ASCII art, top row first.

    Args:
        cells: Array of Piece values indexed [col, row]

    Returns:
        Multi-line string representation of the board
    """
    symbols = {Piece.EMPTY.value: " ", Piece.RED.value: "R", Piece.BLACK.value: "B"}
    lines = ["|" + "-" * (COLS * 2 - 1) + "|"]
    for row in range(ROWS - 1, -1, -1):
        lines.append("|" + " ".join(symbols[int(cells[col, row])] for col in range(COLS)) + "|")
    lines.append("|" + "-" * (COLS * 2 - 1) + "|")
    lines.append("|" + " ".join(str(col) for col in range(COLS)) + "|")
    return "\n".join(lines)
