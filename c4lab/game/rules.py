"""
rules.py - Game driver for Connect Four

run_game is the turn-taking driver shared by the console front end and the
self-play trainers. Game-level errors never escape it.
"""

from typing import Callable, Optional

from c4lab.debug import debug
from c4lab.utils import Piece, InvalidMoveError
from c4lab.game.board import BoardState
from c4lab.game.players import Player

ShowHook = Callable[[BoardState], None]
ErrorHook = Callable[[Exception], None]
EndHook = Callable[[Piece], None]


def run_game(red: Player, black: Player,
             on_show: Optional[ShowHook] = None,
             on_error: Optional[ErrorHook] = None,
             on_end: Optional[EndHook] = None) -> Piece:
    """
    Play one game from the empty board until it is won or drawn.

    An illegal move never ends or crashes the game: it is reported through
    ``on_error`` and the same player is asked again.

    Args:
        red: Player moving first
        black: Player moving second
        on_show: Called with the initial state and after every accepted move
        on_error: Called with the InvalidMoveError of each rejected move
        on_end: Called exactly once with the winner (Piece.EMPTY for a draw)

    Returns:
        The winning Piece, or Piece.EMPTY for a draw
    """
    players = {Piece.RED: red, Piece.BLACK: black}
    state = BoardState()
    if on_show is not None:
        on_show(state)

    while not state.is_terminal():
        colour = state.turn
        column = players[colour].next_move(state)
        try:
            state = state.apply(colour, column)
        except InvalidMoveError as e:
            debug.warning(str(e), "runner")
            if on_error is not None:
                on_error(e)
            continue

        debug.trace(f"{colour.name} plays column {column}", "runner")
        if on_show is not None:
            on_show(state)

    winner = state.winner()
    if winner == Piece.EMPTY:
        debug.debug(f"Game drawn after {state.move_count} moves", "runner")
    else:
        debug.debug(f"{winner.name} wins after {state.move_count} moves", "runner")
    if on_end is not None:
        on_end(winner)
    return winner
