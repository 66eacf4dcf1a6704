"""
cli.py - Text console front end for Connect Four

Provides a human player reading columns from the console, the board/turn
display hook, and a helper that plays a human against a search agent.
"""

from typing import Callable, Optional

from c4lab.debug import debug
from c4lab.utils import COLS, Piece
from c4lab.game.board import BoardState
from c4lab.game.players import Player
from c4lab.game.rules import run_game
from c4lab.ai.evaluation import EvaluationWeights, LinearEvaluator
from c4lab.ai.minimax import AlphaBetaPlayer

# Coefficients evolved by an earlier genetic run
CHAMPION_WEIGHTS = EvaluationWeights(
    win=0.2502943943301069,
    lose=-0.4952316649483701,
    my_even_threats=0.3932539700819625,
    their_even_threats=-0.2742452616759889,
    my_odd_threats=0.4746881137884282,
    their_odd_threats=0.2091091127191147,
)


class HumanPlayer(Player):
    """Reads the column to play from the console."""

    name = "human"

    def __init__(self, input_func: Callable[[str], str] = input,
                 output_func: Callable[[str], None] = print):
        self.input_func = input_func
        self.output_func = output_func

    def next_move(self, state: BoardState) -> int:
        while True:
            text = self.input_func(f"Enter the column to place your piece (0-{COLS - 1}): ").strip()
            try:
                return int(text)
            except ValueError:
                self.output_func("Invalid input. Please enter a column number.")


def show_board(state: BoardState, output_func: Callable[[str], None] = print):
    """Print the board followed by whose turn it is."""
    output_func(state.render())
    if not state.is_terminal():
        output_func(f"It is {state.turn.name.lower()}'s turn.")


def announce_winner(winner: Piece, output_func: Callable[[str], None] = print):
    if winner == Piece.EMPTY:
        output_func("It's a draw!")
    else:
        output_func(f"{winner.name.capitalize()} wins!")


def play_against_ai(depth: int = 8, human_color: Piece = Piece.RED,
                    weights: Optional[EvaluationWeights] = None,
                    input_func: Callable[[str], str] = input,
                    output_func: Callable[[str], None] = print) -> Piece:
    """
    Play a console game between a human and a search agent.

    Args:
        depth: Search depth of the agent
        human_color: Colour the human plays (RED moves first)
        weights: Agent evaluation weights (CHAMPION_WEIGHTS by default)
        input_func: Source of the human's input lines
        output_func: Sink for all console output

    Returns:
        The winner, or Piece.EMPTY for a draw
    """
    human = HumanPlayer(input_func, output_func)
    agent = AlphaBetaPlayer(human_color.other(), depth,
                            LinearEvaluator(weights or CHAMPION_WEIGHTS))
    debug.info(f"Human plays {human_color.name}, agent searches to depth {depth}", "cli")

    red, black = (human, agent) if human_color == Piece.RED else (agent, human)
    return run_game(
        red, black,
        on_show=lambda state: show_board(state, output_func),
        on_error=lambda error: output_func(str(error)),
        on_end=lambda winner: announce_winner(winner, output_func),
    )
