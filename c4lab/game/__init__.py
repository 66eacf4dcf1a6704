"""
c4lab.game - Core game mechanics for Connect Four

Board representation, win detection, the player capability and the game
driver.
"""

from c4lab.game.board import BoardState, find_winner
from c4lab.game.players import Player, ScriptedPlayer, RandomPlayer
from c4lab.game.rules import run_game

__all__ = ['BoardState', 'find_winner', 'Player', 'ScriptedPlayer', 'RandomPlayer',
           'run_game']
