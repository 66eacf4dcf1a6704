"""
c4lab - Connect Four alpha-beta agents tuned by self-play

The package is split into the game model (c4lab.game), the search agents and
learners (c4lab.ai), persistence (c4lab.data) and console front end
(c4lab.interfaces).
"""

__version__ = "0.1.0"
