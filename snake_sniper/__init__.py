"""
SnakeSniper - only roll when the dice say you win.

An agent that polls a snakes-and-ladders action endpoint, reads the board
and the upcoming roll, and claims the round on Solana only when the move
lands exactly on a winning square.
"""

__version__ = "0.1.0"
