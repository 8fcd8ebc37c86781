"""
chessroom

Server-refereed chess games for remote players and spectators.
"""

__version__ = "1.0.0"
