"""tttengine package.

Rules, win detection and a heuristic opponent for classic 3x3, 5x5 and
Ultimate tic-tac-toe, plus a session that chains human and opponent moves.

Convenience imports are exposed for common workflows.
"""

from .game_basics import Grid, IllegalWrite, Move
from .opponent import NoLegalMove, choose_move
from .rules import IllegalMoveError
from .session import GameSession, SessionView, apply_human_move, reset, start

__all__ = [
    "GameSession",
    "SessionView",
    "start",
    "apply_human_move",
    "reset",
    "choose_move",
    "Grid",
    "Move",
    "IllegalMoveError",
    "IllegalWrite",
    "NoLegalMove",
]
