"""
Chess Game Module

Handles sessions, membership, move validation and broadcasting of game state.
"""

from .board_authority import BoardAuthority
from .broadcast import BroadcastCoordinator, Connection
from .engine import TurnStateMachine
from .errors import (
    ErrorKind,
    GameError,
    GameNotFoundError,
    IllegalMoveError,
    IllegalMoveReason,
    NotInGameError,
    ValidationError
)
from .expiry import ExpiryScheduler
from .membership import MembershipManager
from .session import Participant, Role, Session, SessionStatus, Side
from .store import SessionStore

__all__ = [
    'BoardAuthority',
    'BroadcastCoordinator',
    'Connection',
    'TurnStateMachine',
    'ErrorKind',
    'GameError',
    'GameNotFoundError',
    'IllegalMoveError',
    'IllegalMoveReason',
    'NotInGameError',
    'ValidationError',
    'ExpiryScheduler',
    'MembershipManager',
    'Participant',
    'Role',
    'Session',
    'SessionStatus',
    'Side',
    'SessionStore'
]
