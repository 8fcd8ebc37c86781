from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Kinds of failure a client request can run into."""
    VALIDATION = "validation"
    ILLEGAL_MOVE = "illegal_move"
    NOT_FOUND = "not_found"


class IllegalMoveReason(Enum):
    """Why a move was refused. Never sent to the client."""
    SPECTATOR = "spectator"
    NOT_YOUR_TURN = "not_your_turn"
    ILLEGAL = "illegal"
    GAME_OVER = "game_over"


class GameError(Exception):
    """
    Base class for errors raised while handling a client request.

    Only `message` ever reaches the client; `kind` and the subclass let the
    server and its tests tell failures apart.
    """

    kind: ErrorKind = ErrorKind.VALIDATION
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None, fatal: bool = False):
        """
        Args:
            message: Text sent to the originating connection
            fatal: Whether the connection should be closed after the error
        """
        self.message = message or self.default_message
        self.fatal = fatal
        super().__init__(self.message)


class ValidationError(GameError):
    """Malformed or out-of-contract client input."""
    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"


class IllegalMoveError(GameError):
    """Move refused for role, turn or legality reasons."""
    kind = ErrorKind.ILLEGAL_MOVE
    default_message = "Illegal move"

    def __init__(self, reason: IllegalMoveReason):
        super().__init__()
        self.reason = reason


class NotInGameError(GameError):
    """The participant or its session no longer exists."""
    kind = ErrorKind.NOT_FOUND
    default_message = "Cannot find game with player"


class GameNotFoundError(NotInGameError):
    default_message = "Game not found"
