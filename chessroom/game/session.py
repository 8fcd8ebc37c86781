import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Optional

import chess


class SessionStatus(Enum):
    """Enumeration of possible session states."""
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    HAS_WINNER = "has_winner"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.HAS_WINNER, SessionStatus.DRAW)


class Role(Enum):
    PLAYER = "player"
    SPECTATOR = "spectator"


class Side(Enum):
    WHITE = "white"
    BLACK = "black"

    @property
    def color(self) -> chess.Color:
        """The python-chess color for this side."""
        return chess.WHITE if self is Side.WHITE else chess.BLACK

    @property
    def opposite(self) -> "Side":
        return Side.BLACK if self is Side.WHITE else Side.WHITE

    @classmethod
    def from_color(cls, color: chess.Color) -> "Side":
        return cls.WHITE if color == chess.WHITE else cls.BLACK


@dataclass
class Participant:
    """
    One connection's role within a session.

    `side` is only meaningful for players and is None for spectators.
    """
    id: str
    name: str
    role: Role
    side: Optional[Side] = None

    @property
    def is_player(self) -> bool:
        return self.role is Role.PLAYER

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'role': self.role.value,
            'side': self.side.value if self.side else None
        }


@dataclass
class Session:
    """
    A single game instance: the authoritative board and its participants.

    The board is only mutated through the board authority while `lock` is
    held. `closed` flips to True once the store has deleted the session.
    """
    id: str
    board: chess.Board = field(default_factory=chess.Board)
    status: SessionStatus = SessionStatus.WAITING
    winner: Optional[Side] = None
    participants: Dict[str, Participant] = field(default_factory=dict)
    last_move: Optional[chess.Move] = None
    created_at: datetime = field(default_factory=datetime.now)
    closed: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def is_empty(self) -> bool:
        return len(self.participants) == 0

    def player_on(self, side: Side) -> Optional[Participant]:
        """Return the player holding `side`, if any."""
        for participant in self.participants.values():
            if participant.is_player and participant.side is side:
                return participant
        return None
