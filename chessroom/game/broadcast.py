import threading
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from loguru import logger

from .board_authority import BoardAuthority
from .events import GAME_UPDATE_EVENT
from .session import Session


class Connection(ABC):
    """Abstract base class for a client connection."""

    def __init__(self, connection_id: Optional[str] = None):
        self.id = connection_id or str(uuid.uuid4())

    @abstractmethod
    def send(self, event: str, data: Any = None):
        """
        Queue an event for delivery to the client.

        Must not block; delivery order has to match call order.

        Args:
            event: Event name
            data: JSON-serializable payload
        """
        pass

    @abstractmethod
    def close(self):
        """Close the connection once queued events are delivered."""
        pass


class BroadcastCoordinator:
    """
    Delivers events to single connections and to every connection joined to
    a session.
    """

    def __init__(self, board_authority: Optional[BoardAuthority] = None):
        self.board_authority = board_authority or BoardAuthority()
        self._groups: Dict[str, Dict[str, Connection]] = {}
        self._lock = threading.Lock()

    def add_to_group(self, session_id: str, connection: Connection):
        with self._lock:
            self._groups.setdefault(session_id, {})[connection.id] = connection

    def remove_from_group(self, session_id: str, connection: Connection):
        with self._lock:
            group = self._groups.get(session_id)
            if not group:
                return
            group.pop(connection.id, None)
            if not group:
                del self._groups[session_id]

    def drop_group(self, session_id: str):
        with self._lock:
            self._groups.pop(session_id, None)

    def members(self, session_id: str) -> List[Connection]:
        with self._lock:
            return list(self._groups.get(session_id, {}).values())

    def send(self, connection: Connection, event: str, data: Any = None):
        """Send an event to one connection only."""
        connection.send(event, data)

    def broadcast(self, session_id: str, event: str, data: Any = None):
        """Send an event to every connection joined to the session."""
        for connection in self.members(session_id):
            connection.send(event, data)

    def serialize(self, session: Session) -> Dict:
        """
        Get the full session state as sent to clients.

        Returns:
            Dictionary with session, board and participant information
        """
        state = {
            'id': session.id,
            'status': session.status.value,
            'winner': session.winner.value if session.winner else None,
            'last_move': session.last_move.uci() if session.last_move else None,
            'created_at': session.created_at.isoformat(),
            'participants': [p.to_dict() for p in session.participants.values()]
        }
        state.update(self.board_authority.describe(session.board))
        return state

    def broadcast_state(self, session: Session):
        logger.debug(f"Game {session.id}: Broadcasting state ({session.status.value})")
        self.broadcast(session.id, GAME_UPDATE_EVENT, self.serialize(session))
