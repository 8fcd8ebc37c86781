import threading
import uuid
from typing import Dict, List, Optional

from loguru import logger

from .board_authority import BoardAuthority
from .session import Session


class SessionStore:
    """
    Process-wide registry of live sessions.

    Creation, expiry and empty-session deletion can race, so every mutation
    of the mapping goes through `_lock`.
    """

    def __init__(self, board_authority: Optional[BoardAuthority] = None, scheduler=None):
        """
        Args:
            board_authority: Used to initialize each session's board
            scheduler: ExpiryScheduler started for every created session
        """
        self.board_authority = board_authority or BoardAuthority()
        self.scheduler = scheduler
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def create(self, fen: Optional[str] = None) -> str:
        """
        Allocate a new session in the waiting state.

        Args:
            fen: Optional starting position

        Returns:
            The new session id
        """
        board = self.board_authority.new_board(fen)
        with self._lock:
            session_id = str(uuid.uuid4())
            while session_id in self._sessions:
                session_id = str(uuid.uuid4())
            self._sessions[session_id] = Session(id=session_id, board=board)

        if self.scheduler is not None:
            self.scheduler.schedule(session_id)

        logger.info(f"Game {session_id}: Created")
        return session_id

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def delete(self, session_id: str):
        """Remove a session. Deleting an unknown id does nothing."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return
        session.closed = True
        logger.info(f"Game {session_id}: Deleted")

    def list(self) -> List[Session]:
        with self._lock:
            return list(self._sessions.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions
