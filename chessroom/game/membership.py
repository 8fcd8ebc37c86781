import threading
import uuid
from typing import Dict, Optional

from loguru import logger

from .errors import ValidationError
from .session import Participant, Role, Session, Side

MAX_NAME_LENGTH = 32


class MembershipManager:
    """
    Adds and removes participants and keeps a process-wide index from
    participant id to session id.
    """

    def __init__(self, store, max_name_length: int = MAX_NAME_LENGTH):
        """
        Args:
            store: SessionStore used to detect stale index entries
            max_name_length: Maximum display name length
        """
        self.store = store
        self.max_name_length = max_name_length
        self._owners: Dict[str, str] = {}
        self._lock = threading.Lock()

    def join(self, session: Session, name, role, side=None) -> str:
        """
        Add a participant to a session.

        Nothing is changed when validation fails.

        Args:
            session: Session to join
            name: Display name
            role: Role or its string value
            side: Side or its string value, required for players

        Returns:
            The new participant id

        Raises:
            ValidationError: If any argument is out of contract
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Name can't be empty")
        name = name.strip()
        if len(name) > self.max_name_length:
            raise ValidationError(f"Name can't be longer than {self.max_name_length} characters")

        try:
            role = Role(role)
        except ValueError:
            raise ValidationError("Invalid role")

        if role is Role.PLAYER:
            if side is None:
                raise ValidationError("Players must pick a side")
            try:
                side = Side(side)
            except ValueError:
                raise ValidationError("Invalid side")
            if session.player_on(side) is not None:
                raise ValidationError(f"Side {side.value} is already taken")
        else:
            side = None

        participant_id = str(uuid.uuid4())
        with self._lock:
            while participant_id in self._owners:
                participant_id = str(uuid.uuid4())
            self._owners[participant_id] = session.id

        session.participants[participant_id] = Participant(participant_id, name, role, side)
        logger.info(f"Game {session.id}: {name} joined as {role.value}"
                    + (f" ({side.value})" if side else ""))
        return participant_id

    def leave(self, session: Session, participant_id: str):
        """Remove a participant. Removing an absent one does nothing."""
        with self._lock:
            self._owners.pop(participant_id, None)
        participant = session.participants.pop(participant_id, None)
        if participant is not None:
            logger.info(f"Game {session.id}: {participant.name} left")

    def find(self, session: Session, participant_id: str) -> Optional[Participant]:
        return session.participants.get(participant_id)

    def find_session_of(self, participant_id: str) -> Optional[str]:
        """
        Find the session a participant belongs to.

        Returns:
            The session id, or None if the participant or its session is gone
        """
        with self._lock:
            session_id = self._owners.get(participant_id)
        if session_id is None:
            return None

        session = self.store.get(session_id)
        if session is None or participant_id not in session.participants:
            with self._lock:
                self._owners.pop(participant_id, None)
            return None
        return session_id
