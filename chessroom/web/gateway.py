from typing import Any, Callable, Dict, Optional

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ..config import DEFAULT_CONFIG
from ..game.board_authority import BoardAuthority
from ..game.broadcast import BroadcastCoordinator, Connection
from ..game.engine import TurnStateMachine
from ..game.errors import GameError, GameNotFoundError, NotInGameError, ValidationError
from ..game.events import (
    CREATE_GAME_EVENT,
    ERROR_EVENT,
    JOIN_GAME_EVENT,
    LEAVE_GAME_EVENT,
    MAKE_MOVE_EVENT,
    MESSAGE_EVENT,
    READY_EVENT,
    SEND_MESSAGE_EVENT,
    USER_ID_EVENT,
)
from ..game.expiry import ExpiryScheduler, default_timer
from ..game.membership import MembershipManager
from ..game.store import SessionStore
from .schemas import JoinGameData, MessageData

MAX_MESSAGE_LENGTH = 255


class ConnectionGateway:
    """
    Turns client events into calls on the game components.

    Owns the binding from connection id to participant id. Every GameError
    raised by a handler becomes a single error event for the connection
    that sent the request.
    """

    def __init__(
        self,
        store: SessionStore,
        membership: MembershipManager,
        broadcaster: BroadcastCoordinator,
        engine: TurnStateMachine,
        max_message_length: int = MAX_MESSAGE_LENGTH
    ):
        self.store = store
        self.membership = membership
        self.broadcaster = broadcaster
        self.engine = engine
        self.max_message_length = max_message_length
        self._bindings: Dict[str, str] = {}
        self._handlers: Dict[str, Callable[[Connection, Any], None]] = {
            CREATE_GAME_EVENT: self.create_game,
            JOIN_GAME_EVENT: self.join_game,
            MAKE_MOVE_EVENT: self.make_move,
            SEND_MESSAGE_EVENT: self.send_message,
            LEAVE_GAME_EVENT: self.leave_game,
        }

    def handle(self, connection: Connection, event: str, data: Any = None):
        """
        Dispatch one client event.

        Args:
            connection: Connection the event came from
            event: Event name
            data: Event payload
        """
        logger.debug(f"{event} {data!r}")
        handler = self._handlers.get(event)
        try:
            if handler is None:
                raise ValidationError(f"Unknown event: {event}")
            handler(connection, data)
        except GameError as e:
            self.report(connection, e)

    def report(self, connection: Connection, error: GameError):
        """Send an error to one connection, closing it if the error is fatal."""
        logger.info(f"error: {error.message}")
        self.broadcaster.send(connection, ERROR_EVENT, error.message)
        if error.fatal:
            connection.close()

    def participant_of(self, connection: Connection) -> Optional[str]:
        """Get the live participant id bound to a connection, if any."""
        participant_id = self._bindings.get(connection.id)
        if participant_id is None:
            return None
        if self.membership.find_session_of(participant_id) is None:
            # The game expired under this connection.
            self._bindings.pop(connection.id, None)
            return None
        return participant_id

    def create_game(self, connection: Optional[Connection] = None, data: Any = None) -> str:
        """
        Create a new game.

        Returns:
            The new game id, also acknowledged to `connection` when given
        """
        game_id = self.store.create()
        if connection is not None:
            self.broadcaster.send(connection, CREATE_GAME_EVENT, game_id)
        return game_id

    def join_game(self, connection: Connection, data: Any) -> str:
        if not isinstance(data, dict):
            raise ValidationError("FATAL: Join data isn't an object", fatal=True)
        if self.participant_of(connection) is not None:
            raise ValidationError("Already in a game")

        try:
            payload = JoinGameData.model_validate(data)
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error['loc'])
            raise ValidationError(f"Invalid join data: {field}: {error['msg']}")

        session = self.store.get(payload.game_id)
        if session is None:
            raise GameNotFoundError()

        with session.lock:
            if session.closed:
                raise GameNotFoundError()
            participant_id = self.membership.join(session, payload.name, payload.role, payload.side)

            self._bindings[connection.id] = participant_id
            self.broadcaster.add_to_group(session.id, connection)
            self.broadcaster.broadcast_state(session)
            self.broadcaster.send(connection, USER_ID_EVENT, participant_id)
            self.broadcaster.send(connection, READY_EVENT)

        return participant_id

    def make_move(self, connection: Connection, data: Any):
        participant_id = self.participant_of(connection)
        if participant_id is None:
            raise NotInGameError()
        move = self.engine.board_authority.parse_move(data)
        self.engine.submit_move(participant_id, move)

    def send_message(self, connection: Connection, data: Any):
        """
        Broadcast a chat line to the sender's game.

        Empty messages are dropped without an error.
        """
        participant_id = self.participant_of(connection)
        if participant_id is None:
            raise NotInGameError()
        session, participant = self.engine.resolve(participant_id)

        if not isinstance(data, str):
            raise ValidationError("FATAL: Message isn't a string", fatal=True)
        if len(data) > self.max_message_length:
            raise ValidationError(f"Message can't be longer than {self.max_message_length} characters")
        if len(data) == 0:
            return

        message = MessageData(name=participant.name, message=data)
        self.broadcaster.broadcast(session.id, MESSAGE_EVENT, message.model_dump())

    def disconnect(self, connection: Connection):
        """Handle a closed connection. Safe to call more than once."""
        self.leave_game(connection)

    def leave_game(self, connection: Connection, data: Any = None):
        """
        Remove the connection's participant from its game.

        Deletes the game once nobody is left. Leaving when not in a game
        does nothing.
        """
        participant_id = self._bindings.pop(connection.id, None)
        if participant_id is None:
            return

        session_id = self.membership.find_session_of(participant_id)
        session = self.store.get(session_id) if session_id else None
        if session is None:
            return

        with session.lock:
            self.membership.leave(session, participant_id)
            self.broadcaster.remove_from_group(session.id, connection)
            if session.closed:
                return
            self.broadcaster.broadcast_state(session)

            if session.is_empty:
                self.store.delete(session.id)
                self.broadcaster.drop_group(session.id)


def build_gateway(config: Optional[Dict] = None, timer_factory: Callable = default_timer) -> ConnectionGateway:
    """
    Wire up a fresh, independent set of game components.

    Args:
        config: Configuration dictionary, defaults to DEFAULT_CONFIG
        timer_factory: Timer used by the expiry scheduler

    Returns:
        Gateway holding the components
    """
    config = config or DEFAULT_CONFIG
    authority = BoardAuthority()
    broadcaster = BroadcastCoordinator(authority)
    store = SessionStore(authority)
    store.scheduler = ExpiryScheduler(
        store,
        broadcaster,
        time_to_live=config['game']['expire_seconds'],
        timer_factory=timer_factory
    )
    membership = MembershipManager(store, max_name_length=config['game']['max_name_length'])
    engine = TurnStateMachine(store, membership, broadcaster, authority)
    return ConnectionGateway(
        store,
        membership,
        broadcaster,
        engine,
        max_message_length=config['chat']['max_message_length']
    )
