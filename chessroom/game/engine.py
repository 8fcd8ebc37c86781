import chess
from loguru import logger

from .board_authority import BoardAuthority
from .errors import IllegalMoveError, IllegalMoveReason, NotInGameError
from .events import GAME_STATUS_CHANGED_EVENT
from .session import Participant, Session, SessionStatus


class TurnStateMachine:
    """
    Gates every move through role, turn and legality checks, applies it and
    moves the session into a terminal status when the game ends.
    """

    def __init__(self, store, membership, broadcaster, board_authority: BoardAuthority = None):
        self.store = store
        self.membership = membership
        self.broadcaster = broadcaster
        self.board_authority = board_authority or broadcaster.board_authority

    def resolve(self, participant_id: str):
        """
        Find a participant and the session it is in.

        Returns:
            (session, participant) tuple

        Raises:
            NotInGameError: If either no longer exists
        """
        session_id = self.membership.find_session_of(participant_id) if participant_id else None
        session = self.store.get(session_id) if session_id else None
        if session is None:
            raise NotInGameError()
        participant = self.membership.find(session, participant_id)
        if participant is None:
            raise NotInGameError()
        return session, participant

    def submit_move(self, participant_id: str, move: chess.Move) -> Session:
        """
        Make a move on behalf of a participant.

        Args:
            participant_id: Id of the participant making the move
            move: The move to make

        Returns:
            The session the move was made in

        Raises:
            NotInGameError: If the participant or its session is gone
            IllegalMoveError: If the participant may not make this move
        """
        session, _ = self.resolve(participant_id)

        with session.lock:
            # Re-read after taking the lock, the participant may have left.
            participant = self.membership.find(session, participant_id)
            if session.closed or participant is None:
                raise NotInGameError()

            self._authorize(session, participant, move)

            authority = self.board_authority
            authority.apply(session.board, move)
            session.last_move = move
            if session.status is SessionStatus.WAITING:
                session.status = SessionStatus.IN_PROGRESS
            logger.info(f"Game {session.id}: {participant.name} played {move.uci()}")

            self.broadcaster.broadcast_state(session)
            self._update_game_state(session)

        return session

    def _authorize(self, session: Session, participant: Participant, move: chess.Move):
        if session.status.is_terminal:
            raise IllegalMoveError(IllegalMoveReason.GAME_OVER)
        if not participant.is_player:
            raise IllegalMoveError(IllegalMoveReason.SPECTATOR)
        if participant.side is not self.board_authority.current_side(session.board):
            raise IllegalMoveError(IllegalMoveReason.NOT_YOUR_TURN)
        if not self.board_authority.check_legal(session.board, move, participant.side):
            raise IllegalMoveError(IllegalMoveReason.ILLEGAL)

    def _update_game_state(self, session: Session):
        """Move the session into a terminal status if the game has ended."""
        authority = self.board_authority
        side_to_move = authority.current_side(session.board)

        if authority.is_checkmated(session.board, side_to_move):
            logger.info(f"Game {session.id}: {side_to_move.value} got checkmated")
            session.status = SessionStatus.HAS_WINNER
            session.winner = side_to_move.opposite
        elif authority.is_drawn(session.board):
            logger.info(f"Game {session.id}: Draw")
            session.status = SessionStatus.DRAW
        else:
            return

        self.broadcaster.broadcast_state(session)
        self.broadcaster.broadcast(session.id, GAME_STATUS_CHANGED_EVENT, session.status.value)
