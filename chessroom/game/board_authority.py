import chess
from typing import Dict, List, Optional

from .errors import ValidationError
from .session import Side


class BoardAuthority:
    """
    Wraps python-chess for the operations a session needs.

    Every method works on the board passed in; the authority keeps no state
    of its own, so whose turn it is always comes from the board itself.
    """

    def new_board(self, fen: Optional[str] = None) -> chess.Board:
        """
        Create a board in the standard starting position.

        Args:
            fen: Optional FEN to start from instead

        Returns:
            A fresh board
        """
        if fen is None:
            return chess.Board()
        try:
            return chess.Board(fen)
        except ValueError as e:
            raise ValidationError(f"Invalid FEN: {e}")

    def parse_move(self, data) -> chess.Move:
        """
        Parse a move sent by a client.

        Args:
            data: Move in UCI format (e.g., "e2e4")

        Returns:
            The parsed move

        Raises:
            ValidationError: fatal when the payload is not a string,
                non-fatal when the string is not valid UCI
        """
        if not isinstance(data, str):
            raise ValidationError("FATAL: Move isn't a string", fatal=True)
        try:
            return chess.Move.from_uci(data.strip())
        except ValueError:
            raise ValidationError("Malformed move")

    def check_legal(self, board: chess.Board, move: chess.Move, side: Side) -> bool:
        """Check that `move` is legal for `side` in the current position."""
        if self.current_side(board) is not side:
            return False
        return move in board.legal_moves

    def apply(self, board: chess.Board, move: chess.Move):
        """Push a move already confirmed by check_legal."""
        board.push(move)

    def is_checkmated(self, board: chess.Board, side: Side) -> bool:
        return self.current_side(board) is side and board.is_checkmate()

    def is_drawn(self, board: chess.Board) -> bool:
        """Check for draws the rules apply without a claim."""
        return (
            board.is_stalemate()
            or board.is_insufficient_material()
            or board.is_seventyfive_moves()
            or board.is_fivefold_repetition()
        )

    def current_side(self, board: chess.Board) -> Side:
        return Side.from_color(board.turn)

    def legal_moves(self, board: chess.Board) -> List[str]:
        """Get all legal moves in UCI format."""
        return [move.uci() for move in board.legal_moves]

    def describe(self, board: chess.Board) -> Dict:
        """
        Get the board part of a serialized session state.

        Returns:
            Dictionary with FEN, side to move, check flag and legal moves
        """
        return {
            'fen': board.fen(),
            'turn': self.current_side(board).value,
            'is_check': board.is_check(),
            'legal_moves': self.legal_moves(board)
        }
