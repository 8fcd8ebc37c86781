from chessroom.game.events import (
    CREATE_GAME_EVENT,
    ERROR_EVENT,
    GAME_UPDATE_EVENT,
    MESSAGE_EVENT,
    READY_EVENT,
    USER_ID_EVENT,
)
from chessroom.web.gateway import build_gateway

from conftest import RecordingConnection


def join_data(game_id, name="Alice", role="player", side="white"):
    data = {"gameId": game_id, "name": name, "role": role}
    if side is not None:
        data["side"] = side
    return data


class TestCreateAndJoin:
    """Tests for creating and joining games through the gateway."""

    def test_create_game_acknowledges(self, gateway):
        connection = RecordingConnection()
        gateway.handle(connection, CREATE_GAME_EVENT)

        (game_id,) = connection.of(CREATE_GAME_EVENT)
        assert gateway.store.get(game_id) is not None

    def test_join_sequence(self, gateway):
        """Test the joiner gets the state, then its id, then ready."""
        game_id = gateway.create_game()
        watcher = RecordingConnection()
        gateway.join_game(watcher, join_data(game_id, "Eve", "spectator", None))
        watcher.clear()

        joiner = RecordingConnection()
        gateway.handle(joiner, "joinGame", join_data(game_id))

        assert joiner.names() == [GAME_UPDATE_EVENT, USER_ID_EVENT, READY_EVENT]
        (participant_id,) = joiner.of(USER_ID_EVENT)
        state = joiner.of(GAME_UPDATE_EVENT)[0]
        assert participant_id in [p['id'] for p in state['participants']]

        # only the joiner learns its id
        assert watcher.names() == [GAME_UPDATE_EVENT]

    def test_join_unknown_game(self, gateway):
        connection = RecordingConnection()
        gateway.handle(connection, "joinGame", join_data("missing"))

        assert connection.of(ERROR_EVENT) == ["Game not found"]
        assert not connection.closed

    def test_join_occupied_side(self, gateway):
        game_id = gateway.create_game()
        gateway.join_game(RecordingConnection(), join_data(game_id))
        second = RecordingConnection()

        gateway.handle(second, "joinGame", join_data(game_id, "Mallory"))

        assert second.names() == [ERROR_EVENT]
        assert len(gateway.store.get(game_id).participants) == 1

    def test_join_bad_shape(self, gateway):
        game_id = gateway.create_game()
        connection = RecordingConnection()

        gateway.handle(connection, "joinGame", {"gameId": game_id, "name": 42, "role": "player"})

        assert connection.names() == [ERROR_EVENT]
        assert gateway.store.get(game_id).is_empty

    def test_join_not_an_object_is_fatal(self, gateway):
        connection = RecordingConnection()
        gateway.handle(connection, "joinGame", "hello")

        assert connection.names() == [ERROR_EVENT]
        assert connection.closed

    def test_join_twice_rejected(self, gateway, two_players):
        game_id, white, _ = two_players
        gateway.handle(white, "joinGame", join_data(game_id, "Alice", "spectator", None))

        assert white.names() == [ERROR_EVENT]
        assert len(gateway.store.get(game_id).participants) == 2

    def test_unknown_event(self, gateway):
        connection = RecordingConnection()
        gateway.handle(connection, "resign")
        assert connection.of(ERROR_EVENT) == ["Unknown event: resign"]


class TestMakeMove:
    """Tests for moves arriving from connections."""

    def test_move_broadcast(self, gateway, two_players):
        _, white, black = two_players
        gateway.handle(white, "makeMove", "e2e4")

        assert white.names() == [GAME_UPDATE_EVENT]
        assert black.of(GAME_UPDATE_EVENT)[0]['last_move'] == "e2e4"

    def test_illegal_move_single_message(self, gateway, two_players):
        """Test turn and legality failures look the same on the wire."""
        _, white, black = two_players

        gateway.handle(black, "makeMove", "e7e5")
        gateway.handle(white, "makeMove", "e2e5")

        assert black.of(ERROR_EVENT) == ["Illegal move"]
        assert white.of(ERROR_EVENT) == ["Illegal move"]
        assert GAME_UPDATE_EVENT not in white.names() + black.names()

    def test_move_without_game(self, gateway):
        connection = RecordingConnection()
        gateway.handle(connection, "makeMove", "e2e4")
        assert connection.of(ERROR_EVENT) == ["Cannot find game with player"]

    def test_malformed_move(self, gateway, two_players):
        _, white, _ = two_players

        gateway.handle(white, "makeMove", "e2")
        assert white.of(ERROR_EVENT) == ["Malformed move"]
        assert not white.closed

        gateway.handle(white, "makeMove", {"uci": "e2e4"})
        assert white.closed


class TestChat:
    """Tests for chat messages."""

    def test_message_at_limit_broadcast(self, gateway, two_players):
        _, white, black = two_players
        text = "a" * 255

        gateway.handle(white, "sendMessage", text)

        expected = [{"name": "Alice", "message": text}]
        assert white.of(MESSAGE_EVENT) == expected
        assert black.of(MESSAGE_EVENT) == expected

    def test_message_too_long(self, gateway, two_players):
        _, white, black = two_players

        gateway.handle(white, "sendMessage", "a" * 256)

        assert white.of(ERROR_EVENT) == ["Message can't be longer than 255 characters"]
        assert MESSAGE_EVENT not in white.names() + black.names()

    def test_empty_message_dropped(self, gateway, two_players):
        _, white, black = two_players

        gateway.handle(white, "sendMessage", "")

        assert white.events == []
        assert black.events == []

    def test_non_string_message_is_fatal(self, gateway, two_players):
        _, white, black = two_players

        gateway.handle(white, "sendMessage", ["hi"])

        assert white.names() == [ERROR_EVENT]
        assert white.closed
        assert black.events == []

    def test_chat_in_finished_game(self, gateway, two_players):
        _, white, black = two_players
        for connection, uci in [(white, "f2f3"), (black, "e7e5"), (white, "g2g4"), (black, "d8h4")]:
            gateway.handle(connection, "makeMove", uci)
        white.clear()

        gateway.handle(white, "sendMessage", "gg")

        assert white.of(MESSAGE_EVENT) == [{"name": "Alice", "message": "gg"}]

    def test_message_without_game(self, gateway):
        connection = RecordingConnection()
        gateway.handle(connection, "sendMessage", "hello")
        assert connection.names() == [ERROR_EVENT]


class TestDisconnect:
    """Tests for connections going away."""

    def test_disconnect_broadcasts_state(self, gateway, two_players):
        game_id, white, black = two_players

        gateway.disconnect(black)

        session = gateway.store.get(game_id)
        assert len(session.participants) == 1
        state = white.of(GAME_UPDATE_EVENT)[-1]
        assert [p['name'] for p in state['participants']] == ["Alice"]
        assert black.events == []

    def test_last_disconnect_deletes_game(self, gateway, two_players):
        game_id, white, black = two_players

        gateway.disconnect(white)
        gateway.disconnect(black)

        assert gateway.store.get(game_id) is None

    def test_disconnect_is_idempotent(self, gateway, two_players):
        game_id, white, black = two_players

        gateway.disconnect(black)
        events = list(white.events)
        gateway.disconnect(black)

        assert white.events == events
        assert len(gateway.store.get(game_id).participants) == 1

    def test_disconnect_without_game(self, gateway):
        gateway.disconnect(RecordingConnection())

    def test_side_reusable_after_disconnect(self, gateway, two_players):
        game_id, _, black = two_players
        gateway.disconnect(black)

        newcomer = RecordingConnection()
        gateway.handle(newcomer, "joinGame", join_data(game_id, "Carol", "player", "black"))

        assert READY_EVENT in newcomer.names()


def test_independent_gateways(timers):
    """Test separately built gateways share no games."""
    gateways = [build_gateway(timer_factory=timers) for _ in range(3)]
    ids = [g.create_game() for g in gateways]
    for g, game_id in zip(gateways, ids):
        assert len(g.store) == 1
        assert g.store.get(game_id) is not None


class TestLeaveGame:
    """Tests for leaving a game while keeping the connection."""

    def test_last_leave_deletes_game(self, gateway):
        game_id = gateway.create_game()
        spectator = RecordingConnection()
        gateway.join_game(spectator, join_data(game_id, "Eve", "spectator", None))

        gateway.handle(spectator, "leaveGame")

        assert gateway.store.get(game_id) is None
        assert ERROR_EVENT not in spectator.names()

    def test_leave_broadcasts_to_remaining(self, gateway, two_players):
        game_id, white, black = two_players

        gateway.handle(black, "leaveGame")

        assert black.events == []
        state = white.of(GAME_UPDATE_EVENT)[-1]
        assert [p['name'] for p in state['participants']] == ["Alice"]
        assert gateway.store.get(game_id) is not None

    def test_leave_is_idempotent(self, gateway, two_players):
        game_id, white, black = two_players

        gateway.handle(black, "leaveGame")
        events = list(white.events)
        gateway.handle(black, "leaveGame")
        gateway.disconnect(black)

        assert white.events == events
        assert black.events == []
        assert len(gateway.store.get(game_id).participants) == 1

    def test_rejoin_after_leave(self, gateway, two_players):
        game_id, _, black = two_players
        gateway.handle(black, "leaveGame")

        gateway.handle(black, "joinGame", join_data(game_id, "Bob", "spectator", None))

        assert black.names() == [GAME_UPDATE_EVENT, USER_ID_EVENT, READY_EVENT]
