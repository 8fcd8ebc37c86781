import pytest

from chessroom.game.broadcast import Connection
from chessroom.web.gateway import build_gateway


class RecordingConnection(Connection):
    """Connection that keeps every event it is sent."""

    def __init__(self, connection_id=None):
        super().__init__(connection_id)
        self.events = []
        self.closed = False

    def send(self, event, data=None):
        self.events.append((event, data))

    def close(self):
        self.closed = True

    def names(self):
        return [event for event, _ in self.events]

    def of(self, event):
        return [data for name, data in self.events if name == event]

    def clear(self):
        self.events.clear()


class FakeTimers:
    """Timer factory whose timers only fire when told to."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        self.pending.append((delay, callback))

    def fire_all(self):
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def gateway(timers):
    return build_gateway(timer_factory=timers)


@pytest.fixture
def connect():
    return RecordingConnection


@pytest.fixture
def two_players(gateway):
    """A game with a white and a black player joined."""
    white, black = RecordingConnection(), RecordingConnection()
    game_id = gateway.create_game()
    gateway.join_game(white, {"gameId": game_id, "name": "Alice", "role": "player", "side": "white"})
    gateway.join_game(black, {"gameId": game_id, "name": "Bob", "role": "player", "side": "black"})
    white.clear()
    black.clear()
    return game_id, white, black
