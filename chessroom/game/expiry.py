import asyncio
import threading
from typing import Callable

from loguru import logger

from .events import GAME_EXPIRED_EVENT

GAME_EXPIRE_SECONDS = 60 * 60 * 12  # 12 hours


def default_timer(delay: float, callback: Callable[[], None]):
    """
    Run `callback` once after `delay` seconds.

    Uses the running event loop when there is one, a daemon thread otherwise.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay, callback)


class ExpiryScheduler:
    """
    Caps the lifetime of every session.

    Timers are never reset or cancelled: a session deleted early simply has
    its timer fire on an id the store no longer knows.
    """

    def __init__(
        self,
        store,
        broadcaster,
        time_to_live: float = GAME_EXPIRE_SECONDS,
        timer_factory: Callable = default_timer
    ):
        """
        Args:
            store: SessionStore to delete expired sessions from
            broadcaster: BroadcastCoordinator used to notify participants
            time_to_live: Lifetime of a session in seconds
            timer_factory: Callable(delay, callback) starting a one-shot timer
        """
        self.store = store
        self.broadcaster = broadcaster
        self.time_to_live = time_to_live
        self.timer_factory = timer_factory

    def schedule(self, session_id: str):
        self.timer_factory(self.time_to_live, lambda: self.expire(session_id))

    def expire(self, session_id: str):
        """Notify and delete a session if it still exists."""
        session = self.store.get(session_id)
        if session is None:
            return

        with session.lock:
            if session.closed:
                return
            logger.info(f"Game {session_id}: Expired")
            self.broadcaster.broadcast(session_id, GAME_EXPIRED_EVENT)
            self.store.delete(session_id)
            self.broadcaster.drop_group(session_id)
