import asyncio
from typing import Any, Optional, Tuple

from fastapi import WebSocket, WebSocketDisconnect
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ..game.broadcast import Connection
from ..game.errors import ValidationError
from .schemas import Frame


def decode_frame(raw) -> Tuple[str, Any]:
    """
    Decode an inbound frame of the form {"event": str, "data": any}.

    Raises:
        ValidationError: fatal, if the frame is not text holding such an object
    """
    if not isinstance(raw, str):
        raise ValidationError("FATAL: Frame isn't text", fatal=True)
    try:
        frame = Frame.model_validate_json(raw)
    except PydanticValidationError:
        raise ValidationError("FATAL: Frame must be an object with an event name", fatal=True)
    return frame.event, frame.data


class WebSocketConnection(Connection):
    """
    Connection backed by a FastAPI WebSocket.

    `send` may be called from any thread; frames are queued on the event
    loop and written in order by `run`.
    """

    def __init__(self, websocket: WebSocket, loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__()
        self.websocket = websocket
        self.loop = loop or asyncio.get_running_loop()
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def send(self, event: str, data: Any = None):
        if self.closed:
            return
        self.loop.call_soon_threadsafe(self.queue.put_nowait, {'event': event, 'data': data})

    def close(self):
        if self.closed:
            return
        self.closed = True
        self.loop.call_soon_threadsafe(self.queue.put_nowait, None)

    async def run(self):
        """Write queued frames until the connection is closed."""
        try:
            while True:
                frame = await self.queue.get()
                if frame is None:
                    await self.websocket.close()
                    return
                await self.websocket.send_json(frame)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            logger.debug(f"Connection {self.id}: Stopped writing ({e!r})")
            self.closed = True
