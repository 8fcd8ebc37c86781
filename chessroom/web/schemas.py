from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class Frame(BaseModel):
    """Envelope of every WebSocket frame."""
    event: str
    data: Any = None


class JoinGameData(BaseModel):
    """Payload of the joinGame event."""
    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(alias="gameId")
    name: str
    role: str
    side: Optional[str] = None


class MessageData(BaseModel):
    """Chat line broadcast to a game."""
    name: str
    message: str


class GameResponse(BaseModel):
    game_id: str
