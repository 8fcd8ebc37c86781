import asyncio
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ..config import load_config
from ..game.errors import ValidationError
from .connection import WebSocketConnection, decode_frame
from .gateway import ConnectionGateway, build_gateway
from .schemas import GameResponse

gateway: Optional[ConnectionGateway] = None
config: Dict = {}


def setup_logging(logging_config: Dict):
    """Send logs to stderr and to a rotating file."""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=logging_config.get('level', 'INFO')
    )
    log_file = logging_config.get('file')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, rotation="100 MB", retention="30 days", level="DEBUG")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load configuration and build the game components on startup."""
    global gateway, config

    config = load_config()
    setup_logging(config['logging'])
    logger.info("Starting chessroom server...")

    gateway = build_gateway(config)

    logger.info("chessroom server started successfully")
    yield
    logger.info("chessroom server stopped")


app = FastAPI(
    title="chessroom API",
    description="Play chess with friends, server-side refereed",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_gateway() -> ConnectionGateway:
    if gateway is None:
        raise HTTPException(status_code=503, detail="Server not started")
    return gateway


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "active_games": len(get_gateway().store)
    }


@app.post("/api/game/new", response_model=GameResponse)
async def new_game():
    """
    Create a new game.

    Returns:
        Game response with the game ID to share with other participants
    """
    game_id = get_gateway().create_game()
    return GameResponse(game_id=game_id)


@app.get("/api/game/{game_id}/state")
async def get_game_state(game_id: str):
    """
    Get current game state.

    Args:
        game_id: Game identifier

    Returns:
        Current game state
    """
    current = get_gateway()
    session = current.store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Game not found")

    with session.lock:
        return {"state": current.broadcaster.serialize(session)}


@app.get("/api/games")
async def list_games():
    """
    List all active games.

    Returns:
        List of active game IDs
    """
    return {
        "games": [
            {
                "game_id": session.id,
                "status": session.status.value,
                "participants": len(session.participants),
                "created_at": session.created_at.isoformat()
            }
            for session in get_gateway().store.list()
        ]
    }


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    Game event channel.

    Frames in both directions are JSON objects {"event": ..., "data": ...}.
    """
    current = get_gateway()
    await websocket.accept()
    connection = WebSocketConnection(websocket, asyncio.get_running_loop())
    writer = asyncio.create_task(connection.run())
    logger.info(f"Connection {connection.id}: Connected")

    try:
        while not connection.closed:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            try:
                event, data = decode_frame(message.get("text"))
            except ValidationError as e:
                current.report(connection, e)
                continue
            current.handle(connection, event, data)
    except WebSocketDisconnect:
        pass
    finally:
        logger.info(f"Connection {connection.id}: Disconnected")
        current.disconnect(connection)
        connection.close()
        await writer
