"""WebSocket text protocol: every frame is a JSON object routed by its "action".

This is decode/encode glue around GameCoordinator; no game rules live here.
"""

import json
import logging
from typing import Awaitable, Callable, Dict
from uuid import UUID, uuid4

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as RequestValidationError

from tictactoe.domain.errors import GameError
from tictactoe.manager import ConnectionManager
from tictactoe.models.dc_models import JoinRequestModel, MoveRequestModel
from tictactoe.models.schema_models import GameStatus
from tictactoe.request_context import new_request_id, request_id_var
from tictactoe.services.game_coordinator import GameCoordinator

game_ws_router = APIRouter()
manager = ConnectionManager()

Handler = Callable[[GameCoordinator, WebSocket, dict], Awaitable[dict]]


def error(message: str) -> dict:
    return {"error": message}


def parse_game_id(node: dict) -> UUID:
    return UUID(str(node.get("gameId", "")))


async def handle_create(coordinator: GameCoordinator, websocket: WebSocket, node: dict) -> dict:
    game_id = await coordinator.create_game()
    manager.subscribe(websocket, game_id)
    return {"type": "created", "gameId": str(game_id)}


async def handle_join(coordinator: GameCoordinator, websocket: WebSocket, node: dict) -> dict:
    try:
        game_id = parse_game_id(node)
    except ValueError:
        return error("Invalid gameId")
    try:
        request = JoinRequestModel.model_validate(node)
    except RequestValidationError:
        return error("Invalid name")
    player = await coordinator.join_game(game_id, request.name)
    manager.subscribe(websocket, game_id)
    return {"type": "joined", "player": player.model_dump(mode="json", by_alias=True)}


async def handle_move(coordinator: GameCoordinator, websocket: WebSocket, node: dict) -> dict:
    try:
        game_id = parse_game_id(node)
        request = MoveRequestModel.model_validate(node.get("move"))
    except (ValueError, RequestValidationError):
        return error("Bad move request")
    game = await coordinator.make_move(game_id, request.player_id, request.row, request.col)
    manager.subscribe(websocket, game_id)
    reply = {"type": "update", "game": game.model_dump(mode="json", by_alias=True)}
    await manager.broadcast(reply, game_id, exclude=websocket)
    return reply


async def handle_get(coordinator: GameCoordinator, websocket: WebSocket, node: dict) -> dict:
    try:
        game_id = parse_game_id(node)
    except ValueError:
        return error("Invalid gameId")
    game = await coordinator.get_game(game_id)
    manager.subscribe(websocket, game_id)
    return {"type": "state", "game": game.model_dump(mode="json", by_alias=True)}


async def handle_list(coordinator: GameCoordinator, websocket: WebSocket, node: dict) -> dict:
    try:
        status = GameStatus(node.get("status"))
    except ValueError:
        return error("Invalid status")
    games = await coordinator.list_games(status)
    return {
        "type": "games",
        "games": [g.model_dump(mode="json", by_alias=True) for g in games],
    }


HANDLERS: Dict[str, Handler] = {
    "create": handle_create,
    "join": handle_join,
    "move": handle_move,
    "get": handle_get,
    "list": handle_list,
}


async def process(coordinator: GameCoordinator, websocket: WebSocket, payload: str) -> dict:
    """Decode one frame, run its action and encode the reply

    Args:
        coordinator (GameCoordinator): Entry point for game operations
        websocket (WebSocket): Connection the frame came from
        payload (str): Raw text frame

    Returns:
        dict: Reply to send back on the same connection
    """
    try:
        node = json.loads(payload)
    except json.JSONDecodeError:
        return error("Invalid JSON")
    if not isinstance(node, dict):
        return error("Invalid JSON")

    handler = HANDLERS.get(node.get("action", ""))
    if handler is None:
        return error("Unknown action")

    try:
        return await handler(coordinator, websocket, node)
    except GameError as e:
        logging.warning(f"WebSocket action {node.get('action')} rejected: {e.reason}")
        return {"error": e.message, "reason": e.reason}
    except Exception:
        error_id = str(uuid4())
        logging.exception(f"ErrorId {error_id}: WebSocket handling error")
        return {"error": "Server error", "errorId": error_id}


class GameSocket:
    @staticmethod
    @game_ws_router.websocket("/ws/games")
    async def game_socket(websocket: WebSocket):
        coordinator: GameCoordinator = websocket.app.state.coordinator
        await manager.connect(websocket)
        try:
            while True:
                payload = await websocket.receive_text()
                token = request_id_var.set(new_request_id())
                try:
                    reply = await process(coordinator, websocket, payload)
                    await manager.send_personal_message(reply, websocket)
                finally:
                    request_id_var.reset(token)
        except WebSocketDisconnect:
            logging.info("WebSocket disconnected")
        finally:
            manager.disconnect(websocket)
