from fastapi import WebSocket, WebSocketDisconnect
from typing import Dict, List, Optional
from uuid import UUID
import logging


class ConnectionManager:
    def __init__(self):
        self.active_connections: Dict[UUID, List[WebSocket]] = {}

    async def connect(self, websocket: WebSocket):
        await websocket.accept()

    def subscribe(self, websocket: WebSocket, game_id: UUID):
        """Register a websocket under a game_id it has addressed

        Args:
            websocket (WebSocket):
            game_id (UUID): To identify the game
        """
        connections = self.active_connections.setdefault(game_id, [])
        if websocket not in connections:
            connections.append(websocket)

    def disconnect(self, websocket: WebSocket):
        """Remove a websocket from every game it was registered under

        Args:
            websocket (WebSocket):
        """
        for game_id in list(self.active_connections):
            connections = self.active_connections[game_id]
            if websocket in connections:
                connections.remove(websocket)
            # Clean up if there are no more connections for this game_id
            if not connections:
                del self.active_connections[game_id]

    async def send_personal_message(self, message: dict, websocket: WebSocket):
        await websocket.send_json(message)

    async def broadcast(self, message: dict, game_id: UUID, exclude: Optional[WebSocket] = None):
        logging.info(f"Broadcasting message to game_id: {game_id}")
        for connection in list(self.active_connections.get(game_id, [])):
            if connection is exclude:
                continue
            try:
                await connection.send_json(message)
            except (WebSocketDisconnect, RuntimeError) as e:
                logging.info(f"Dropping closed websocket from game_id={game_id}: {e!r}")
                self.disconnect(connection)
