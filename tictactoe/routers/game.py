from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from tictactoe.models.dc_models import (
    CreatedGameModel,
    GameModel,
    JoinedPlayerModel,
    JoinRequestModel,
    MoveRequestModel,
)
from tictactoe.models.schema_models import GameStatus
from tictactoe.services.game_coordinator import GameCoordinator

game_router = APIRouter(prefix="/games", tags=["games"])


def get_coordinator(request: Request) -> GameCoordinator:
    return request.app.state.coordinator


class GameAPI:
    @staticmethod
    @game_router.post("", status_code=status.HTTP_201_CREATED, response_model=CreatedGameModel)
    async def create_game(coordinator: GameCoordinator = Depends(get_coordinator)):
        """Create an empty game waiting for players

        Returns:
            CreatedGameModel: {"gameId": ...}
        """
        game_id = await coordinator.create_game()
        return CreatedGameModel(game_id=game_id)

    @staticmethod
    @game_router.post(
        "/{game_id}/players",
        status_code=status.HTTP_201_CREATED,
        response_model=JoinedPlayerModel,
    )
    async def join_game(
        game_id: UUID,
        request: JoinRequestModel,
        coordinator: GameCoordinator = Depends(get_coordinator),
    ):
        """Seat a player; the first gets X, the second O and starts the game

        Args:
            game_id (UUID): To identify the game
            request (JoinRequestModel): {"name": ...}

        Returns:
            JoinedPlayerModel: {"player": {...}}
        """
        player = await coordinator.join_game(game_id, request.name)
        return JoinedPlayerModel(player=player)

    @staticmethod
    @game_router.post("/{game_id}/moves", response_model=GameModel)
    async def make_move(
        game_id: UUID,
        request: MoveRequestModel,
        coordinator: GameCoordinator = Depends(get_coordinator),
    ):
        return await coordinator.make_move(game_id, request.player_id, request.row, request.col)

    @staticmethod
    @game_router.get("/{game_id}", response_model=GameModel)
    async def get_game(game_id: UUID, coordinator: GameCoordinator = Depends(get_coordinator)):
        return await coordinator.get_game(game_id)

    @staticmethod
    @game_router.get("", response_model=List[GameModel])
    async def list_games(
        game_status: GameStatus = Query(alias="status"),
        coordinator: GameCoordinator = Depends(get_coordinator),
    ):
        return await coordinator.list_games(game_status)
