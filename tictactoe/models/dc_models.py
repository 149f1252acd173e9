from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from uuid import UUID
from typing import List, Optional

from tictactoe.models.schema_models import GameStatus, Symbol


# Wire models use camelCase keys; Python code keeps snake_case attributes.


class PlayerModel(BaseModel):
    player_id: UUID
    name: str
    symbol: Symbol
    joined_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class MoveModel(BaseModel):
    move_id: UUID
    player_id: UUID
    symbol: Symbol
    row: int
    col: int
    moved_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class GameModel(BaseModel):
    game_id: UUID
    status: GameStatus
    next_turn: Optional[Symbol] = None
    created_at: datetime
    players: List[PlayerModel] = []
    moves: List[MoveModel] = []
    winner: Optional[Symbol] = None
    result: Optional[str] = None  # winner symbol text, "DRAW", or None while running

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class CreatedGameModel(BaseModel):
    game_id: UUID

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class JoinedPlayerModel(BaseModel):
    player: PlayerModel


class JoinRequestModel(BaseModel):
    name: str = Field(min_length=1, max_length=64)


class MoveRequestModel(BaseModel):
    player_id: UUID
    row: int = Field(ge=0, le=2)
    col: int = Field(ge=0, le=2)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ErrorModel(BaseModel):
    reason: str
    message: str
    error_id: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
