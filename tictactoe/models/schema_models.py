from pydantic import BaseModel, field_validator
from enum import Enum
from typing import List, Optional
from uuid import UUID
from datetime import datetime, timezone


class GameStatus(str, Enum):
    WAITING = "WAITING"
    IN_PROGRESS = "IN_PROGRESS"
    FINISHED = "FINISHED"


class Symbol(str, Enum):
    X = "X"
    O = "O"  # noqa: E741

    @property
    def opponent(self) -> "Symbol":
        return Symbol.O if self is Symbol.X else Symbol.X


DRAW_RESULT = "DRAW"


def assume_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PlayerSchema(BaseModel):
    player_id: UUID
    game_id: UUID
    seat: int
    name: str
    symbol: Symbol
    joined_at: datetime

    @field_validator("joined_at")
    @classmethod
    def joined_at_utc(cls, value: datetime) -> datetime:
        return assume_utc(value)

    class Config:
        from_attributes = True
        frozen = True


class MoveSchema(BaseModel):
    move_id: UUID
    game_id: UUID
    player_id: UUID
    seq: int
    symbol: Symbol
    row: int
    col: int
    moved_at: datetime

    @field_validator("moved_at")
    @classmethod
    def moved_at_utc(cls, value: datetime) -> datetime:
        return assume_utc(value)

    class Config:
        from_attributes = True
        frozen = True


class GameSchema(BaseModel):
    """Snapshot of one game aggregate as loaded from or written to storage."""

    game_id: UUID
    status: GameStatus
    next_turn: Optional[Symbol] = None
    winner: Optional[Symbol] = None
    created_at: datetime
    revision: int = 0
    players: List[PlayerSchema] = []
    moves: List[MoveSchema] = []

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value: datetime) -> datetime:
        return assume_utc(value)

    class Config:
        from_attributes = True

    @property
    def result(self) -> Optional[str]:
        """Symbol text of the winner, DRAW, or None while the game is running."""
        if self.status != GameStatus.FINISHED:
            return None
        return self.winner.value if self.winner is not None else DRAW_RESULT
