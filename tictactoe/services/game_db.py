"""DB service layer for game-related use cases.

- Routers and the coordinator never touch DB sessions directly; they call this module.
- This layer owns session/transaction boundaries.
- Use CRUD helpers that do NOT commit inside session.begin().
"""

from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tictactoe.crud import CreateData, ReadData, UpdateData
from tictactoe.db import Session
from tictactoe.domain.errors import VersionConflict
from tictactoe.models.schema_models import GameSchema, GameStatus, PlayerSchema


class GameRepository:
    """Loads and saves whole game aggregates, one session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = Session):
        self.Session = session_factory

    async def load_game(self, game_id: UUID) -> GameSchema | None:
        async with self.Session() as session:
            return await ReadData.read_game_data(game_id, session)

    async def load_player(self, player_id: UUID) -> PlayerSchema | None:
        async with self.Session() as session:
            return await ReadData.read_player_data(player_id, session)

    async def list_games_by_status(self, status: GameStatus) -> List[GameSchema]:
        async with self.Session() as session:
            return await ReadData.read_games_by_status(status, session)

    async def create_game(self, game: GameSchema) -> None:
        async with self.Session() as session:
            async with session.begin():
                await CreateData.add_game_data(game, session)

    async def save_game(self, game: GameSchema, expected_revision: int) -> None:
        """Persist the snapshot if nobody else committed since expected_revision.

        Raises:
            VersionConflict: Another writer got there first
        """
        try:
            async with self.Session() as session:
                async with session.begin():
                    await UpdateData.update_game_data_no_commit(
                        game, expected_revision, session
                    )
        except IntegrityError as e:
            # Constraint checks that only fire at COMMIT land here.
            raise VersionConflict(game.game_id, expected_revision) from e
