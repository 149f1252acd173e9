"""Session coordinator: the single entry point for game operations.

Mutations on one game id run inside that game's critical section: load the
snapshot, let the rules validate and apply the change, compare-and-swap it into
storage, then invalidate cached reads. Different game ids never block each
other. Reads go through the cache.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, Tuple, TypeVar
from uuid import UUID

from uuid6 import uuid7

from tictactoe.converter import DataConverter
from tictactoe.domain import game_rules
from tictactoe.domain.errors import (
    CacheUnavailable,
    ConcurrentUpdate,
    ConflictError,
    GameNotFound,
    StorageTimeout,
    VersionConflict,
)
from tictactoe.game_sync_manager import GameSyncManager
from tictactoe.models.dc_models import GameModel, PlayerModel
from tictactoe.models.schema_models import GameSchema, GameStatus
from tictactoe.services.game_db import GameRepository

T = TypeVar("T")

# (updated snapshot, extra result for the caller)
Mutation = Callable[[GameSchema], Awaitable[Tuple[GameSchema, Any]]]

data_converter = DataConverter()

INVALIDATE_ATTEMPTS = 2


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GameCoordinator:
    def __init__(
        self,
        repository: GameRepository,
        cache,
        sync_manager: Optional[GameSyncManager] = None,
        *,
        storage_timeout: float = 2.0,
        lock_timeout: float = 5.0,
        max_attempts: int = 3,
    ):
        self.repository = repository
        self.cache = cache
        self.sync_manager = sync_manager if sync_manager is not None else GameSyncManager()
        self.storage_timeout = storage_timeout
        self.lock_timeout = lock_timeout
        self.max_attempts = max_attempts

    async def _storage(self, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, self.storage_timeout)
        except asyncio.TimeoutError:
            raise StorageTimeout()

    async def _invalidate(self):
        for attempt in range(1, INVALIDATE_ATTEMPTS + 1):
            try:
                await self.cache.invalidate_all()
                return
            except CacheUnavailable:
                logging.warning(
                    f"Cache invalidation failed attempt={attempt}/{INVALIDATE_ATTEMPTS}"
                )
        # The commit stands; stale entries age out after the cache TTL.
        logging.error("Cache invalidation failed after a committed mutation")

    async def _mutate(self, game_id: UUID, mutation: Mutation) -> Tuple[GameSchema, Any]:
        """Run load -> validate/apply -> compare-and-swap for one game

        A save that timed out may still have committed, so every attempt starts
        from a fresh load. A mutation that finds its own change already stored
        returns the loaded snapshot unchanged, and nothing is saved.

        Args:
            game_id (UUID): ID to identify the game
            mutation (Mutation): Applies the rules to the loaded snapshot

        Returns:
            Tuple[GameSchema, Any]: Committed snapshot and the mutation's extra result
        """
        last_error: Exception | None = None
        async with self.sync_manager.exclusive(game_id, self.lock_timeout):
            for attempt in range(1, self.max_attempts + 1):
                try:
                    game = await self._storage(self.repository.load_game(game_id))
                    if game is None:
                        logging.warning(f"Game not found: game_id={game_id}")
                        raise GameNotFound(game_id)
                    updated, extra = await mutation(game)
                    if updated is game:
                        logging.info(
                            f"Change already committed on game_id={game_id} attempt={attempt}"
                        )
                    else:
                        await self._storage(self.repository.save_game(updated, game.revision))
                except VersionConflict as e:
                    logging.warning(
                        f"Version conflict on game_id={game_id} attempt={attempt}/{self.max_attempts}"
                    )
                    last_error = e
                except StorageTimeout as e:
                    logging.warning(
                        f"Storage timeout on game_id={game_id} attempt={attempt}/{self.max_attempts}"
                    )
                    last_error = e
                else:
                    await self._invalidate()
                    return updated, extra

        if isinstance(last_error, StorageTimeout):
            raise last_error
        raise ConcurrentUpdate(game_id)

    async def create_game(self) -> UUID:
        game = game_rules.create_game(uuid7(), utc_now())
        logging.info(f"Starting creation of new game with game_id={game.game_id}")
        await self._storage(self.repository.create_game(game))
        await self._invalidate()
        return game.game_id

    async def join_game(self, game_id: UUID, name: str) -> PlayerModel:
        logging.info(f"Attempting to join game_id={game_id} as player='{name}'")
        player_id = uuid7()

        async def mutation(game: GameSchema):
            stored = next((p for p in game.players if p.player_id == player_id), None)
            if stored is not None:
                return game, stored
            try:
                return game_rules.join_game(game, player_id, name, utc_now())
            except ConflictError as e:
                logging.warning(f"Join rejected on game_id={game_id}: {e.reason}")
                raise

        updated, player = await self._mutate(game_id, mutation)
        if len(updated.players) == game_rules.MAX_PLAYERS:
            logging.info(f"game_id={game_id} status changed to {updated.status.value}")
        logging.info(
            f"Player joined: game_id={game_id} player_id={player.player_id} symbol={player.symbol.value}"
        )
        return data_converter.convert_playerschema_to_playermodel(player)

    async def make_move(self, game_id: UUID, player_id: UUID, row: int, col: int) -> GameModel:
        logging.info(
            f"Player {player_id} is attempting move on game_id={game_id} at row={row}, col={col}"
        )
        move_id = uuid7()

        async def mutation(game: GameSchema):
            if any(m.move_id == move_id for m in game.moves):
                return game, None
            player = await self._storage(self.repository.load_player(player_id))
            try:
                updated = game_rules.make_move(
                    game, player, player_id, move_id, row, col, utc_now()
                )
            except ConflictError as e:
                logging.warning(f"Move rejected on game_id={game_id}: {e.reason}")
                raise
            return updated, None

        updated, _ = await self._mutate(game_id, mutation)
        if updated.status == GameStatus.FINISHED:
            logging.info(f"game_id={game_id} finished, result={updated.result}")
        else:
            logging.debug(f"Next turn set to={updated.next_turn.value} for game_id={game_id}")
        return data_converter.convert_gameschema_to_gamemodel(updated)

    async def get_game(self, game_id: UUID) -> GameModel:
        async def compute():
            game = await self._storage(self.repository.load_game(game_id))
            if game is None:
                logging.warning(f"Game not found on get: game_id={game_id}")
                raise GameNotFound(game_id)
            return self._dump(game)

        data = await self.cache.get_or_compute(f"game:{game_id}", compute)
        return GameModel.model_validate(data)

    async def list_games(self, status: GameStatus) -> List[GameModel]:
        async def compute():
            games = await self._storage(self.repository.list_games_by_status(status))
            logging.debug(f"Found {len(games)} games with status={status.value}")
            return [self._dump(g) for g in games]

        data = await self.cache.get_or_compute(f"games:{status.value}", compute)
        return [GameModel.model_validate(item) for item in data]

    @staticmethod
    def _dump(game: GameSchema) -> dict:
        return data_converter.convert_gameschema_to_gamemodel(game).model_dump(
            mode="json", by_alias=True
        )
