from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from typing import Dict, List
from uuid import UUID
import logging

from tictactoe.domain.errors import VersionConflict
from tictactoe.models.schema_models import (
    GameSchema,
    GameStatus,
    MoveSchema,
    PlayerSchema,
)
from tictactoe.models.schemas import Game, Move, Player

# Helpers in this module never commit; callers own the transaction boundary.


def _player_row(player: PlayerSchema) -> Player:
    return Player(
        player_id=player.player_id,
        game_id=player.game_id,
        seat=player.seat,
        name=player.name,
        symbol=player.symbol.value,
        joined_at=player.joined_at,
    )


def _move_row(move: MoveSchema) -> Move:
    return Move(
        move_id=move.move_id,
        game_id=move.game_id,
        player_id=move.player_id,
        seq=move.seq,
        symbol=move.symbol.value,
        row=move.row,
        col=move.col,
        moved_at=move.moved_at,
    )


def _game_schema(game: Game, players: List[Player], moves: List[Move]) -> GameSchema:
    return GameSchema(
        game_id=game.game_id,
        status=game.status,
        next_turn=game.next_turn,
        winner=game.winner,
        created_at=game.created_at,
        revision=game.revision,
        players=[PlayerSchema.model_validate(p) for p in players],
        moves=[MoveSchema.model_validate(m) for m in moves],
    )


class ReadData:
    @staticmethod
    async def read_game_data(game_id: UUID, session: AsyncSession) -> GameSchema | None:
        """Read a game with its players and moves

        Args:
            game_id (UUID): To identify the game
            session (AsyncSession): AsyncSession object to interact with database

        Returns:
            GameSchema | None: Full snapshot, None if the game does not exist
        """
        result = await session.execute(select(Game).where(Game.game_id == game_id))
        game = result.scalars().first()
        if game is None:
            return None

        result = await session.execute(
            select(Player).where(Player.game_id == game_id).order_by(Player.seat)
        )
        players = list(result.scalars().all())
        result = await session.execute(
            select(Move).where(Move.game_id == game_id).order_by(Move.seq)
        )
        moves = list(result.scalars().all())
        return _game_schema(game, players, moves)

    @staticmethod
    async def read_player_data(player_id: UUID, session: AsyncSession) -> PlayerSchema | None:
        """Read a single player

        Args:
            player_id (UUID): To identify the player

        Returns:
            PlayerSchema | None: The player, None if it does not exist
        """
        result = await session.execute(select(Player).where(Player.player_id == player_id))
        player = result.scalars().first()
        if player is None:
            return None
        return PlayerSchema.model_validate(player)

    @staticmethod
    async def read_games_by_status(status: GameStatus, session: AsyncSession) -> List[GameSchema]:
        """Read every game in the given status, oldest first

        Args:
            status (GameStatus): Lifecycle status to filter on

        Returns:
            List[GameSchema]: Full snapshots
        """
        result = await session.execute(
            select(Game).where(Game.status == status.value).order_by(Game.created_at)
        )
        games = list(result.scalars().all())
        if not games:
            return []

        game_ids = [g.game_id for g in games]
        players_by_game: Dict[UUID, List[Player]] = {gid: [] for gid in game_ids}
        moves_by_game: Dict[UUID, List[Move]] = {gid: [] for gid in game_ids}

        result = await session.execute(
            select(Player).where(Player.game_id.in_(game_ids)).order_by(Player.seat)
        )
        for player in result.scalars().all():
            players_by_game[player.game_id].append(player)
        result = await session.execute(
            select(Move).where(Move.game_id.in_(game_ids)).order_by(Move.seq)
        )
        for move in result.scalars().all():
            moves_by_game[move.game_id].append(move)

        return [
            _game_schema(g, players_by_game[g.game_id], moves_by_game[g.game_id])
            for g in games
        ]


class CreateData:
    @staticmethod
    async def add_game_data(game: GameSchema, session: AsyncSession):
        """Stage a brand new game row (with any players/moves it already has)

        Args:
            game (GameSchema): Snapshot at revision 0
            session (AsyncSession): AsyncSession object to interact with database
        """
        session.add(
            Game(
                game_id=game.game_id,
                status=game.status.value,
                next_turn=game.next_turn.value if game.next_turn else None,
                winner=game.winner.value if game.winner else None,
                created_at=game.created_at,
                revision=game.revision,
            )
        )
        # Flush the parent first so child rows never reach the DB ahead of it.
        await session.flush()
        session.add_all([_player_row(p) for p in game.players])
        session.add_all([_move_row(m) for m in game.moves])
        await session.flush()


class UpdateData:
    @staticmethod
    async def update_game_data_no_commit(
        game: GameSchema, expected_revision: int, session: AsyncSession
    ):
        """Compare-and-swap the game row and append its new players/moves

        The game row is only written when its stored revision still equals
        expected_revision. Players and moves are append-only, so anything in
        the snapshot that is not stored yet is inserted.

        Args:
            game (GameSchema): Snapshot to persist, already carrying the next revision
            expected_revision (int): Revision the snapshot was computed from
            session (AsyncSession): AsyncSession object inside an open transaction

        Raises:
            VersionConflict: The stored revision moved, or a uniqueness rule was hit
        """
        stmt = (
            update(Game)
            .where(Game.game_id == game.game_id, Game.revision == expected_revision)
            .values(
                status=game.status.value,
                next_turn=game.next_turn.value if game.next_turn else None,
                winner=game.winner.value if game.winner else None,
                revision=game.revision,
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        if result.rowcount != 1:
            logging.warning(
                f"Revision mismatch on game_id={game.game_id} expected={expected_revision}"
            )
            raise VersionConflict(game.game_id, expected_revision)

        result = await session.execute(
            select(Player.player_id, Player.seat).where(Player.game_id == game.game_id)
        )
        stored_seats = dict(result.all())
        result = await session.execute(
            select(Move.move_id, Move.seq).where(Move.game_id == game.game_id)
        )
        stored_seqs = dict(result.all())

        # A stored id keeps its seat or seq.
        if any(stored_seats.get(p.player_id, p.seat) != p.seat for p in game.players) or any(
            stored_seqs.get(m.move_id, m.seq) != m.seq for m in game.moves
        ):
            logging.warning(f"Stored player or move moved slot on game_id={game.game_id}")
            raise VersionConflict(game.game_id, expected_revision)

        session.add_all(
            [_player_row(p) for p in game.players if p.player_id not in stored_seats]
        )
        session.add_all(
            [_move_row(m) for m in game.moves if m.move_id not in stored_seqs]
        )
        try:
            await session.flush()
        except IntegrityError as e:
            logging.warning(f"Uniqueness rule hit while saving game_id={game.game_id}: {e.orig}")
            raise VersionConflict(game.game_id, expected_revision) from e
