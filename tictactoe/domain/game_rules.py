"""Tic-tac-toe rules that are independent from HTTP and DB.

Rule of thumb:
- OK: validation, lifecycle transitions, win/draw detection.
- Not OK: touching DB sessions, Redis, FastAPI, datetime.now(), uuid generation.

Every operation takes a snapshot and returns a new one; the input is never
mutated. Rejections are raised as domain errors.
"""

from datetime import datetime
from typing import Iterable, Optional, Tuple
from uuid import UUID

from tictactoe.domain.errors import (
    CellOccupied,
    GameFinished,
    GameFull,
    GameNotInProgress,
    InvalidCell,
    NotYourTurn,
    PlayerNotFound,
    PlayerNotInGame,
)
from tictactoe.models.schema_models import (
    GameSchema,
    GameStatus,
    MoveSchema,
    PlayerSchema,
    Symbol,
)

BOARD_SIZE = 3
MAX_PLAYERS = 2
MAX_MOVES = BOARD_SIZE * BOARD_SIZE

# Seat index -> symbol. The first joiner always plays X.
SEAT_SYMBOLS = (Symbol.X, Symbol.O)

# Order matters only for readability; every line is checked for X before any for O.
WINNING_LINES = (
    frozenset({(0, 0), (0, 1), (0, 2)}),
    frozenset({(1, 0), (1, 1), (1, 2)}),
    frozenset({(2, 0), (2, 1), (2, 2)}),
    frozenset({(0, 0), (1, 0), (2, 0)}),
    frozenset({(0, 1), (1, 1), (2, 1)}),
    frozenset({(0, 2), (1, 2), (2, 2)}),
    frozenset({(0, 0), (1, 1), (2, 2)}),
    frozenset({(0, 2), (1, 1), (2, 0)}),
)


def evaluate_winner(moves: Iterable[MoveSchema]) -> Optional[Symbol]:
    """Return the symbol that completed a line, or None.

    X is checked first, so X is reported if both symbols somehow cover a line.
    """
    positions = {Symbol.X: set(), Symbol.O: set()}
    for move in moves:
        positions[move.symbol].add((move.row, move.col))

    for symbol in (Symbol.X, Symbol.O):
        for line in WINNING_LINES:
            if line <= positions[symbol]:
                return symbol
    return None


def is_on_board(row: int, col: int) -> bool:
    return 0 <= row < BOARD_SIZE and 0 <= col < BOARD_SIZE


def create_game(game_id: UUID, now: datetime) -> GameSchema:
    """Build an empty game waiting for its first player."""
    return GameSchema(
        game_id=game_id,
        status=GameStatus.WAITING,
        next_turn=Symbol.X,
        winner=None,
        created_at=now,
        revision=0,
        players=[],
        moves=[],
    )


def join_game(
    game: GameSchema, player_id: UUID, name: str, now: datetime
) -> Tuple[GameSchema, PlayerSchema]:
    """Seat a new player in the game.

    Args:
        game (GameSchema): Current snapshot
        player_id (UUID): Identifier for the new player
        name (str): Display name, validated by the transport
        now (datetime): Join timestamp

    Returns:
        Tuple[GameSchema, PlayerSchema]: Updated snapshot and the created player
    """
    if game.status == GameStatus.FINISHED:
        raise GameFinished()
    if len(game.players) >= MAX_PLAYERS:
        raise GameFull()

    seat = len(game.players)
    player = PlayerSchema(
        player_id=player_id,
        game_id=game.game_id,
        seat=seat,
        name=name,
        symbol=SEAT_SYMBOLS[seat],
        joined_at=now,
    )
    players = [*game.players, player]
    status = GameStatus.IN_PROGRESS if len(players) == MAX_PLAYERS else game.status

    updated = game.model_copy(
        update={
            "players": players,
            "status": status,
            "revision": game.revision + 1,
        }
    )
    return updated, player


def make_move(
    game: GameSchema,
    player: Optional[PlayerSchema],
    player_id: UUID,
    move_id: UUID,
    row: int,
    col: int,
    now: datetime,
) -> GameSchema:
    """Validate and apply one move.

    Checks run in a fixed order and each failure is distinct: game status,
    player existence, player membership, turn, then cell occupancy.

    Args:
        game (GameSchema): Current snapshot
        player (Optional[PlayerSchema]): Stored player for player_id, None if it did not resolve
        player_id (UUID): Requested player identifier
        move_id (UUID): Identifier for the new move
        row (int): 0..2
        col (int): 0..2
        now (datetime): Move timestamp

    Returns:
        GameSchema: Updated snapshot
    """
    if not is_on_board(row, col):
        raise InvalidCell(row, col)
    if game.status != GameStatus.IN_PROGRESS:
        raise GameNotInProgress()
    if player is None:
        raise PlayerNotFound(player_id)
    if player.game_id != game.game_id:
        raise PlayerNotInGame()
    if player.symbol != game.next_turn:
        raise NotYourTurn()
    if any(m.row == row and m.col == col for m in game.moves):
        raise CellOccupied()

    move = MoveSchema(
        move_id=move_id,
        game_id=game.game_id,
        player_id=player.player_id,
        seq=len(game.moves),
        symbol=player.symbol,
        row=row,
        col=col,
        moved_at=now,
    )
    moves = [*game.moves, move]

    winner = evaluate_winner(moves)
    if winner is not None:
        status, next_turn = GameStatus.FINISHED, None
    elif len(moves) == MAX_MOVES:
        status, next_turn = GameStatus.FINISHED, None
    else:
        status, next_turn = game.status, game.next_turn.opponent

    return game.model_copy(
        update={
            "moves": moves,
            "status": status,
            "next_turn": next_turn,
            "winner": winner,
            "revision": game.revision + 1,
        }
    )
