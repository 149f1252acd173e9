"""
Tests for the pure rules: win evaluation and the game state machine.
"""
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from tictactoe.domain import game_rules
from tictactoe.domain.errors import (
    CellOccupied,
    ConflictError,
    GameFinished,
    GameFull,
    GameNotInProgress,
    InvalidCell,
    NotYourTurn,
    PlayerNotFound,
    PlayerNotInGame,
)
from tictactoe.models.schema_models import GameStatus, MoveSchema, Symbol

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

DRAW_CELLS = [(0, 0), (0, 1), (0, 2), (1, 1), (1, 0), (1, 2), (2, 1), (2, 0), (2, 2)]
DIAGONAL_O_WIN_CELLS = [(0, 1), (0, 0), (1, 0), (1, 1), (2, 1), (2, 2)]


def move_at(symbol, row, col, seq=0):
    return MoveSchema(
        move_id=uuid4(),
        game_id=uuid4(),
        player_id=uuid4(),
        seq=seq,
        symbol=symbol,
        row=row,
        col=col,
        moved_at=NOW,
    )


def started_game():
    game = game_rules.create_game(uuid4(), NOW)
    game, x = game_rules.join_game(game, uuid4(), "Alice", NOW)
    game, o = game_rules.join_game(game, uuid4(), "Bob", NOW)
    return game, x, o


def play(game, players, cells):
    """Play cells alternately starting with players[0], checking invariants after each move."""
    for i, (row, col) in enumerate(cells):
        player = players[i % 2]
        game = game_rules.make_move(game, player, player.player_id, uuid4(), row, col, NOW)
        assert_invariants(game)
    return game


def assert_invariants(game):
    assert len(game.moves) <= game_rules.MAX_MOVES
    assert len({(m.row, m.col) for m in game.moves}) == len(game.moves)
    finished = game.winner is not None or len(game.moves) == game_rules.MAX_MOVES
    assert (game.status == GameStatus.FINISHED) == finished
    assert (game.next_turn is None) == (game.status == GameStatus.FINISHED)
    if game.status != GameStatus.FINISHED:
        expected = Symbol.X if len(game.moves) % 2 == 0 else Symbol.O
        assert game.next_turn == expected


# ==== Win evaluator ============================================================


@pytest.mark.parametrize("line", game_rules.WINNING_LINES)
@pytest.mark.parametrize("symbol", [Symbol.X, Symbol.O])
def test_each_line_wins_for_its_symbol(line, symbol):
    moves = [move_at(symbol, r, c, i) for i, (r, c) in enumerate(sorted(line))]
    assert game_rules.evaluate_winner(moves) == symbol


def test_no_moves_no_winner():
    assert game_rules.evaluate_winner([]) is None


def test_mixed_line_is_not_a_win():
    moves = [
        move_at(Symbol.X, 0, 0),
        move_at(Symbol.O, 0, 1),
        move_at(Symbol.X, 0, 2),
        move_at(Symbol.X, 1, 1),
    ]
    assert game_rules.evaluate_winner(moves) is None


def test_x_reported_when_both_symbols_cover_a_line():
    moves = [move_at(Symbol.O, 1, c) for c in range(3)] + [
        move_at(Symbol.X, 0, c) for c in range(3)
    ]
    assert game_rules.evaluate_winner(moves) == Symbol.X


# ==== Create / join ============================================================


def test_create_game_starts_waiting_for_x():
    game_id = uuid4()
    game = game_rules.create_game(game_id, NOW)

    assert game.game_id == game_id
    assert game.status == GameStatus.WAITING
    assert game.next_turn == Symbol.X
    assert game.winner is None
    assert game.players == [] and game.moves == []
    assert game.revision == 0
    assert game.result is None


def test_join_assigns_x_then_o_and_starts_game():
    game = game_rules.create_game(uuid4(), NOW)

    game, first = game_rules.join_game(game, uuid4(), "Alice", NOW)
    assert first.symbol == Symbol.X
    assert game.status == GameStatus.WAITING
    assert game.revision == 1

    game, second = game_rules.join_game(game, uuid4(), "Bob", NOW)
    assert second.symbol == Symbol.O
    assert game.status == GameStatus.IN_PROGRESS
    assert [p.name for p in game.players] == ["Alice", "Bob"]
    assert game.revision == 2


def test_third_join_is_rejected_as_full():
    game, _, _ = started_game()

    with pytest.raises(GameFull) as exc_info:
        game_rules.join_game(game, uuid4(), "Charlie", NOW)
    assert isinstance(exc_info.value, ConflictError)
    assert exc_info.value.reason == "GAME_FULL"


def test_join_on_finished_game_reports_finished():
    game, x, o = started_game()
    game = play(game, [x, o], DRAW_CELLS)

    with pytest.raises(GameFinished):
        game_rules.join_game(game, uuid4(), "Late", NOW)


def test_join_does_not_mutate_input_snapshot():
    game = game_rules.create_game(uuid4(), NOW)
    game_rules.join_game(game, uuid4(), "Alice", NOW)

    assert game.players == []
    assert game.revision == 0


# ==== Moves ====================================================================


def test_turn_alternates_until_termination():
    game, x, o = started_game()
    play(game, [x, o], DRAW_CELLS[:8])


def test_draw_scenario():
    game, x, o = started_game()
    game = play(game, [x, o], DRAW_CELLS)

    assert game.status == GameStatus.FINISHED
    assert game.winner is None
    assert game.next_turn is None
    assert game.result == "DRAW"
    assert len(game.moves) == 9


def test_diagonal_win_scenario():
    game, x, o = started_game()
    game = play(game, [x, o], DIAGONAL_O_WIN_CELLS[:5])
    assert game.status == GameStatus.IN_PROGRESS

    game = play(game, [o, x], DIAGONAL_O_WIN_CELLS[5:])
    assert game.status == GameStatus.FINISHED
    assert game.winner == Symbol.O
    assert game.next_turn is None
    assert game.result == "O"


def test_moves_are_recorded_in_play_order():
    game, x, o = started_game()
    game = play(game, [x, o], DRAW_CELLS[:4])

    assert [m.seq for m in game.moves] == [0, 1, 2, 3]
    assert [(m.row, m.col) for m in game.moves] == DRAW_CELLS[:4]
    assert [m.symbol for m in game.moves] == [Symbol.X, Symbol.O, Symbol.X, Symbol.O]


def test_second_player_cannot_move_first():
    game, _, o = started_game()

    with pytest.raises(NotYourTurn):
        game_rules.make_move(game, o, o.player_id, uuid4(), 0, 0, NOW)


def test_occupied_cell_is_rejected_and_state_unchanged():
    game, x, o = started_game()
    game = play(game, [x, o], [(1, 1)])
    before = game.model_copy(deep=True)

    with pytest.raises(CellOccupied):
        game_rules.make_move(game, o, o.player_id, uuid4(), 1, 1, NOW)
    assert game == before


def test_move_before_game_starts_is_rejected():
    game = game_rules.create_game(uuid4(), NOW)
    game, x = game_rules.join_game(game, uuid4(), "Alice", NOW)

    with pytest.raises(GameNotInProgress):
        game_rules.make_move(game, x, x.player_id, uuid4(), 0, 0, NOW)


def test_move_after_game_finished_is_rejected():
    game, x, o = started_game()
    game = play(game, [x, o], DRAW_CELLS)

    with pytest.raises(GameNotInProgress):
        game_rules.make_move(game, x, x.player_id, uuid4(), 0, 0, NOW)


def test_unknown_player_is_rejected():
    game, _, _ = started_game()
    missing = uuid4()

    with pytest.raises(PlayerNotFound) as exc_info:
        game_rules.make_move(game, None, missing, uuid4(), 0, 0, NOW)
    assert str(missing) in exc_info.value.message


def test_player_from_another_game_is_rejected():
    game, _, _ = started_game()
    _, stranger, _ = started_game()

    with pytest.raises(PlayerNotInGame):
        game_rules.make_move(game, stranger, stranger.player_id, uuid4(), 0, 0, NOW)


def test_status_is_checked_before_turn_and_cell():
    game, x, o = started_game()
    game = play(game, [x, o], DRAW_CELLS)

    # O is not on turn and (0, 0) is taken, but the finished status wins.
    with pytest.raises(GameNotInProgress):
        game_rules.make_move(game, o, o.player_id, uuid4(), 0, 0, NOW)


@pytest.mark.parametrize("row,col", [(-1, 0), (0, 3), (3, 3)])
def test_off_board_cell_is_rejected(row, col):
    game, x, _ = started_game()

    with pytest.raises(InvalidCell):
        game_rules.make_move(game, x, x.player_id, uuid4(), row, col, NOW)
