from tictactoe.models.dc_models import GameModel, MoveModel, PlayerModel
from tictactoe.models.schema_models import GameSchema, MoveSchema, PlayerSchema


class DataConverter:
    """This class is used to convert stored snapshots into the models sent to clients."""

    def convert_playerschema_to_playermodel(self, player: PlayerSchema) -> PlayerModel:
        return PlayerModel(
            player_id=player.player_id,
            name=player.name,
            symbol=player.symbol,
            joined_at=player.joined_at,
        )

    def convert_moveschema_to_movemodel(self, move: MoveSchema) -> MoveModel:
        return MoveModel(
            move_id=move.move_id,
            player_id=move.player_id,
            symbol=move.symbol,
            row=move.row,
            col=move.col,
            moved_at=move.moved_at,
        )

    def convert_gameschema_to_gamemodel(self, game: GameSchema) -> GameModel:
        """Convert the GameSchema to the GameModel to send client

        Args:
            game (GameSchema): Snapshot of the game

        Returns:
            GameModel: Snapshot with the derived result, without storage-only fields
        """
        return GameModel(
            game_id=game.game_id,
            status=game.status,
            next_turn=game.next_turn,
            created_at=game.created_at,
            players=[self.convert_playerschema_to_playermodel(p) for p in game.players],
            moves=[self.convert_moveschema_to_movemodel(m) for m in game.moves],
            winner=game.winner,
            result=game.result,
        )
