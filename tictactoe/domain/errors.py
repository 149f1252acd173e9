"""Error taxonomy shared by the rules, the coordinator and the transports.

Every error carries a stable machine-readable ``reason`` and a human message.
Transports map the class (not the reason) to a status code.
"""

from uuid import UUID


class GameError(Exception):
    reason = "GAME_ERROR"

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.message = message
        if reason is not None:
            self.reason = reason


class NotFoundError(GameError):
    reason = "NOT_FOUND"


class ConflictError(GameError):
    reason = "CONFLICT"


class ValidationError(GameError):
    reason = "INVALID_REQUEST"


class TransientError(GameError):
    reason = "TRANSIENT"


# ==== Not found ===============================================================


class GameNotFound(NotFoundError):
    reason = "GAME_NOT_FOUND"

    def __init__(self, game_id: UUID):
        super().__init__(f"Game not found: {game_id}")
        self.game_id = game_id


class PlayerNotFound(NotFoundError):
    reason = "PLAYER_NOT_FOUND"

    def __init__(self, player_id: UUID):
        super().__init__(f"Player not found: {player_id}")
        self.player_id = player_id


# ==== Conflicts ===============================================================


class GameFull(ConflictError):
    reason = "GAME_FULL"

    def __init__(self):
        super().__init__("Game already has two players")


class GameFinished(ConflictError):
    reason = "GAME_FINISHED"

    def __init__(self):
        super().__init__("Game is already finished")


class GameNotInProgress(ConflictError):
    reason = "GAME_NOT_IN_PROGRESS"

    def __init__(self):
        super().__init__("Game is not in progress")


class PlayerNotInGame(ConflictError):
    reason = "PLAYER_NOT_IN_GAME"

    def __init__(self):
        super().__init__("Player not in this game")


class NotYourTurn(ConflictError):
    reason = "NOT_YOUR_TURN"

    def __init__(self):
        super().__init__("Not your turn")


class CellOccupied(ConflictError):
    reason = "CELL_OCCUPIED"

    def __init__(self):
        super().__init__("Cell already occupied")


class ConcurrentUpdate(ConflictError):
    reason = "CONCURRENT_UPDATE"

    def __init__(self, game_id: UUID):
        super().__init__(f"Game {game_id} was modified concurrently, please retry")


# ==== Validation ==============================================================


class InvalidCell(ValidationError):
    reason = "INVALID_CELL"

    def __init__(self, row: int, col: int):
        super().__init__(f"Cell ({row}, {col}) is outside the 3x3 board")


# ==== Transient ===============================================================


class StorageTimeout(TransientError):
    reason = "STORAGE_TIMEOUT"

    def __init__(self):
        super().__init__("Storage did not respond in time")


class CacheUnavailable(TransientError):
    reason = "CACHE_UNAVAILABLE"

    def __init__(self):
        super().__init__("Cache did not respond in time")


class LockTimeout(TransientError):
    reason = "LOCK_TIMEOUT"

    def __init__(self, game_id: UUID):
        super().__init__(f"Game {game_id} is busy, please retry")


class VersionConflict(Exception):
    """Raised by storage when the stored revision moved past the expected one."""

    def __init__(self, game_id: UUID, expected_revision: int):
        super().__init__(
            f"Revision conflict on game {game_id}: expected {expected_revision}"
        )
        self.game_id = game_id
        self.expected_revision = expected_revision
