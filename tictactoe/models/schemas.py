from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.schema import Column
from sqlalchemy.types import Integer, String, Uuid, DateTime
from uuid6 import uuid7


class Base(DeclarativeBase):
    pass


# Aggregates are loaded with explicit selects; no relationship() here so the ORM
# never lazy-loads or cascades writes on its own.


class Game(Base):
    __tablename__ = "game"
    game_id = Column(Uuid, primary_key=True, default=uuid7)
    status = Column(String(16), nullable=False, index=True)
    next_turn = Column(String(1), nullable=True)
    winner = Column(String(1), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    revision = Column(Integer, nullable=False, default=0)


class Player(Base):
    __tablename__ = "player"
    __table_args__ = (
        UniqueConstraint("game_id", "symbol", name="uq_player_game_symbol"),
        UniqueConstraint("game_id", "seat", name="uq_player_game_seat"),
    )
    player_id = Column(Uuid, primary_key=True, default=uuid7)
    game_id = Column(Uuid, ForeignKey("game.game_id"), nullable=False, index=True)
    seat = Column(Integer, nullable=False)
    name = Column(String(64), nullable=False)
    symbol = Column(String(1), nullable=False)
    joined_at = Column(DateTime(timezone=True), nullable=False)


class Move(Base):
    __tablename__ = "move"
    __table_args__ = (
        UniqueConstraint("game_id", "row", "col", name="uq_move_game_cell"),
        UniqueConstraint("game_id", "seq", name="uq_move_game_seq"),
    )
    move_id = Column(Uuid, primary_key=True, default=uuid7)
    game_id = Column(Uuid, ForeignKey("game.game_id"), nullable=False, index=True)
    player_id = Column(Uuid, ForeignKey("player.player_id"), nullable=False)
    seq = Column(Integer, nullable=False)
    symbol = Column(String(1), nullable=False)
    row = Column(Integer, nullable=False)
    col = Column(Integer, nullable=False)
    moved_at = Column(DateTime(timezone=True), nullable=False)
