"""SQLAlchemy ORM models: games, players, threads, steps and random prompts."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _now() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class GameRow(Base):
    __tablename__ = "games"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(20), default="waiting")
    current_round: Mapped[int] = mapped_column(Integer, default=0)
    current_step_type: Mapped[str | None] = mapped_column(String(10), nullable=True)
    num_rounds: Mapped[int] = mapped_column(Integer, nullable=False)
    prompt_time_limit_sec: Mapped[int] = mapped_column(Integer, nullable=False)
    draw_time_limit_sec: Mapped[int] = mapped_column(Integer, nullable=False)
    guess_time_limit_sec: Mapped[int] = mapped_column(Integer, nullable=False)
    # Plain column: players.game_id already points the other way.
    game_master_player_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    players: Mapped[list[PlayerRow]] = relationship(
        back_populates="game", cascade="all, delete-orphan"
    )
    threads: Mapped[list[ThreadRow]] = relationship(
        back_populates="game", cascade="all, delete-orphan"
    )


class PlayerRow(Base):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    session_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    game: Mapped[GameRow] = relationship(back_populates="players")

    __table_args__ = (
        Index("ix_players_game_id", "game_id"),
        Index("ix_players_session_id", "session_id"),
    )


class ThreadRow(Base):
    __tablename__ = "threads"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), nullable=False)
    original_player_id: Mapped[int] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    game: Mapped[GameRow] = relationship(back_populates="threads")
    original_player: Mapped[PlayerRow] = relationship(foreign_keys=[original_player_id])
    steps: Mapped[list[StepRow]] = relationship(
        back_populates="thread",
        cascade="all, delete-orphan",
        order_by="StepRow.step_number",
    )

    __table_args__ = (Index("ix_threads_game_id", "game_id"),)


class StepRow(Base):
    __tablename__ = "steps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    thread_id: Mapped[int] = mapped_column(
        ForeignKey("threads.id", ondelete="CASCADE"), nullable=False
    )
    player_id: Mapped[int] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    step_number: Mapped[int] = mapped_column(Integer, nullable=False)
    step_type: Mapped[str] = mapped_column(String(10), nullable=False)
    text_content: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_content: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_now)

    thread: Mapped[ThreadRow] = relationship(back_populates="steps")
    player: Mapped[PlayerRow] = relationship()

    __table_args__ = (UniqueConstraint("thread_id", "step_number", name="uq_steps_thread_step"),)


class RandomPromptRow(Base):
    __tablename__ = "random_prompts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    text: Mapped[str] = mapped_column(String(200), nullable=False)
