"""SQLAlchemy ORM models for league records.

Models:
- Team: named, colored group of players
- Player: league member, optionally assigned to one team
- GameResult: one finished game, always owning exactly four seats
- PlayerGameResult: one player's points, score and rank in one game

Example:
    >>> from mahjong_league.data.models import GameResult
    >>> from mahjong_league.data.db import session_scope
    >>> with session_scope() as session:
    ...     game = session.query(GameResult).first()
    ...     print([seat.player.name for seat in game.player_game_results])
"""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mahjong_league.data.schema import Base, TimestampMixin, new_id


class Team(TimestampMixin, Base):
    """League team.

    Attributes:
        id: UUID primary key.
        name: Display name, unique.
        color: Opaque display tag (CSS classes in the web front end).
        players: Players currently assigned to the team.
    """

    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    color: Mapped[str] = mapped_column(String(100), nullable=False)

    players: Mapped[list[Player]] = relationship(back_populates="team")

    def __repr__(self) -> str:
        return f"<Team(id={self.id!r}, name={self.name!r})>"


class Player(TimestampMixin, Base):
    """League player.

    Attributes:
        id: UUID primary key.
        name: Display name, unique.
        team_id: Current team, None when unaffiliated.
        team: Relationship to Team.
        results: Seats this player has taken in recorded games.
    """

    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    team_id: Mapped[str | None] = mapped_column(
        ForeignKey("teams.id"), nullable=True
    )

    team: Mapped[Team | None] = relationship(back_populates="players")
    results: Mapped[list[PlayerGameResult]] = relationship(back_populates="player")

    def __repr__(self) -> str:
        return f"<Player(id={self.id!r}, name={self.name!r})>"


class GameResult(TimestampMixin, Base):
    """One finished game.

    Attributes:
        id: UUID primary key.
        game_date: When the game was played.
        player_game_results: The four seats, ordered by rank.
    """

    __tablename__ = "game_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    game_date: Mapped[datetime] = mapped_column(nullable=False)

    player_game_results: Mapped[list[PlayerGameResult]] = relationship(
        back_populates="game_result",
        cascade="all, delete-orphan",
        order_by="PlayerGameResult.rank",
    )

    __table_args__ = (Index("idx_game_results_date", "game_date"),)

    def __repr__(self) -> str:
        return f"<GameResult(id={self.id!r}, game_date={self.game_date!r})>"


class PlayerGameResult(Base):
    """One player's seat in one game.

    Attributes:
        id: UUID primary key.
        game_result_id: Foreign key to game_results.
        player_id: Foreign key to players.
        points: Raw table points at game end.
        score: Signed score, one decimal.
        rank: Placement 1-4, ties share a rank.
        created_at: Insert timestamp.
    """

    __tablename__ = "player_game_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    game_result_id: Mapped[str] = mapped_column(
        ForeignKey("game_results.id"), nullable=False
    )
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id"), nullable=False)
    points: Mapped[int] = mapped_column(nullable=False)
    score: Mapped[float] = mapped_column(nullable=False)
    rank: Mapped[int] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=func.now(), nullable=False)

    game_result: Mapped[GameResult] = relationship(
        back_populates="player_game_results"
    )
    player: Mapped[Player] = relationship(back_populates="results")

    __table_args__ = (
        UniqueConstraint("game_result_id", "player_id", name="uq_game_player"),
        Index("idx_player_game_results_player", "player_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<PlayerGameResult(game_result_id={self.game_result_id!r}, "
            f"player_id={self.player_id!r}, rank={self.rank})>"
        )
