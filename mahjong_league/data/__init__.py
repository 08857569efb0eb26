"""Data layer for the mahjong league.

This module provides storage for league records: database engine and
session management, SQLAlchemy ORM models, and the repository that
enforces the league's record rules.

Submodules:
    db: Database engine and session management
    schema: SQLAlchemy base class and mixins
    models: SQLAlchemy ORM model definitions
    repository: CRUD operations and the filtered result scan

Example:
    >>> from mahjong_league.data import LeagueRepository, init_db, session_scope
    >>> init_db()
    >>> with session_scope() as session:
    ...     records = LeagueRepository(session).fetch_result_records()
"""
from __future__ import annotations

from mahjong_league.data.db import (
    create_league_engine,
    get_engine,
    get_session,
    init_db,
    reset_engine,
    session_scope,
    verify_foreign_keys_enabled,
)
from mahjong_league.data.models import GameResult, Player, PlayerGameResult, Team
from mahjong_league.data.repository import LeagueRepository
from mahjong_league.data.schema import Base, TimestampMixin, new_id

__all__ = [
    # Database utilities
    "create_league_engine",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
    "session_scope",
    "verify_foreign_keys_enabled",
    # Base and mixins
    "Base",
    "TimestampMixin",
    "new_id",
    # Models
    "GameResult",
    "Player",
    "PlayerGameResult",
    "Team",
    # Repository
    "LeagueRepository",
]
