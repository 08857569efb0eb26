"""Database engine and session management utilities.

This module provides centralized database connection management including
engine creation, session handling, and database initialization. The league
lives in a single SQLite file whose location comes from settings.db_path.

Example:
    >>> from mahjong_league.data.db import session_scope, init_db
    >>> init_db()  # Create teams, players, game_results, player_game_results
    >>> with session_scope() as session:
    ...     LeagueRepository(session).create_team("Red Dragons", "bg-red-100")
"""
from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from mahjong_league.config import get_settings
from mahjong_league.data.schema import Base

logger = logging.getLogger(__name__)

# Module-level engine and session factory cache
_engine: Engine | None = None
_session_factory: scoped_session[Session] | None = None


def _set_sqlite_pragmas(
    dbapi_connection: Any,
    connection_record: Any,
) -> None:
    """Set SQLite pragmas on every new connection.

    Foreign keys must be on for the team/player/game references to be
    enforced by the store as well as by the repository.

    Args:
        dbapi_connection: Raw DBAPI connection object.
        connection_record: Connection pool record (unused).
    """
    cursor = dbapi_connection.cursor()
    # Reject seats pointing at missing players and players at missing teams
    cursor.execute("PRAGMA foreign_keys=ON")
    # Readers (stats commands) do not block a writer recording a game
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()
    logger.debug("SQLite pragmas applied: foreign_keys=ON, journal_mode=WAL")


def create_league_engine(db_url: str) -> Engine:
    """Create an engine with the league's SQLite connection setup.

    Used for the settings-driven file database and for in-memory stores
    in tests and round-trip checks.

    Args:
        db_url: SQLAlchemy database URL.

    Returns:
        Configured Engine instance.

    Example:
        >>> engine = create_league_engine("sqlite:///:memory:")
        >>> Base.metadata.create_all(engine)
    """
    engine = create_engine(
        db_url,
        echo=False,  # Set to True for SQL logging
        pool_pre_ping=True,  # Verify connections before use
    )
    event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def get_engine() -> Engine:
    """Get or create the SQLAlchemy engine from settings.

    Creates a new engine on first call and caches it for subsequent calls.
    The engine is configured based on settings.db_path.

    Returns:
        SQLAlchemy Engine instance.

    Example:
        >>> engine = get_engine()
        >>> with engine.connect() as conn:
        ...     conn.execute(text("SELECT COUNT(*) FROM teams")).scalar()
    """
    global _engine
    if _engine is None:
        settings = get_settings()
        db_path = Path(settings.db_path)

        # The default data/ directory may not exist on a first run
        db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Ensuring database directory exists: {db_path.parent}")

        db_url = f"sqlite:///{db_path}"
        _engine = create_league_engine(db_url)
        logger.debug(f"Created database engine: {db_url}")

    return _engine


def get_session() -> Session:
    """Get a new database session.

    Uses scoped_session pattern for thread safety. Each thread gets
    its own session instance.

    Returns:
        SQLAlchemy Session instance.

    Example:
        >>> session = get_session()
        >>> try:
        ...     LeagueRepository(session).create_player("Aki")
        ...     session.commit()
        ... finally:
        ...     session.close()
    """
    global _session_factory
    if _session_factory is None:
        engine = get_engine()
        factory = sessionmaker(bind=engine)
        _session_factory = scoped_session(factory)
        logger.debug("Created scoped session factory")

    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Context manager for database sessions with auto-commit/rollback.

    Commits on successful exit and rolls back on exception, so a game and
    its four seats, or a whole import batch, land together or not at all.
    The session is always closed after use.

    Yields:
        SQLAlchemy Session instance.

    Raises:
        Exception: Re-raises any exception after rollback.

    Example:
        >>> with session_scope() as session:
        ...     repo = LeagueRepository(session)
        ...     repo.record_game(datetime(2024, 1, 5, 19), seats)
        ... # Auto-commits on exit
    """
    session = get_session()
    try:
        logger.debug("Starting database session")
        yield session
        session.commit()
        logger.debug("Session committed successfully")
    except Exception:
        logger.debug("Session rolling back due to exception")
        session.rollback()
        raise
    finally:
        session.close()
        logger.debug("Session closed")


def init_db() -> None:
    """Initialize the database by creating all tables.

    Creates every league table defined on Base. Safe to call multiple
    times - won't recreate existing tables.

    Example:
        >>> init_db()  # Run by every CLI command before it opens a session
    """
    # Models must be imported for create_all to see their tables
    from mahjong_league.data import models  # noqa: F401

    engine = get_engine()
    Base.metadata.create_all(engine)
    logger.info("Database initialized - all tables created")


def reset_engine() -> None:
    """Reset the engine and session factory (for testing).

    Clears the cached engine and session factory so that the next
    get_engine() call opens whatever settings.db_path now points at.
    """
    global _engine, _session_factory
    if _session_factory is not None:
        _session_factory.remove()
        _session_factory = None
    if _engine is not None:
        _engine.dispose()
        _engine = None
    logger.debug("Database engine and session factory reset")


def verify_foreign_keys_enabled() -> bool:
    """Verify that foreign key constraints are enabled.

    Returns:
        True if foreign keys are enabled, False otherwise.
    """
    engine = get_engine()
    with engine.connect() as conn:
        result = conn.execute(text("PRAGMA foreign_keys"))
        row = result.fetchone()
        return row is not None and row[0] == 1
