"""Shared pytest fixtures for mahjong league tests.

This module contains fixtures used across multiple test modules:
- Database session fixtures (in-memory SQLite)
- Sample league fixtures (teams, players, three scored games)
- Configuration fixtures (test settings)

The sample league is small enough to check by hand:

    Game 1 (2024-01-05 19:00): Aki 40000, Ben 25000, Cho 20000, Dai 15000
        -> Aki +60.0, Ben +5.0, Cho -20.0, Dai -45.0
    Game 2 (2024-01-12 19:00): Cho 30000, Dai 30000, Aki 25000, Eri 15000
        -> Cho +30.0, Dai +30.0 (tied 1st), Aki -15.0, Eri -45.0
    Game 3 (2024-02-02 20:00): Eri 45000, Ben 30000, Aki 15000, Cho 10000
        -> Eri +65.0, Ben +10.0, Aki -25.0, Cho -50.0

Aki and Ben play for Red Dragons, Cho and Dai for Blue Winds, Eri has no
team.

Example:
    def test_something(repo, sample_league):
        # repo wraps an in-memory SQLite session
        # sample_league maps names to the stored teams and players
        pass
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from mahjong_league.config import Settings, reset_settings
from mahjong_league.data import (
    Base,
    GameResult,
    LeagueRepository,
    Player,
    Team,
    create_league_engine,
)

RED_COLOR = "bg-red-100 text-red-800"
BLUE_COLOR = "bg-blue-100 text-blue-800"

SAMPLE_GAMES: list[tuple[datetime, list[tuple[str, int]]]] = [
    (
        datetime(2024, 1, 5, 19, 0),
        [("Aki", 40000), ("Ben", 25000), ("Cho", 20000), ("Dai", 15000)],
    ),
    (
        datetime(2024, 1, 12, 19, 0),
        [("Cho", 30000), ("Dai", 30000), ("Aki", 25000), ("Eri", 15000)],
    ),
    (
        datetime(2024, 2, 2, 20, 0),
        [("Eri", 45000), ("Ben", 30000), ("Aki", 15000), ("Cho", 10000)],
    ),
]


# =============================================================================
# Paths
# =============================================================================


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """Create and return temporary data directory."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture
def test_settings(tmp_data_dir: Path) -> Generator[Settings, None, None]:
    """Provide test settings with temporary directories.

    Automatically resets settings singleton after test.
    """
    os.environ["MAHJONG_DB_PATH"] = str(tmp_data_dir / "test.db")
    os.environ["LOG_DIR"] = str(tmp_data_dir / "logs")
    os.environ["LOG_LEVEL"] = "DEBUG"

    reset_settings()
    from mahjong_league.config import get_settings

    settings = get_settings()
    settings.ensure_directories()

    yield settings

    # Cleanup
    reset_settings()
    for key in ["MAHJONG_DB_PATH", "LOG_DIR", "LOG_LEVEL"]:
        os.environ.pop(key, None)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with all tables created."""
    engine = create_league_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Generator[Session, None, None]:
    """Session bound to the in-memory engine."""
    session = sessionmaker(bind=engine)()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def repo(db_session: Session) -> LeagueRepository:
    """Repository over the in-memory session."""
    return LeagueRepository(db_session)


# =============================================================================
# Sample League
# =============================================================================


@dataclass
class SampleLeague:
    """Stored records of the sample league, keyed by name."""

    teams: dict[str, Team] = field(default_factory=dict)
    players: dict[str, Player] = field(default_factory=dict)
    games: list[GameResult] = field(default_factory=list)


@pytest.fixture
def sample_league(repo: LeagueRepository) -> SampleLeague:
    """Two teams, five players and three games, flushed but not committed."""
    league = SampleLeague()
    league.teams["Red Dragons"] = repo.create_team("Red Dragons", RED_COLOR)
    league.teams["Blue Winds"] = repo.create_team("Blue Winds", BLUE_COLOR)

    rosters = {
        "Aki": "Red Dragons",
        "Ben": "Red Dragons",
        "Cho": "Blue Winds",
        "Dai": "Blue Winds",
        "Eri": None,
    }
    for name, team_name in rosters.items():
        team_id = league.teams[team_name].id if team_name else None
        league.players[name] = repo.create_player(name, team_id=team_id)

    for game_date, seats in SAMPLE_GAMES:
        league.games.append(
            repo.record_game(
                game_date,
                [(league.players[name].id, points) for name, points in seats],
            )
        )
    return league


# =============================================================================
# Time Fixtures
# =============================================================================


@pytest.fixture
def frozen_now() -> datetime:
    """Return a fixed datetime for deterministic tests."""
    return datetime(2024, 2, 10, 12, 0, 0)


@pytest.fixture
def frozen_today() -> date:
    """Return a fixed date for deterministic tests."""
    return date(2024, 2, 10)


# =============================================================================
# Marker Helpers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
