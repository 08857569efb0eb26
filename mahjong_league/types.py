"""Type definitions, protocols and exceptions for the mahjong league.

This module defines the shared data contracts passed between the scoring
engine, the record store and the import/export layer, plus the exception
hierarchy every layer raises.

Example:
    >>> from mahjong_league.types import ResultRecord
    >>> record = ResultRecord(
    ...     player_id="p1", player_name="Aki", team_id=None, team_name=None,
    ...     team_color=None, score=60.0, rank=1, game_date=datetime(2024, 1, 5),
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol, TypedDict

# =============================================================================
# Type Aliases
# =============================================================================

TeamId = str
PlayerId = str
GameId = str


# =============================================================================
# Dataclasses
# =============================================================================


@dataclass(frozen=True)
class ResultRecord:
    """One player's result in one game, joined with player/team/game data.

    This is the input row of the stats aggregator. ``team_id`` is None for
    unaffiliated players.
    """

    player_id: PlayerId
    player_name: str
    team_id: TeamId | None
    team_name: str | None
    team_color: str | None
    score: float
    rank: int
    game_date: datetime


@dataclass(frozen=True)
class PlayerResultInput:
    """Pre-computed result for one seat, as accepted when recording a game."""

    player_id: PlayerId
    points: int
    score: float
    rank: int


# =============================================================================
# Protocols (Interfaces)
# =============================================================================


class ResultRecordSource(Protocol):
    """Protocol for anything that can run the filtered result scan."""

    def fetch_result_records(
        self,
        team_id: TeamId | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[ResultRecord]:
        """Return result records matching the filters."""
        ...


# =============================================================================
# TypedDicts for Export Payloads
# =============================================================================


class TeamPayload(TypedDict):
    """Team as written to CSV/JSON."""

    id: TeamId
    name: str
    color: str
    created_at: str
    updated_at: str


class PlayerPayload(TypedDict):
    """Player as written to CSV/JSON."""

    id: PlayerId
    name: str
    team_id: TeamId | None
    created_at: str
    updated_at: str


class PlayerGameResultPayload(TypedDict):
    """Single seat of a game as nested in the JSON export."""

    id: str
    game_result_id: GameId
    player_id: PlayerId
    player_name: str
    points: int
    score: float
    rank: int
    created_at: str


class GameResultPayload(TypedDict):
    """Game with its four seats as written to the JSON export."""

    id: GameId
    game_date: str
    created_at: str
    updated_at: str
    player_game_results: list[PlayerGameResultPayload]


class GameResultRow(TypedDict):
    """Flattened game seat as written to the gameResults CSV."""

    game_id: GameId
    game_date: str
    player_id: PlayerId
    player_name: str
    points: int
    score: float
    rank: int
    created_at: str


class ExportPayload(TypedDict):
    """Full JSON export document."""

    teams: list[TeamPayload]
    players: list[PlayerPayload]
    gameResults: list[GameResultPayload]
    exportDate: str


# =============================================================================
# Exceptions
# =============================================================================


class LeagueError(Exception):
    """Base exception for league domain errors."""


class InvalidInput(LeagueError):
    """Caller supplied a structurally wrong request.

    Wrong number of players, points not summing to the table total,
    malformed filter values or missing required fields.
    """


class DuplicateName(LeagueError):
    """A team or player name is already taken."""

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"{kind} '{name}' already exists")


class MissingReference(LeagueError):
    """A referenced team, player or game does not exist."""

    def __init__(self, kind: str, ref: str | None) -> None:
        self.kind = kind
        self.ref = ref
        super().__init__(f"{kind} '{ref}' not found")


class DependentRecordsExist(LeagueError):
    """A delete is blocked by rows that still reference the target."""

    def __init__(self, kind: str, ref: str, dependents: int) -> None:
        self.kind = kind
        self.ref = ref
        self.dependents = dependents
        super().__init__(
            f"{kind} '{ref}' is still referenced by {dependents} record(s)"
        )
