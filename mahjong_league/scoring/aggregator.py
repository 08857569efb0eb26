"""Leaderboard aggregation over per-game result records.

Reduces any number of ResultRecord rows into per-player and per-team
statistics. The aggregator does no filtering: the caller decides which
records are eligible (team, date window) and passes only those in.

Aggregation is sparse. A player or team only appears when at least one
record contributes to it, and unaffiliated players (no team id) never
contribute to the team view.

Example:
    >>> from mahjong_league.scoring import StatsAggregator
    >>> aggregator = StatsAggregator()
    >>> players = aggregator.player_stats(records)
    >>> teams = aggregator.team_stats(records)
    >>> print(f"Leader: {players[0].name} ({players[0].total_score:+.1f})")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mahjong_league.types import InvalidInput, MissingReference

if TYPE_CHECKING:
    from mahjong_league.types import PlayerId, ResultRecord, TeamId

# =============================================================================
# Constants
# =============================================================================

DEFAULT_UNAFFILIATED_LABEL: str = "Unaffiliated"
DEFAULT_UNAFFILIATED_COLOR: str = "bg-gray-100 text-gray-800"
DEFAULT_TEAM_COLOR: str = "bg-gray-100 text-gray-800"
VALID_RANKS: frozenset[int] = frozenset({1, 2, 3, 4})


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class RankTally:
    """Running totals shared by player and team statistics.

    Attributes:
        total_score: Sum of scores.
        game_count: Number of contributing records.
        wins: First place finishes.
        seconds: Second place finishes.
        thirds: Third place finishes.
        fourths: Fourth place finishes.
    """

    total_score: float = 0.0
    game_count: int = 0
    wins: int = 0
    seconds: int = 0
    thirds: int = 0
    fourths: int = 0

    def add(self, score: float, rank: int) -> None:
        """Fold one result into the tally."""
        self.total_score += score
        self.game_count += 1
        if rank == 1:
            self.wins += 1
        elif rank == 2:
            self.seconds += 1
        elif rank == 3:
            self.thirds += 1
        else:
            self.fourths += 1

    @property
    def average_score(self) -> float:
        """Mean score per game, 0.0 without games."""
        if self.game_count == 0:
            return 0.0
        return self.total_score / self.game_count

    @property
    def average_rank(self) -> float:
        """Mean placement per game, 0.0 without games."""
        if self.game_count == 0:
            return 0.0
        weighted = self.wins + 2 * self.seconds + 3 * self.thirds + 4 * self.fourths
        return weighted / self.game_count


@dataclass
class PlayerStats:
    """Aggregated leaderboard row for one player.

    Team fields are copied from the first record seen for the player.
    """

    id: PlayerId
    name: str
    team_id: TeamId | None
    team_name: str
    team_color: str
    total_score: float = 0.0
    game_count: int = 0
    average_score: float = 0.0
    average_rank: float = 0.0
    wins: int = 0
    seconds: int = 0
    thirds: int = 0
    fourths: int = 0

    def to_dict(self) -> dict[str, str | int | float | None]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "team_id": self.team_id,
            "team_name": self.team_name,
            "team_color": self.team_color,
            "total_score": self.total_score,
            "game_count": self.game_count,
            "average_score": self.average_score,
            "average_rank": self.average_rank,
            "wins": self.wins,
            "seconds": self.seconds,
            "thirds": self.thirds,
            "fourths": self.fourths,
        }


@dataclass
class TeamStats:
    """Aggregated leaderboard row for one team."""

    id: TeamId
    name: str
    color: str
    total_score: float = 0.0
    game_count: int = 0
    player_count: int = 0
    average_score: float = 0.0
    average_rank: float = 0.0
    wins: int = 0
    seconds: int = 0
    thirds: int = 0
    fourths: int = 0

    def to_dict(self) -> dict[str, str | int | float]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "total_score": self.total_score,
            "game_count": self.game_count,
            "player_count": self.player_count,
            "average_score": self.average_score,
            "average_rank": self.average_rank,
            "wins": self.wins,
            "seconds": self.seconds,
            "thirds": self.thirds,
            "fourths": self.fourths,
        }


@dataclass
class _PlayerBucket:
    name: str
    team_id: TeamId | None
    team_name: str
    team_color: str
    tally: RankTally = field(default_factory=RankTally)


@dataclass
class _TeamBucket:
    name: str
    color: str
    tally: RankTally = field(default_factory=RankTally)
    players: set[PlayerId] = field(default_factory=set)


# =============================================================================
# Main Aggregator Class
# =============================================================================


class StatsAggregator:
    """Builds player and team leaderboards from result records.

    Both leaderboards are ordered by total score descending. Equal totals
    are ordered by name, then by id, so the output never depends on the
    order the records arrived in.

    Attributes:
        unaffiliated_label: Team name reported for players without a team.
        unaffiliated_color: Team color reported for players without a team.
        default_team_color: Color reported for a team whose record carries none.
    """

    def __init__(
        self,
        unaffiliated_label: str = DEFAULT_UNAFFILIATED_LABEL,
        unaffiliated_color: str = DEFAULT_UNAFFILIATED_COLOR,
        default_team_color: str = DEFAULT_TEAM_COLOR,
    ) -> None:
        self.unaffiliated_label = unaffiliated_label
        self.unaffiliated_color = unaffiliated_color
        self.default_team_color = default_team_color

    def player_stats(self, records: Iterable[ResultRecord]) -> list[PlayerStats]:
        """Aggregate records per player.

        Args:
            records: Eligible result records, already filtered.

        Returns:
            One PlayerStats per player with at least one record.

        Raises:
            MissingReference: If a record lacks its player or team data.
            InvalidInput: If a record carries a rank outside 1-4.
        """
        buckets: dict[PlayerId, _PlayerBucket] = {}

        for record in records:
            self._check_record(record)
            bucket = buckets.get(record.player_id)
            if bucket is None:
                bucket = _PlayerBucket(
                    name=record.player_name,
                    team_id=record.team_id,
                    team_name=record.team_name or self.unaffiliated_label,
                    team_color=self._team_color(record),
                )
                buckets[record.player_id] = bucket
            bucket.tally.add(record.score, record.rank)

        stats = [
            PlayerStats(
                id=player_id,
                name=bucket.name,
                team_id=bucket.team_id,
                team_name=bucket.team_name,
                team_color=bucket.team_color,
                **_tally_fields(bucket.tally),
            )
            for player_id, bucket in buckets.items()
        ]
        return sorted(stats, key=lambda s: (-s.total_score, s.name, s.id))

    def team_stats(self, records: Iterable[ResultRecord]) -> list[TeamStats]:
        """Aggregate records per team.

        Records of unaffiliated players are skipped.

        Args:
            records: Eligible result records, already filtered.

        Returns:
            One TeamStats per team with at least one record.

        Raises:
            MissingReference: If a record lacks its player or team data.
            InvalidInput: If a record carries a rank outside 1-4.
        """
        buckets: dict[TeamId, _TeamBucket] = {}

        for record in records:
            self._check_record(record)
            if record.team_id is None:
                continue
            bucket = buckets.get(record.team_id)
            if bucket is None:
                bucket = _TeamBucket(
                    name=record.team_name or "",
                    color=record.team_color or self.default_team_color,
                )
                buckets[record.team_id] = bucket
            bucket.tally.add(record.score, record.rank)
            bucket.players.add(record.player_id)

        stats = [
            TeamStats(
                id=team_id,
                name=bucket.name,
                color=bucket.color,
                player_count=len(bucket.players),
                **_tally_fields(bucket.tally),
            )
            for team_id, bucket in buckets.items()
        ]
        return sorted(stats, key=lambda s: (-s.total_score, s.name, s.id))

    def _team_color(self, record: ResultRecord) -> str:
        if record.team_id is None:
            return self.unaffiliated_color
        return record.team_color or self.default_team_color

    @staticmethod
    def _check_record(record: ResultRecord) -> None:
        """Reject records whose joins did not resolve."""
        if not record.player_id:
            raise MissingReference("Player", record.player_id)
        if not record.player_name:
            raise MissingReference("Player", record.player_id)
        if record.team_id is not None and not record.team_name:
            raise MissingReference("Team", record.team_id)
        if record.rank not in VALID_RANKS:
            raise InvalidInput(
                f"Rank must be 1-4, got {record.rank!r} for player {record.player_id}"
            )


def _tally_fields(tally: RankTally) -> dict[str, float | int]:
    """Expand a tally into the shared stats fields."""
    return {
        # Inputs carry one decimal; drop float accumulation noise
        "total_score": round(tally.total_score, 1),
        "game_count": tally.game_count,
        "average_score": tally.average_score,
        "average_rank": tally.average_rank,
        "wins": tally.wins,
        "seconds": tally.seconds,
        "thirds": tally.thirds,
        "fourths": tally.fourths,
    }


def aggregate_player_stats(
    records: Iterable[ResultRecord],
    unaffiliated_label: str = DEFAULT_UNAFFILIATED_LABEL,
    unaffiliated_color: str = DEFAULT_UNAFFILIATED_COLOR,
    default_team_color: str = DEFAULT_TEAM_COLOR,
) -> list[PlayerStats]:
    """Aggregate records per player with a default aggregator."""
    return StatsAggregator(
        unaffiliated_label=unaffiliated_label,
        unaffiliated_color=unaffiliated_color,
        default_team_color=default_team_color,
    ).player_stats(records)


def aggregate_team_stats(
    records: Iterable[ResultRecord],
    default_team_color: str = DEFAULT_TEAM_COLOR,
) -> list[TeamStats]:
    """Aggregate records per team with a default aggregator.

    Unaffiliated records never reach the team view, so only the fallback
    team color is configurable here.
    """
    return StatsAggregator(default_team_color=default_team_color).team_stats(records)
