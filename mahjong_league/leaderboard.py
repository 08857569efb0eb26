"""Leaderboard retrieval: filters in, ranked statistics out.

Sits between the record store and the pure scoring engine. The filter is
applied by the store's result scan; the aggregator only ever sees the
records that survived it.

Example:
    >>> from mahjong_league.leaderboard import LeaderboardService, StatsFilter
    >>> service = LeaderboardService(LeagueRepository(session))
    >>> stats_filter = StatsFilter.from_query(
    ...     {"teamFilter": "all", "dateFrom": "2024-04-01", "dateTo": "2024-06-30"}
    ... )
    >>> for row in service.player_leaderboard(stats_filter):
    ...     print(row.name, row.total_score)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING

from mahjong_league.config import get_settings
from mahjong_league.logging import get_logger
from mahjong_league.scoring.aggregator import StatsAggregator
from mahjong_league.scoring.standings import build_standings
from mahjong_league.types import InvalidInput

if TYPE_CHECKING:
    from mahjong_league.scoring.aggregator import PlayerStats, TeamStats
    from mahjong_league.scoring.standings import TeamStanding
    from mahjong_league.types import ResultRecordSource, TeamId

logger = get_logger(__name__)

ALL_TEAMS: str = "all"


def parse_filter_date(value: str | None, field_name: str) -> date | None:
    """Parse an ISO-8601 date or date-time filter value into a date.

    Date-times keep the calendar day they were written in; no timezone
    conversion is applied.

    Args:
        value: Raw parameter value, None or blank for "no bound".
        field_name: Parameter name used in error messages.

    Returns:
        Parsed date, or None when the value is absent.

    Raises:
        InvalidInput: If the value is not an ISO-8601 date or date-time.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        if "T" in text or " " in text:
            return datetime.fromisoformat(text).date()
        return date.fromisoformat(text)
    except ValueError as e:
        raise InvalidInput(f"{field_name} is not an ISO-8601 date: {value!r}") from e


@dataclass(frozen=True)
class StatsFilter:
    """Filters applied before aggregation.

    Attributes:
        team_id: Restrict the player leaderboard to one team.
        date_from: First day of the window, inclusive.
        date_to: Last day of the window, inclusive.
    """

    team_id: TeamId | None = None
    date_from: date | None = None
    date_to: date | None = None

    def __post_init__(self) -> None:
        if (
            self.date_from is not None
            and self.date_to is not None
            and self.date_from > self.date_to
        ):
            raise InvalidInput(
                f"dateFrom {self.date_from} is after dateTo {self.date_to}"
            )

    @classmethod
    def from_query(cls, params: Mapping[str, str | None]) -> StatsFilter:
        """Build a filter from ``teamFilter``/``dateFrom``/``dateTo`` parameters.

        A missing, blank or ``"all"`` team filter means every team.

        Raises:
            InvalidInput: On malformed dates or an inverted window.
        """
        team = params.get("teamFilter")
        team_id = None if not team or team == ALL_TEAMS else team
        return cls(
            team_id=team_id,
            date_from=parse_filter_date(params.get("dateFrom"), "dateFrom"),
            date_to=parse_filter_date(params.get("dateTo"), "dateTo"),
        )


class LeaderboardService:
    """Computes leaderboards fresh from the record store on every call.

    Attributes:
        source: Anything providing ``fetch_result_records``.
        aggregator: Stats aggregator used for both leaderboards.
        season_games: Games per team in a full season, for standings.
    """

    def __init__(
        self,
        source: ResultRecordSource,
        aggregator: StatsAggregator | None = None,
        season_games: int | None = None,
    ) -> None:
        settings = get_settings()
        self.source = source
        self.aggregator = aggregator or StatsAggregator(
            unaffiliated_label=settings.unaffiliated_label,
            unaffiliated_color=settings.unaffiliated_color,
            default_team_color=settings.default_team_color,
        )
        self.season_games = season_games or settings.season_games

    def player_leaderboard(
        self, stats_filter: StatsFilter | None = None
    ) -> list[PlayerStats]:
        """Player statistics for the filtered window."""
        stats_filter = stats_filter or StatsFilter()
        records = self.source.fetch_result_records(
            team_id=stats_filter.team_id,
            date_from=stats_filter.date_from,
            date_to=stats_filter.date_to,
        )
        stats = self.aggregator.player_stats(records)
        logger.debug("Player leaderboard: {} players", len(stats))
        return stats

    def team_leaderboard(
        self, stats_filter: StatsFilter | None = None
    ) -> list[TeamStats]:
        """Team statistics for the filtered window.

        The team filter does not apply to the team view.
        """
        stats_filter = stats_filter or StatsFilter()
        records = self.source.fetch_result_records(
            date_from=stats_filter.date_from,
            date_to=stats_filter.date_to,
        )
        stats = self.aggregator.team_stats(records)
        logger.debug("Team leaderboard: {} teams", len(stats))
        return stats

    def team_standings(
        self,
        previous_session_date: date | None = None,
        date_to: date | None = None,
    ) -> list[TeamStanding]:
        """Team leaderboard with gains since the previous session.

        Args:
            previous_session_date: Last day of the previous session. Without
                it every team's previous score is 0.
            date_to: Last day of the current snapshot, default no bound.

        Returns:
            Standings in leaderboard order.
        """
        current = self.team_leaderboard(StatsFilter(date_to=date_to))
        previous: list[TeamStats] = []
        if previous_session_date is not None:
            previous = self.team_leaderboard(StatsFilter(date_to=previous_session_date))
        return build_standings(current, previous, season_games=self.season_games)
