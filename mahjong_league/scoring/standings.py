"""Session standings: what changed between two team leaderboards.

The public ranking shows, for each team, the points earned since the
previous league session and the gap to the team directly above. Both
are differences between two leaderboard snapshots: the current one and
one cut off at the previous session date.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mahjong_league.scoring.aggregator import TeamStats

DEFAULT_SEASON_GAMES: int = 64


@dataclass(frozen=True)
class TeamStanding:
    """One row of the session standings.

    Attributes:
        position: 1-based position in the current leaderboard.
        stats: Current team statistics.
        previous_score: Total score as of the previous session (0 if absent).
        session_points: Points earned since the previous session.
        point_diff_from_above: Gap to the team one position higher.
        remaining_games: Games left in the season.
    """

    position: int
    stats: TeamStats
    previous_score: float
    session_points: float
    point_diff_from_above: float
    remaining_games: int

    def to_dict(self) -> dict[str, object]:
        """Convert to a JSON-friendly dictionary."""
        return {
            **self.stats.to_dict(),
            "position": self.position,
            "previous_score": self.previous_score,
            "session_points": self.session_points,
            "point_diff_from_above": self.point_diff_from_above,
            "remaining_games": self.remaining_games,
        }


def build_standings(
    current: Sequence[TeamStats],
    previous: Sequence[TeamStats] = (),
    season_games: int = DEFAULT_SEASON_GAMES,
) -> list[TeamStanding]:
    """Combine the current and previous team leaderboards.

    Args:
        current: Team leaderboard now, ordered as displayed.
        previous: Team leaderboard as of the previous session.
        season_games: Games each team plays over a full season.

    Returns:
        One TeamStanding per team in ``current``, same order.

    Example:
        >>> standings = build_standings(current, previous)
        >>> standings[0].point_diff_from_above
        0.0
    """
    previous_totals = {team.id: team.total_score for team in previous}
    standings: list[TeamStanding] = []

    for index, team in enumerate(current):
        previous_score = previous_totals.get(team.id, 0.0)
        above = current[index - 1].total_score if index > 0 else team.total_score
        standings.append(
            TeamStanding(
                position=index + 1,
                stats=team,
                previous_score=previous_score,
                session_points=round(team.total_score - previous_score, 1),
                point_diff_from_above=round(above - team.total_score, 1),
                remaining_games=max(0, season_games - team.game_count),
            )
        )
    return standings
