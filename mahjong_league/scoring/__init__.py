"""Scoring engine for the mahjong league.

Pure computations with no storage access: per-game score calculation,
leaderboard aggregation and session standings.

Submodules:
    calculator: Points to ranks and signed scores for one game
    aggregator: Result records to player and team leaderboards
    standings: Session deltas between two team leaderboards

Example:
    >>> from mahjong_league.scoring import StatsAggregator, calculate_scores
    >>> seats = calculate_scores([("A", 40000), ("B", 25000),
    ...                           ("C", 20000), ("D", 15000)])
    >>> leaderboard = StatsAggregator().player_stats(records)
"""

from __future__ import annotations

from mahjong_league.scoring.aggregator import (
    PlayerStats,
    RankTally,
    StatsAggregator,
    TeamStats,
    aggregate_player_stats,
    aggregate_team_stats,
)
from mahjong_league.scoring.calculator import (
    DEFAULT_RANK_POINTS,
    PLAYERS_PER_GAME,
    RETURN_POINTS,
    TABLE_TOTAL,
    ScoreCalculator,
    SeatPoints,
    SeatResult,
    assign_ranks,
    calculate_scores,
    round_score,
)
from mahjong_league.scoring.standings import TeamStanding, build_standings

__all__ = [
    # Calculator
    "DEFAULT_RANK_POINTS",
    "PLAYERS_PER_GAME",
    "RETURN_POINTS",
    "TABLE_TOTAL",
    "ScoreCalculator",
    "SeatPoints",
    "SeatResult",
    "assign_ranks",
    "calculate_scores",
    "round_score",
    # Aggregator
    "PlayerStats",
    "RankTally",
    "StatsAggregator",
    "TeamStats",
    "aggregate_player_stats",
    "aggregate_team_stats",
    # Standings
    "TeamStanding",
    "build_standings",
]
