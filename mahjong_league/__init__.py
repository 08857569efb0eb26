"""Mahjong League Score Tracker.

Records four-player mahjong games, converts raw table points into zero-sum
scores, and ranks players and teams over any date range.

Example:
    >>> from mahjong_league.scoring import calculate_scores
    >>> results = calculate_scores(
    ...     [("Aki", 40000), ("Ben", 25000), ("Cho", 20000), ("Dai", 15000)]
    ... )
    >>> print([r.score for r in results])
    [60.0, 5.0, -20.0, -45.0]
"""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "Mahjong League Team"

# Public API exports
from mahjong_league.config import Settings, get_settings

__all__ = [
    "Settings",
    "__author__",
    "__version__",
    "get_settings",
]
