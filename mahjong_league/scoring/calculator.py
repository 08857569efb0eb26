"""Per-game score calculation from raw table points.

Converts the four final point totals of one game into competition ranks and
signed scores. The score is the player's distance from the return baseline
in thousands of points plus the rank bonus for their placement:

    score = (points - 30000) / 1000 + rank_points[rank]

Tied players share the lowest rank number of their group ("1224" ranking)
and split the rank bonuses of the places they jointly occupy. Scores are
rounded to one decimal, half away from zero.

Example:
    >>> from mahjong_league.scoring import calculate_scores
    >>> results = calculate_scores(
    ...     [("Aki", 40000), ("Ben", 25000), ("Cho", 20000), ("Dai", 15000)]
    ... )
    >>> [(r.label, r.score, r.rank) for r in results]
    [('Aki', 60.0, 1), ('Ben', 5.0, 2), ('Cho', -20.0, 3), ('Dai', -45.0, 4)]
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from mahjong_league.logging import get_logger
from mahjong_league.types import InvalidInput

logger = get_logger(__name__)

# =============================================================================
# Constants
# =============================================================================

PLAYERS_PER_GAME: int = 4
TABLE_TOTAL: int = 100000  # Sum of all four point totals
RETURN_POINTS: int = 30000  # Baseline each player is measured against
POINTS_PER_UNIT: int = 1000
DEFAULT_RANK_POINTS: tuple[float, ...] = (50.0, 10.0, -10.0, -30.0)

_ONE_DECIMAL = Decimal("0.1")


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class SeatPoints:
    """Final point total of one seat.

    Attributes:
        label: Opaque player label (name or id), passed through untouched.
        points: Raw table points at game end.
    """

    label: str
    points: int


@dataclass(frozen=True)
class SeatResult:
    """Computed result for one seat.

    Attributes:
        label: Label from the matching input entry.
        points: Raw table points from the input.
        score: Signed score rounded to one decimal.
        rank: Competition rank, 1 (best) to 4.
    """

    label: str
    points: int
    score: float
    rank: int


# =============================================================================
# Helpers
# =============================================================================


def round_score(value: Decimal) -> float:
    """Round to one decimal place, ties away from zero.

    Args:
        value: Exact score.

    Returns:
        Rounded score as float.

    Example:
        >>> round_score(Decimal("-12.25"))
        -12.3
    """
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def assign_ranks(points: Sequence[int]) -> list[int]:
    """Assign standard competition ranks, highest points first.

    Each entry's rank is one plus the number of entries with strictly
    more points, so ties share a rank and the following rank is skipped.

    Example:
        >>> assign_ranks([30000, 30000, 25000, 15000])
        [1, 1, 3, 4]
    """
    return [1 + sum(1 for other in points if other > p) for p in points]


# =============================================================================
# Main Calculator Class
# =============================================================================


class ScoreCalculator:
    """Score calculator for a four-player game.

    Attributes:
        rank_points: Bonus per placement, index 0 for first place.
        return_points: Baseline subtracted from every point total.
        table_total: Required sum of the four point totals.

    Example:
        >>> calc = ScoreCalculator()
        >>> results = calc.calculate([("A", 30000), ("B", 30000),
        ...                           ("C", 25000), ("D", 15000)])
        >>> [r.score for r in results]
        [30.0, 30.0, -15.0, -45.0]
    """

    def __init__(
        self,
        rank_points: Sequence[float] = DEFAULT_RANK_POINTS,
        return_points: int = RETURN_POINTS,
        table_total: int = TABLE_TOTAL,
    ) -> None:
        """Initialize the calculator.

        Args:
            rank_points: Placement bonuses, best placement first.
            return_points: Baseline points.
            table_total: Required sum of the four point totals.
        """
        self.rank_points = tuple(rank_points)
        self.return_points = return_points
        self.table_total = table_total
        self._rank_points_exact = [Decimal(str(p)) for p in self.rank_points]

    def averaged_rank_points(self, rank: int, tie_count: int) -> Decimal:
        """Mean bonus for ``tie_count`` players sharing ``rank``.

        The tied players occupy the places ``rank .. rank + tie_count - 1``
        and split the bonuses of those places evenly. Places past the end
        of the table contribute nothing.

        Args:
            rank: Shared 1-indexed rank.
            tie_count: Number of players holding that rank.

        Returns:
            Exact averaged bonus.
        """
        start = rank - 1
        total = sum(
            (
                self._rank_points_exact[i]
                for i in range(start, start + tie_count)
                if i < len(self._rank_points_exact)
            ),
            Decimal(0),
        )
        return total / tie_count

    def calculate(
        self,
        entries: Sequence[SeatPoints | tuple[str, int]],
    ) -> list[SeatResult]:
        """Compute ranks and scores for one game.

        Args:
            entries: Exactly four (label, points) pairs.

        Returns:
            Four SeatResult objects ordered by rank, ties in input order.

        Raises:
            InvalidInput: If there are not exactly four entries, a points
                value is not an integer, or the points do not sum to the
                table total.
        """
        seats = self._validate(entries)
        points = [seat.points for seat in seats]
        ranks = assign_ranks(points)

        results: list[SeatResult] = []
        for seat, rank in zip(seats, ranks):
            tie_count = ranks.count(rank)
            exact = Decimal(seat.points - self.return_points) / POINTS_PER_UNIT
            exact += self.averaged_rank_points(rank, tie_count)
            results.append(
                SeatResult(
                    label=seat.label,
                    points=seat.points,
                    score=round_score(exact),
                    rank=rank,
                )
            )

        drift = round(sum(r.score for r in results), 1)
        if drift != 0:
            logger.debug("Rounded scores drift from zero by {}", drift)

        return sorted(results, key=lambda r: r.rank)

    def _validate(
        self,
        entries: Sequence[SeatPoints | tuple[str, int]],
    ) -> list[SeatPoints]:
        """Normalize entries and enforce the game preconditions."""
        if len(entries) != PLAYERS_PER_GAME:
            raise InvalidInput(
                f"Exactly {PLAYERS_PER_GAME} entries are required, got {len(entries)}"
            )

        seats = [
            entry if isinstance(entry, SeatPoints) else SeatPoints(*entry)
            for entry in entries
        ]
        for seat in seats:
            if isinstance(seat.points, bool) or not isinstance(seat.points, int):
                raise InvalidInput(
                    f"Points for {seat.label!r} must be an integer, got {seat.points!r}"
                )

        total = sum(seat.points for seat in seats)
        if total != self.table_total:
            raise InvalidInput(
                f"Points must sum to {self.table_total}, got {total}"
            )
        return seats


def calculate_scores(
    entries: Sequence[SeatPoints | tuple[str, int]],
) -> list[SeatResult]:
    """Compute ranks and scores with the default league rules.

    Args:
        entries: Exactly four (label, points) pairs summing to 100000.

    Returns:
        Four SeatResult objects ordered by rank.

    Raises:
        InvalidInput: If the input violates the game preconditions.
    """
    return ScoreCalculator().calculate(entries)
