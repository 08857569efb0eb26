"""Export of stored league records to CSV or JSON.

Example:
    >>> from mahjong_league.transfer import LeagueExporter
    >>> exporter = LeagueExporter(LeagueRepository(session))
    >>> Path("teams.csv").write_text(exporter.to_csv("teams"))
    >>> Path("league.json").write_text(exporter.to_json())
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from mahjong_league.logging import get_logger
from mahjong_league.transfer.codec import (
    build_export,
    encode_csv,
    encode_json,
    game_rows,
    player_payload,
    team_payload,
)
from mahjong_league.types import InvalidInput

if TYPE_CHECKING:
    from mahjong_league.data.repository import LeagueRepository
    from mahjong_league.types import ExportPayload

logger = get_logger(__name__)


class LeagueExporter:
    """Reads everything from the repository and encodes it."""

    def __init__(self, repository: LeagueRepository) -> None:
        self.repository = repository

    def export_all(self, export_date: datetime | None = None) -> ExportPayload:
        """Build the full export document."""
        payload = build_export(
            self.repository.list_teams(),
            self.repository.list_players(),
            self.repository.list_games(),
            export_date=export_date,
        )
        logger.info(
            "Exported {} teams, {} players, {} games",
            len(payload["teams"]),
            len(payload["players"]),
            len(payload["gameResults"]),
        )
        return payload

    def to_json(self, export_date: datetime | None = None) -> str:
        """Full export as JSON text."""
        return encode_json(self.export_all(export_date))

    def to_csv(self, kind: str) -> str:
        """One entity kind as CSV text.

        Raises:
            InvalidInput: On an unknown entity kind.
        """
        if kind == "teams":
            rows = [team_payload(t) for t in self.repository.list_teams()]
        elif kind == "players":
            rows = [player_payload(p) for p in self.repository.list_players()]
        elif kind == "gameResults":
            rows = [row for g in self.repository.list_games() for row in game_rows(g)]
        else:
            raise InvalidInput(f"Invalid type for CSV export: {kind!r}")

        logger.info("Exported {} {} rows as CSV", len(rows), kind)
        return encode_csv(kind, rows)
