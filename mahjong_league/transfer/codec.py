"""CSV and JSON encoding of league records.

Column sets are fixed per entity kind:

    teams:       id, name, color, created_at, updated_at
    players:     id, name, team_id, created_at, updated_at
    gameResults: game_id, game_date, player_id, player_name, points, score,
                 rank, created_at

CSV goes through pandas with minimal quoting: cells containing a comma,
quote or newline are wrapped in double quotes with inner quotes doubled.
Missing values are written as empty cells.

Example:
    >>> from mahjong_league.transfer.codec import encode_csv, team_payload
    >>> text = encode_csv("teams", [team_payload(t) for t in teams])
"""

from __future__ import annotations

import io
import json
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Literal

import pandas as pd

from mahjong_league.types import InvalidInput

if TYPE_CHECKING:
    from mahjong_league.data.models import GameResult, Player, Team
    from mahjong_league.types import (
        ExportPayload,
        GameResultPayload,
        GameResultRow,
        PlayerPayload,
        TeamPayload,
    )

# =============================================================================
# Constants
# =============================================================================

EntityKind = Literal["teams", "players", "gameResults"]

TEAM_COLUMNS: tuple[str, ...] = ("id", "name", "color", "created_at", "updated_at")
PLAYER_COLUMNS: tuple[str, ...] = ("id", "name", "team_id", "created_at", "updated_at")
GAME_RESULT_COLUMNS: tuple[str, ...] = (
    "game_id",
    "game_date",
    "player_id",
    "player_name",
    "points",
    "score",
    "rank",
    "created_at",
)

CSV_COLUMNS: dict[str, tuple[str, ...]] = {
    "teams": TEAM_COLUMNS,
    "players": PLAYER_COLUMNS,
    "gameResults": GAME_RESULT_COLUMNS,
}

# Columns an imported file must carry; the rest may be absent
REQUIRED_IMPORT_COLUMNS: dict[str, tuple[str, ...]] = {
    "teams": ("name",),
    "players": ("name",),
    "gameResults": ("game_date", "player_name", "points", "score", "rank"),
}


def _columns_for(kind: str) -> tuple[str, ...]:
    try:
        return CSV_COLUMNS[kind]
    except KeyError:
        raise InvalidInput(
            f"Unknown entity kind {kind!r}, expected one of {sorted(CSV_COLUMNS)}"
        ) from None


def format_timestamp(value: datetime | None) -> str:
    """Render a timestamp as ISO-8601, empty when absent."""
    return value.isoformat() if value is not None else ""


# =============================================================================
# Entity -> payload
# =============================================================================


def team_payload(team: Team) -> TeamPayload:
    """Flatten a Team into its export shape."""
    return {
        "id": team.id,
        "name": team.name,
        "color": team.color,
        "created_at": format_timestamp(team.created_at),
        "updated_at": format_timestamp(team.updated_at),
    }


def player_payload(player: Player) -> PlayerPayload:
    """Flatten a Player into its export shape."""
    return {
        "id": player.id,
        "name": player.name,
        "team_id": player.team_id,
        "created_at": format_timestamp(player.created_at),
        "updated_at": format_timestamp(player.updated_at),
    }


def game_payload(game: GameResult) -> GameResultPayload:
    """Nest a GameResult and its seats into the JSON export shape."""
    return {
        "id": game.id,
        "game_date": format_timestamp(game.game_date),
        "created_at": format_timestamp(game.created_at),
        "updated_at": format_timestamp(game.updated_at),
        "player_game_results": [
            {
                "id": seat.id,
                "game_result_id": game.id,
                "player_id": seat.player_id,
                "player_name": seat.player.name,
                "points": seat.points,
                "score": seat.score,
                "rank": seat.rank,
                "created_at": format_timestamp(seat.created_at),
            }
            for seat in game.player_game_results
        ],
    }


def game_rows(game: GameResult) -> list[GameResultRow]:
    """Flatten a GameResult into one gameResults CSV row per seat."""
    return [
        {
            "game_id": game.id,
            "game_date": format_timestamp(game.game_date),
            "player_id": seat.player_id,
            "player_name": seat.player.name,
            "points": seat.points,
            "score": seat.score,
            "rank": seat.rank,
            "created_at": format_timestamp(seat.created_at),
        }
        for seat in game.player_game_results
    ]


def build_export(
    teams: Iterable[Team],
    players: Iterable[Player],
    games: Iterable[GameResult],
    export_date: datetime | None = None,
) -> ExportPayload:
    """Assemble the full JSON export document."""
    return {
        "teams": [team_payload(t) for t in teams],
        "players": [player_payload(p) for p in players],
        "gameResults": [game_payload(g) for g in games],
        "exportDate": (export_date or datetime.now()).isoformat(),
    }


# =============================================================================
# CSV
# =============================================================================


def encode_csv(kind: EntityKind | str, rows: Iterable[Mapping[str, Any]]) -> str:
    """Encode rows of one entity kind as CSV text with a header line.

    Args:
        kind: "teams", "players" or "gameResults".
        rows: Export payload dictionaries.

    Returns:
        CSV text, newline terminated.

    Raises:
        InvalidInput: On an unknown entity kind.
    """
    columns = _columns_for(kind)
    frame = pd.DataFrame([dict(row) for row in rows], columns=list(columns))
    return frame.to_csv(index=False, lineterminator="\n", na_rep="")


def decode_csv(kind: EntityKind | str, text: str) -> list[dict[str, str]]:
    """Parse CSV text of one entity kind into string-valued rows.

    Every cell is kept as text (empty cells become ""); typing is left to
    the import row models.

    Raises:
        InvalidInput: If the text is empty, has no data rows, or lacks a
            required column.
    """
    _columns_for(kind)
    if not text or not text.strip():
        raise InvalidInput("CSV file contains no data")

    try:
        frame = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise InvalidInput(f"Malformed CSV: {e}") from e

    frame.columns = [str(c).strip() for c in frame.columns]
    missing = [c for c in REQUIRED_IMPORT_COLUMNS[kind] if c not in frame.columns]
    if missing:
        raise InvalidInput(f"CSV for {kind} is missing columns: {', '.join(missing)}")
    if frame.empty:
        raise InvalidInput("CSV file contains no data rows")

    return frame.to_dict(orient="records")


# =============================================================================
# JSON
# =============================================================================


def encode_json(payload: ExportPayload) -> str:
    """Serialize an export document."""
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


def decode_json(text: str) -> dict[str, Any]:
    """Parse a JSON export document.

    Raises:
        InvalidInput: If the text is not a JSON object.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInput(f"Malformed JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidInput("JSON import must be an object")
    return data
