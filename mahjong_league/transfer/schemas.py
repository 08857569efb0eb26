"""Pydantic models validating imported rows.

CSV cells arrive as strings and JSON values arrive loosely typed; these
models coerce them into the types the repository expects and reject rows
that cannot be coerced. Export-only columns (timestamps, ids that the
store reassigns) are accepted and ignored.

Names are kept exactly as written, surrounding whitespace included, so
they match stored names the same way the repository does.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    model_validator,
)


def _blank_to_none(value: Any) -> Any:
    """Treat empty cells as missing values."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _strip_text(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


OptionalText = Annotated[str | None, BeforeValidator(_blank_to_none)]
Name = Annotated[str, AfterValidator(_require_text)]
# Numbers and dates may carry padding in hand-edited files
Int = Annotated[int, BeforeValidator(_strip_text)]
Float = Annotated[float, BeforeValidator(_strip_text)]
Timestamp = Annotated[datetime, BeforeValidator(_strip_text)]


class _ImportRow(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TeamRow(_ImportRow):
    """Team import row."""

    id: OptionalText = None
    name: Name
    color: OptionalText = None


class PlayerRow(_ImportRow):
    """Player import row.

    The team may be given by ``team_name`` or by ``team_id`` (as exported).
    Neither means the player is unaffiliated.
    """

    id: OptionalText = None
    name: Name
    team_id: OptionalText = None
    team_name: OptionalText = None


class SeatRow(_ImportRow):
    """One seat of an imported game."""

    player_id: OptionalText = None
    player_name: OptionalText = None
    points: Int
    score: Float
    rank: Int = Field(ge=1, le=4)

    @model_validator(mode="before")
    @classmethod
    def lift_nested_player(cls, data: Any) -> Any:
        """Accept ``{"players": {"id": ..., "name": ...}}`` nesting."""
        if isinstance(data, dict) and isinstance(data.get("players"), dict):
            nested = data["players"]
            data = {**data}
            data.setdefault("player_name", nested.get("name"))
            data.setdefault("player_id", nested.get("id"))
        return data

    @model_validator(mode="after")
    def require_player(self) -> SeatRow:
        if self.player_id is None and self.player_name is None:
            raise ValueError("player_name or player_id is required")
        return self


class CsvGameRow(SeatRow):
    """Flat gameResults CSV row: one seat plus its game key."""

    game_id: OptionalText = None
    game_date: Timestamp


class GameImport(_ImportRow):
    """Game with its seats, as nested in the JSON export."""

    id: OptionalText = None
    game_date: Timestamp
    player_game_results: list[SeatRow]


class ImportBundle(_ImportRow):
    """Full JSON export document; every collection is optional."""

    teams: list[TeamRow] = Field(default_factory=list)
    players: list[PlayerRow] = Field(default_factory=list)
    gameResults: list[GameImport] = Field(default_factory=list)
    exportDate: datetime | None = None
