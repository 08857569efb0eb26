"""Import of teams, players and game results from CSV or JSON.

Rows are validated with the pydantic row models, then written through the
repository so every creation rule applies: names must be new (checked
against stored records and against earlier rows of the same batch),
referenced teams and players must exist, and each game must bring exactly
four seats.

The importer never commits. Run a batch inside ``session_scope()``; the
first failing row raises and the whole batch is rolled back.

Ids in an export are store-assigned, so they are not reused on import.
Within one importer, exported team and player ids are remapped to the new
ids, which keeps player-team links and game seats intact when a full
export is re-imported into an empty store.

Example:
    >>> with session_scope() as session:
    ...     importer = LeagueImporter(LeagueRepository(session))
    ...     importer.import_csv("teams", Path("teams.csv").read_text())
    ...     importer.import_csv("players", Path("players.csv").read_text())
    ...     summary = importer.import_csv("gameResults", Path("games.csv").read_text())
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from mahjong_league.config import get_settings
from mahjong_league.logging import SUCCESS, get_logger
from mahjong_league.scoring.calculator import PLAYERS_PER_GAME
from mahjong_league.transfer.codec import decode_csv, decode_json
from mahjong_league.transfer.schemas import (
    CsvGameRow,
    GameImport,
    ImportBundle,
    PlayerRow,
    SeatRow,
    TeamRow,
)
from mahjong_league.types import InvalidInput, MissingReference, PlayerResultInput

if TYPE_CHECKING:
    from mahjong_league.data.models import GameResult, Player, Team
    from mahjong_league.data.repository import LeagueRepository

logger = get_logger(__name__)

RowModel = TypeVar("RowModel", bound=BaseModel)


@dataclass
class ImportSummary:
    """Counts of records created by an import.

    Attributes:
        teams: Teams created.
        players: Players created.
        games: Games created.
    """

    teams: int = 0
    players: int = 0
    games: int = 0

    @property
    def total(self) -> int:
        return self.teams + self.players + self.games

    def to_dict(self) -> dict[str, int]:
        return {"teams": self.teams, "players": self.players, "games": self.games}

    def __add__(self, other: ImportSummary) -> ImportSummary:
        return ImportSummary(
            teams=self.teams + other.teams,
            players=self.players + other.players,
            games=self.games + other.games,
        )


def _validate_rows(
    model: type[RowModel],
    rows: Iterable[Mapping[str, Any] | RowModel],
    kind: str,
) -> list[RowModel]:
    """Validate raw rows, reporting the 1-based row number on failure."""
    validated: list[RowModel] = []
    for index, row in enumerate(rows, start=1):
        if isinstance(row, model):
            validated.append(row)
            continue
        try:
            validated.append(model.model_validate(row))
        except ValidationError as e:
            raise InvalidInput(f"Invalid {kind} row {index}: {e}") from e
    return validated


class LeagueImporter:
    """Creates records from import rows through the repository.

    Attributes:
        repository: Repository bound to the importing session.
        default_team_color: Color for team rows without one.
        team_id_map: Exported team id -> id of the team created for it.
        player_id_map: Exported player id -> id of the player created for it.
    """

    def __init__(
        self,
        repository: LeagueRepository,
        default_team_color: str | None = None,
    ) -> None:
        self.repository = repository
        self.default_team_color = (
            default_team_color or get_settings().default_team_color
        )
        self.team_id_map: dict[str, str] = {}
        self.player_id_map: dict[str, str] = {}

    # =========================================================================
    # Entity imports
    # =========================================================================

    def import_teams(self, rows: Iterable[Mapping[str, Any] | TeamRow]) -> list[Team]:
        """Create one team per row.

        Raises:
            InvalidInput: If a row is malformed.
            DuplicateName: If a team name already exists.
        """
        created: list[Team] = []
        for row in _validate_rows(TeamRow, rows, "teams"):
            team = self.repository.create_team(
                row.name, row.color or self.default_team_color
            )
            if row.id is not None:
                self.team_id_map[row.id] = team.id
            created.append(team)
        logger.info(f"{SUCCESS} Imported {len(created)} teams")
        return created

    def import_players(
        self, rows: Iterable[Mapping[str, Any] | PlayerRow]
    ) -> list[Player]:
        """Create one player per row.

        Raises:
            InvalidInput: If a row is malformed.
            DuplicateName: If a player name already exists.
            MissingReference: If the row's team cannot be found.
        """
        created: list[Player] = []
        for row in _validate_rows(PlayerRow, rows, "players"):
            player = self.repository.create_player(
                row.name, team_id=self._resolve_team(row)
            )
            if row.id is not None:
                self.player_id_map[row.id] = player.id
            created.append(player)
        logger.info(f"{SUCCESS} Imported {len(created)} players")
        return created

    def import_game_rows(
        self, rows: Iterable[Mapping[str, Any] | CsvGameRow]
    ) -> list[GameResult]:
        """Create games from flat gameResults rows.

        Rows are grouped by ``game_id``, or by ``game_date`` when the id is
        blank, keeping first-seen order.

        Raises:
            InvalidInput: If a row is malformed or a group is not four rows.
            MissingReference: If a seat's player cannot be found.
        """
        groups: dict[str, list[CsvGameRow]] = {}
        for row in _validate_rows(CsvGameRow, rows, "gameResults"):
            key = row.game_id or row.game_date.isoformat()
            groups.setdefault(key, []).append(row)

        games = [
            GameImport(
                id=seats[0].game_id,
                game_date=seats[0].game_date,
                player_game_results=list(seats),
            )
            for seats in groups.values()
        ]
        return self.import_games(games)

    def import_games(
        self, games: Iterable[Mapping[str, Any] | GameImport]
    ) -> list[GameResult]:
        """Create games from nested game documents.

        Scores and ranks are stored as given.

        Raises:
            InvalidInput: If a game is malformed or does not have four seats.
            MissingReference: If a seat's player cannot be found.
        """
        created: list[GameResult] = []
        for game in _validate_rows(GameImport, games, "gameResults"):
            if len(game.player_game_results) != PLAYERS_PER_GAME:
                raise InvalidInput(
                    f"Game {game.id or game.game_date.isoformat()} has "
                    f"{len(game.player_game_results)} player rows, "
                    f"expected {PLAYERS_PER_GAME}"
                )
            entries = [
                PlayerResultInput(
                    player_id=self._resolve_player(seat),
                    points=seat.points,
                    score=seat.score,
                    rank=seat.rank,
                )
                for seat in game.player_game_results
            ]
            created.append(self.repository.create_game(game.game_date, entries))
        logger.info(f"{SUCCESS} Imported {len(created)} games")
        return created

    # =========================================================================
    # Document imports
    # =========================================================================

    def import_csv(self, kind: str, text: str) -> ImportSummary:
        """Import one CSV file of the given entity kind.

        Raises:
            InvalidInput: On an unknown kind, malformed CSV, or bad rows.
        """
        rows = decode_csv(kind, text)
        summary = ImportSummary()
        if kind == "teams":
            summary.teams = len(self.import_teams(rows))
        elif kind == "players":
            summary.players = len(self.import_players(rows))
        else:
            summary.games = len(self.import_game_rows(rows))
        return summary

    def import_json(self, source: str | Mapping[str, Any]) -> ImportSummary:
        """Import a JSON export document: teams, then players, then games.

        Raises:
            InvalidInput: If the document or any row is malformed.
        """
        data = decode_json(source) if isinstance(source, str) else dict(source)
        try:
            bundle = ImportBundle.model_validate(data)
        except ValidationError as e:
            raise InvalidInput(f"Invalid import document: {e}") from e

        return ImportSummary(
            teams=len(self.import_teams(bundle.teams)),
            players=len(self.import_players(bundle.players)),
            games=len(self.import_games(bundle.gameResults)),
        )

    # =========================================================================
    # Reference resolution
    # =========================================================================

    def _resolve_team(self, row: PlayerRow) -> str | None:
        """Team id for a player row, None for unaffiliated."""
        if row.team_name is not None:
            team = self.repository.find_team_by_name(row.team_name)
            if team is None:
                raise MissingReference("Team", row.team_name)
            return team.id
        if row.team_id is None:
            return None
        if row.team_id in self.team_id_map:
            return self.team_id_map[row.team_id]
        return self.repository.get_team(row.team_id).id

    def _resolve_player(self, seat: SeatRow) -> str:
        """Player id for a seat: remapped export id, then name, then stored id."""
        if seat.player_id is not None and seat.player_id in self.player_id_map:
            return self.player_id_map[seat.player_id]
        if seat.player_name is not None:
            player = self.repository.find_player_by_name(seat.player_name)
            if player is None:
                raise MissingReference("Player", seat.player_name)
            return player.id
        return self.repository.get_player(seat.player_id).id
