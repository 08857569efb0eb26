"""Tests for importing league records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Generator

import pytest
from sqlalchemy.orm import Session

from mahjong_league.data import (
    GameResult,
    LeagueRepository,
    Player,
    Team,
    init_db,
    reset_engine,
    session_scope,
)
from mahjong_league.transfer import ImportSummary, LeagueImporter
from mahjong_league.types import DuplicateName, InvalidInput, MissingReference

if TYPE_CHECKING:
    from mahjong_league.config import Settings

GAME_CSV_HEADER = "game_id,game_date,player_id,player_name,points,score,rank\n"


def game_csv(*games: tuple[str, str]) -> str:
    """Four seats per (game_id, game_date) for Aki, Ben, Cho, Dai."""
    lines = [GAME_CSV_HEADER]
    for game_id, game_date in games:
        lines.append(f"{game_id},{game_date},,Aki,40000,60.0,1\n")
        lines.append(f"{game_id},{game_date},,Ben,25000,5.0,2\n")
        lines.append(f"{game_id},{game_date},,Cho,20000,-20.0,3\n")
        lines.append(f"{game_id},{game_date},,Dai,15000,-45.0,4\n")
    return "".join(lines)


@pytest.fixture
def importer(repo: LeagueRepository) -> LeagueImporter:
    return LeagueImporter(repo, default_team_color="bg-gray-100")


@pytest.fixture
def four_players(repo: LeagueRepository) -> list[Player]:
    return [repo.create_player(name) for name in ("Aki", "Ben", "Cho", "Dai")]


class TestImportSummary:
    """Tests for ImportSummary."""

    def test_total_and_dict(self) -> None:
        summary = ImportSummary(teams=2, players=5, games=3)
        assert summary.total == 10
        assert summary.to_dict() == {"teams": 2, "players": 5, "games": 3}

    def test_add(self) -> None:
        """Summaries of several files add up."""
        total = ImportSummary(teams=2) + ImportSummary(players=5)
        total += ImportSummary(games=3)
        assert total == ImportSummary(teams=2, players=5, games=3)


class TestImportTeams:
    """Tests for team imports."""

    def test_csv_teams(self, importer: LeagueImporter, repo: LeagueRepository) -> None:
        """Each row creates a team; blank colors get the default."""
        summary = importer.import_csv(
            "teams", "name,color\nRed Dragons,bg-red-100\nBlue Winds,\n"
        )

        assert summary.teams == 2
        assert repo.find_team_by_name("Red Dragons").color == "bg-red-100"
        assert repo.find_team_by_name("Blue Winds").color == "bg-gray-100"

    def test_duplicate_of_stored_team(
        self, importer: LeagueImporter, repo: LeagueRepository
    ) -> None:
        """A name that already exists is rejected."""
        repo.create_team("Red Dragons", "bg-red-100")
        with pytest.raises(DuplicateName):
            importer.import_csv("teams", "name\nRed Dragons\n")

    def test_duplicate_within_batch(self, importer: LeagueImporter) -> None:
        """A name repeated inside one file is rejected."""
        with pytest.raises(DuplicateName):
            importer.import_csv("teams", "name\nRed Dragons\nRed Dragons\n")

    def test_names_matched_exactly(
        self, importer: LeagueImporter, repo: LeagueRepository
    ) -> None:
        """A padded name is a different name, kept as written."""
        repo.create_team("Red", "bg-red-100")
        importer.import_csv("teams", "name,color\n Red ,bg-red-100\n")

        assert repo.find_team_by_name(" Red ") is not None
        assert len(repo.list_teams()) == 2

    def test_blank_name_row(self, importer: LeagueImporter) -> None:
        """Rows without a name report their row number."""
        with pytest.raises(InvalidInput, match="row 2"):
            importer.import_csv("teams", "name,color\nRed Dragons,a\n ,b\n")

    def test_exported_ids_remapped(self, importer: LeagueImporter) -> None:
        """Exported ids map to the ids of the created teams."""
        (team,) = importer.import_teams([{"id": "old-red", "name": "Red Dragons"}])
        assert importer.team_id_map == {"old-red": team.id}


class TestImportPlayers:
    """Tests for player imports."""

    def test_team_by_name(self, importer: LeagueImporter, repo: LeagueRepository) -> None:
        """team_name resolves against stored teams."""
        team = repo.create_team("Red Dragons", "bg-red-100")
        importer.import_csv("players", "name,team_name\nAki,Red Dragons\nEri,\n")

        assert repo.find_player_by_name("Aki").team_id == team.id
        assert repo.find_player_by_name("Eri").team_id is None

    def test_team_by_stored_id(
        self, importer: LeagueImporter, repo: LeagueRepository
    ) -> None:
        """team_id may reference a team already in the store."""
        team = repo.create_team("Red Dragons", "bg-red-100")
        importer.import_players([{"name": "Aki", "team_id": team.id}])
        assert repo.find_player_by_name("Aki").team_id == team.id

    def test_team_by_exported_id(
        self, importer: LeagueImporter, repo: LeagueRepository
    ) -> None:
        """team_id from the same export resolves through the id map."""
        importer.import_teams([{"id": "old-red", "name": "Red Dragons"}])
        importer.import_players([{"id": "old-aki", "name": "Aki", "team_id": "old-red"}])

        aki = repo.find_player_by_name("Aki")
        assert aki.team.name == "Red Dragons"
        assert importer.player_id_map == {"old-aki": aki.id}

    def test_unknown_team_name(self, importer: LeagueImporter) -> None:
        with pytest.raises(MissingReference, match="Nowhere"):
            importer.import_csv("players", "name,team_name\nAki,Nowhere\n")

    def test_unknown_team_id(self, importer: LeagueImporter) -> None:
        with pytest.raises(MissingReference):
            importer.import_players([{"name": "Aki", "team_id": "no-such-team"}])

    def test_duplicate_player(
        self, importer: LeagueImporter, repo: LeagueRepository
    ) -> None:
        repo.create_player("Aki")
        with pytest.raises(DuplicateName):
            importer.import_csv("players", "name\nAki\n")


class TestImportGames:
    """Tests for game imports."""

    def test_csv_rows_grouped_by_game_id(
        self,
        importer: LeagueImporter,
        db_session: Session,
        four_players: list[Player],
    ) -> None:
        """Every four rows sharing a game_id become one game."""
        summary = importer.import_csv(
            "gameResults",
            game_csv(("g1", "2024-01-05T19:00:00"), ("g2", "2024-01-12T19:00:00")),
        )

        assert summary.games == 2
        games = db_session.query(GameResult).order_by(GameResult.game_date).all()
        assert [len(g.player_game_results) for g in games] == [4, 4]
        assert [s.score for s in games[0].player_game_results] == [60.0, 5.0, -20.0, -45.0]

    def test_rows_grouped_by_date_without_game_id(
        self, importer: LeagueImporter, four_players: list[Player]
    ) -> None:
        """Rows without a game_id are grouped by their game date."""
        summary = importer.import_csv(
            "gameResults",
            game_csv(("", "2024-01-05T19:00:00"), ("", "2024-01-12T19:00:00")),
        )
        assert summary.games == 2

    def test_incomplete_game(
        self, importer: LeagueImporter, four_players: list[Player]
    ) -> None:
        """A group of three rows is not a game."""
        text = "".join(game_csv(("g1", "2024-01-05T19:00:00")).splitlines(True)[:4])
        with pytest.raises(InvalidInput, match="3 player rows"):
            importer.import_csv("gameResults", text)

    def test_unknown_player(self, importer: LeagueImporter) -> None:
        """Seats must reference existing players."""
        with pytest.raises(MissingReference, match="Aki"):
            importer.import_csv("gameResults", game_csv(("g1", "2024-01-05T19:00:00")))

    def test_bad_points_total(
        self, importer: LeagueImporter, four_players: list[Player]
    ) -> None:
        """Stored games must still sum to the table total."""
        text = game_csv(("g1", "2024-01-05T19:00:00")).replace("40000", "41000")
        with pytest.raises(InvalidInput, match="sum to 100000"):
            importer.import_csv("gameResults", text)

    def test_non_numeric_points(
        self, importer: LeagueImporter, four_players: list[Player]
    ) -> None:
        text = game_csv(("g1", "2024-01-05T19:00:00")).replace("40000", "lots")
        with pytest.raises(InvalidInput, match="row 1"):
            importer.import_csv("gameResults", text)

    def test_nested_players_object(
        self, importer: LeagueImporter, four_players: list[Player]
    ) -> None:
        """Seats may name their player through a nested players object."""
        seats = [
            {"players": {"name": p.name}, "points": pts, "score": s, "rank": r}
            for p, pts, s, r in zip(
                four_players,
                [40000, 25000, 20000, 15000],
                [60.0, 5.0, -20.0, -45.0],
                [1, 2, 3, 4],
            )
        ]
        (game,) = importer.import_games(
            [{"game_date": "2024-01-05T19:00:00", "player_game_results": seats}]
        )
        assert {s.player.name for s in game.player_game_results} == {
            "Aki",
            "Ben",
            "Cho",
            "Dai",
        }


class TestImportJson:
    """Tests for full JSON document imports."""

    def test_document(self, importer: LeagueImporter, repo: LeagueRepository) -> None:
        """Teams, players and games are created in dependency order."""
        document = {
            "teams": [{"id": "t", "name": "Red Dragons", "color": "bg-red-100"}],
            "players": [
                {"id": f"p{i}", "name": name, "team_id": "t"}
                for i, name in enumerate(["Aki", "Ben", "Cho", "Dai"])
            ],
            "gameResults": [
                {
                    "id": "g",
                    "game_date": "2024-01-05T19:00:00",
                    "player_game_results": [
                        {"player_id": f"p{i}", "player_name": name, "points": pts,
                         "score": score, "rank": i + 1}
                        for i, (name, pts, score) in enumerate(
                            [("Aki", 40000, 60.0), ("Ben", 25000, 5.0),
                             ("Cho", 20000, -20.0), ("Dai", 15000, -45.0)]
                        )
                    ],
                }
            ],
            "exportDate": "2024-02-10T12:00:00",
        }

        summary = importer.import_json(document)

        assert summary.to_dict() == {"teams": 1, "players": 4, "games": 1}
        assert len(repo.find_team_by_name("Red Dragons").players) == 4

    def test_partial_document(self, importer: LeagueImporter) -> None:
        """Missing collections import nothing."""
        summary = importer.import_json('{"teams": [{"name": "Red Dragons"}]}')
        assert summary.to_dict() == {"teams": 1, "players": 0, "games": 0}

    def test_malformed_document(self, importer: LeagueImporter) -> None:
        with pytest.raises(InvalidInput):
            importer.import_json('{"teams": "Red Dragons"}')


class TestBatchAtomicity:
    """A failing import leaves the store as it was."""

    @pytest.fixture(autouse=True)
    def file_db(self, test_settings: "Settings") -> Generator[None, None, None]:
        reset_engine()
        init_db()
        yield
        reset_engine()

    def test_failed_batch_rolled_back(self) -> None:
        """Rows before the failing one are not kept."""
        with session_scope() as session:
            LeagueRepository(session).create_team("Red Dragons", "bg-red-100")

        with pytest.raises(DuplicateName):
            with session_scope() as session:
                LeagueImporter(LeagueRepository(session)).import_csv(
                    "teams", "name\nBlue Winds\nGreen Tigers\nRed Dragons\n"
                )

        with session_scope() as session:
            assert [t.name for t in session.query(Team).all()] == ["Red Dragons"]

    def test_failed_game_batch_rolled_back(self) -> None:
        """A bad game after good ones discards the whole file."""
        with session_scope() as session:
            repo = LeagueRepository(session)
            for name in ("Aki", "Ben", "Cho", "Dai"):
                repo.create_player(name)

        text = game_csv(("g1", "2024-01-05T19:00:00"), ("g2", "2024-01-12T19:00:00"))
        text = text.rstrip("\n").rsplit("\n", 1)[0] + "\n"

        with pytest.raises(InvalidInput):
            with session_scope() as session:
                LeagueImporter(LeagueRepository(session)).import_csv("gameResults", text)

        with session_scope() as session:
            assert session.query(GameResult).count() == 0
