"""Tests for CLI module."""
from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Generator

import pytest
from typer.testing import CliRunner

from mahjong_league.cli import _import_kind, _parse_seat, app
from mahjong_league.config import reset_settings
from mahjong_league.data import reset_engine
from mahjong_league.types import InvalidInput

if TYPE_CHECKING:
    from mahjong_league.config import Settings

runner = CliRunner()

GAME_ONE = ["--seat", "Aki=40000", "--seat", "Ben=25000", "--seat", "Cho=20000", "--seat", "Dai=15000"]


@pytest.fixture(autouse=True)
def cli_env(test_settings: "Settings") -> Generator[None, None, None]:
    """Point the CLI at a fresh database file."""
    reset_engine()
    yield
    reset_engine()


@pytest.fixture
def league() -> None:
    """Two teams and four players created through the CLI."""
    for args in (
        ["team", "add", "Red Dragons", "--color", "bg-red-100"],
        ["team", "add", "Blue Winds", "--color", "bg-blue-100"],
        ["player", "add", "Aki", "--team", "Red Dragons"],
        ["player", "add", "Ben", "--team", "Red Dragons"],
        ["player", "add", "Cho", "--team", "Blue Winds"],
        ["player", "add", "Dai", "--team", "Blue Winds"],
    ):
        result = runner.invoke(app, args)
        assert result.exit_code == 0, result.stdout


class TestMainApp:
    """Tests for main CLI app."""

    def test_help_shows_all_commands(self) -> None:
        """Help should list all subcommand groups."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for group in ("team", "player", "game", "stats", "data"):
            assert group in result.stdout

    def test_version_flag(self) -> None:
        """--version should show version and exit."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_short_version_flag(self) -> None:
        """-v should show version and exit."""
        result = runner.invoke(app, ["-v"])

        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    def test_verbose_flag(self) -> None:
        """--verbose should enable verbose mode."""
        result = runner.invoke(app, ["--verbose", "team", "--help"])

        assert result.exit_code == 0


class TestParseSeat:
    """Tests for NAME=POINTS parsing."""

    def test_valid(self) -> None:
        assert _parse_seat("Aki=40000") == ("Aki", 40000)

    def test_name_with_equals(self) -> None:
        """Only the last '=' separates the points."""
        assert _parse_seat("A=B=25000") == ("A=B", 25000)

    @pytest.mark.parametrize("raw", ["Aki", "=40000", "Aki=lots"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidInput):
            _parse_seat(raw)


class TestTeamCommands:
    """Tests for team subcommands."""

    def test_add_and_list(self) -> None:
        result = runner.invoke(app, ["team", "add", "Red Dragons", "-c", "bg-red-100"])
        assert result.exit_code == 0
        assert "Created team" in result.stdout

        result = runner.invoke(app, ["team", "list"])
        assert result.exit_code == 0
        assert "Red Dragons" in result.stdout

    def test_duplicate_team_errors(self) -> None:
        runner.invoke(app, ["team", "add", "Red Dragons"])
        result = runner.invoke(app, ["team", "add", "Red Dragons"])

        assert result.exit_code == 1
        assert "Error" in result.stdout
        assert "already exists" in result.stdout

    def test_delete_team_with_players_errors(self, league: None) -> None:
        result = runner.invoke(app, ["team", "delete", "Red Dragons"])

        assert result.exit_code == 1
        assert "still referenced" in result.stdout

    def test_rename(self) -> None:
        runner.invoke(app, ["team", "add", "Red Dragons"])
        result = runner.invoke(app, ["team", "update", "Red Dragons", "--name", "Crimson"])

        assert result.exit_code == 0
        assert "Crimson" in runner.invoke(app, ["team", "list"]).stdout


class TestPlayerCommands:
    """Tests for player subcommands."""

    def test_list_shows_unaffiliated(self) -> None:
        runner.invoke(app, ["player", "add", "Eri"])
        result = runner.invoke(app, ["player", "list"])

        assert result.exit_code == 0
        assert "Eri" in result.stdout
        assert "Unaffiliated" in result.stdout

    def test_unknown_team_errors(self) -> None:
        result = runner.invoke(app, ["player", "add", "Aki", "--team", "Nowhere"])

        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_no_team(self, league: None) -> None:
        result = runner.invoke(app, ["player", "update", "Aki", "--no-team"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["stats", "players", "--team", "Red Dragons"])
        assert result.exit_code == 0


class TestGameCommands:
    """Tests for game subcommands."""

    def test_record_shows_scores(self, league: None) -> None:
        result = runner.invoke(
            app, ["game", "record", *GAME_ONE, "--date", "2024-01-05T19:00:00"]
        )

        assert result.exit_code == 0, result.stdout
        assert "+60.0" in result.stdout
        assert "-45.0" in result.stdout

    def test_record_three_seats_errors(self, league: None) -> None:
        result = runner.invoke(app, ["game", "record", *GAME_ONE[:6]])

        assert result.exit_code == 1
        assert "Exactly 4" in result.stdout

    def test_record_bad_total_errors(self, league: None) -> None:
        args = [a.replace("Dai=15000", "Dai=14000") for a in GAME_ONE]
        result = runner.invoke(app, ["game", "record", *args])

        assert result.exit_code == 1
        assert "100000" in result.stdout

    def test_record_unknown_player_errors(self, league: None) -> None:
        args = [a.replace("Dai=", "Zed=") for a in GAME_ONE]
        result = runner.invoke(app, ["game", "record", *args])

        assert result.exit_code == 1
        assert "Zed" in result.stdout

    def test_list(self, league: None) -> None:
        runner.invoke(app, ["game", "record", *GAME_ONE, "--date", "2024-01-05T19:00:00"])
        result = runner.invoke(app, ["game", "list"])

        assert result.exit_code == 0
        assert "2024-01-05" in result.stdout


class TestStatsCommands:
    """Tests for stats subcommands."""

    @pytest.fixture
    def played(self, league: None) -> None:
        result = runner.invoke(
            app, ["game", "record", *GAME_ONE, "--date", "2024-01-05T19:00:00"]
        )
        assert result.exit_code == 0, result.stdout

    def test_players(self, played: None) -> None:
        result = runner.invoke(app, ["stats", "players"])

        assert result.exit_code == 0
        assert "Aki" in result.stdout
        assert "+60.0" in result.stdout

    def test_players_empty_window(self, played: None) -> None:
        result = runner.invoke(app, ["stats", "players", "--to", "2023-12-31"])

        assert result.exit_code == 0
        assert "Aki" not in result.stdout

    def test_players_inverted_window_errors(self, played: None) -> None:
        result = runner.invoke(
            app, ["stats", "players", "--from", "2024-02-01", "--to", "2024-01-01"]
        )
        assert result.exit_code == 1

    def test_teams(self, played: None) -> None:
        result = runner.invoke(app, ["stats", "teams"])

        assert result.exit_code == 0
        assert "Red Dragons" in result.stdout
        assert "+65.0" in result.stdout

    def test_standings(self, played: None) -> None:
        result = runner.invoke(app, ["stats", "standings", "--previous", "2024-01-01"])

        assert result.exit_code == 0
        assert "Blue Winds" in result.stdout


class TestDataCommands:
    """Tests for data subcommands."""

    def test_export_json(self, league: None, tmp_path: Path) -> None:
        target = tmp_path / "league.json"
        result = runner.invoke(app, ["data", "export", "--output", str(target)])

        assert result.exit_code == 0
        document = json.loads(target.read_text())
        assert len(document["players"]) == 4

    def test_export_csv_stdout(self, league: None) -> None:
        result = runner.invoke(app, ["data", "export", "-f", "csv", "-t", "teams"])

        assert result.exit_code == 0
        assert "id,name,color,created_at,updated_at" in result.stdout

    def test_export_csv_requires_type(self) -> None:
        result = runner.invoke(app, ["data", "export", "--format", "csv"])
        assert result.exit_code == 1

    def test_export_csv_to_file(self, league: None, tmp_path: Path) -> None:
        target = tmp_path / "out" / "teams.csv"
        result = runner.invoke(
            app, ["data", "export", "-f", "csv", "-t", "teams", "-o", str(target)]
        )

        assert result.exit_code == 0
        assert target.read_text().startswith("id,name,color")

    def test_import_csv(self, tmp_path: Path) -> None:
        source = tmp_path / "teams.csv"
        source.write_text("name,color\nRed Dragons,bg-red-100\nBlue Winds,\n")

        result = runner.invoke(app, ["data", "import", str(source), "--type", "teams"])

        assert result.exit_code == 0
        assert "Import Complete" in result.stdout
        assert "Blue Winds" in runner.invoke(app, ["team", "list"]).stdout

    def test_import_failure_keeps_store(self, tmp_path: Path) -> None:
        """A failing file imports nothing."""
        source = tmp_path / "teams.csv"
        source.write_text("name\nRed Dragons\nRed Dragons\n")

        result = runner.invoke(app, ["data", "import", str(source), "-t", "teams"])

        assert result.exit_code == 1
        assert "Red Dragons" not in runner.invoke(app, ["team", "list"]).stdout

    def test_csv_export_reimports_into_empty_store(
        self, league: None, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Exported CSV tables import together into a fresh database."""
        runner.invoke(app, ["game", "record", *GAME_ONE, "--date", "2024-01-05T19:00:00"])
        export_dir = tmp_path / "export"
        for kind in ("teams", "players", "gameResults"):
            result = runner.invoke(
                app,
                ["data", "export", "-f", "csv", "-t", kind,
                 "-o", str(export_dir / f"{kind}.csv")],
            )
            assert result.exit_code == 0, result.stdout

        monkeypatch.setenv("MAHJONG_DB_PATH", str(tmp_path / "fresh.db"))
        reset_settings()
        reset_engine()

        # Listed out of dependency order on purpose
        files = [str(export_dir / f"{kind}.csv") for kind in ("gameResults", "players", "teams")]
        result = runner.invoke(app, ["data", "import", *files])

        assert result.exit_code == 0, result.stdout
        assert "Teams: 2" in result.stdout
        assert "Players: 4" in result.stdout
        assert "Games: 1" in result.stdout

        result = runner.invoke(app, ["stats", "teams"])
        assert "Red Dragons" in result.stdout
        assert "+65.0" in result.stdout

    def test_multi_file_import_failure_keeps_store(self, tmp_path: Path) -> None:
        """A bad file discards the files imported before it."""
        (tmp_path / "teams.csv").write_text("name\nRed Dragons\n")
        (tmp_path / "players.csv").write_text("name,team_name\nAki,Nowhere\n")

        result = runner.invoke(
            app,
            ["data", "import", str(tmp_path / "players.csv"), str(tmp_path / "teams.csv")],
        )

        assert result.exit_code == 1
        assert "Nowhere" in result.stdout
        assert "Red Dragons" not in runner.invoke(app, ["team", "list"]).stdout

    def test_type_with_several_files_errors(self, tmp_path: Path) -> None:
        (tmp_path / "a.csv").write_text("name\nRed Dragons\n")
        (tmp_path / "b.csv").write_text("name\nBlue Winds\n")

        result = runner.invoke(
            app,
            ["data", "import", str(tmp_path / "a.csv"), str(tmp_path / "b.csv"), "-t", "teams"],
        )
        assert result.exit_code == 1


class TestImportKind:
    """Tests for telling the kind of an import file."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("teams.csv", "teams"),
            ("Players.CSV", "players"),
            ("gameResults.csv", "gameResults"),
            ("game_results.csv", "gameResults"),
            ("league.json", "json"),
        ],
    )
    def test_inferred_from_name(self, name: str, expected: str) -> None:
        assert _import_kind(Path(name), None, 1) == expected

    def test_explicit_type(self) -> None:
        assert _import_kind(Path("export.csv"), "players", 1) == "players"

    def test_unknown_name(self) -> None:
        with pytest.raises(InvalidInput, match="export.csv"):
            _import_kind(Path("export.csv"), None, 1)

    def test_unknown_type(self) -> None:
        with pytest.raises(InvalidInput, match="bogus"):
            _import_kind(Path("export.csv"), "bogus", 1)
