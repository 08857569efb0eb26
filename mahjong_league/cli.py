"""CLI entrypoint using Typer.

This module defines the command-line interface for the mahjong league.
Commands are organized into subcommand groups for teams, players, games,
statistics, and data export/import.

Example:
    $ mahjong-league --help
    $ mahjong-league team add "Red Dragons" --color "bg-red-100 text-red-800"
    $ mahjong-league game record --seat Aki=40000 --seat Ben=25000 \\
        --seat Cho=20000 --seat Dai=15000
    $ mahjong-league stats players --from 2024-04-01 --to 2024-06-30
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from mahjong_league import __version__
from mahjong_league.config import get_settings
from mahjong_league.logging import setup_logging
from mahjong_league.types import InvalidInput, LeagueError

if TYPE_CHECKING:
    from mahjong_league.data.models import Player, Team
    from mahjong_league.data.repository import LeagueRepository

# Initialize console for rich output
console = Console()

# Create main app
app = typer.Typer(
    name="mahjong-league",
    help="Mahjong league score tracker",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Create subcommand groups
team_app = typer.Typer(
    name="team",
    help="Team management commands",
    no_args_is_help=True,
)
player_app = typer.Typer(
    name="player",
    help="Player management commands",
    no_args_is_help=True,
)
game_app = typer.Typer(
    name="game",
    help="Game recording commands",
    no_args_is_help=True,
)
stats_app = typer.Typer(
    name="stats",
    help="Leaderboard and standings commands",
    no_args_is_help=True,
)
data_app = typer.Typer(
    name="data",
    help="Data export and import commands",
    no_args_is_help=True,
)

# Register subcommand groups
app.add_typer(team_app, name="team")
app.add_typer(player_app, name="player")
app.add_typer(game_app, name="game")
app.add_typer(stats_app, name="stats")
app.add_typer(data_app, name="data")

# Import order: JSON bundles first, then CSV tables in dependency order
IMPORT_ORDER = ("json", "teams", "players", "gameResults")
CSV_KIND_BY_STEM = {
    "teams": "teams",
    "players": "players",
    "gameresults": "gameResults",
    "game_results": "gameResults",
    "games": "gameResults",
}


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]mahjong-league[/bold blue] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-V",
            help="Enable verbose output",
        ),
    ] = False,
) -> None:
    """Mahjong league score tracker.

    Records four-player games, scores them, and ranks players and teams.
    """
    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    setup_logging(level=log_level, log_dir=settings.log_dir_obj)


# =============================================================================
# Helpers
# =============================================================================


@contextmanager
def _repository() -> Generator[LeagueRepository, None, None]:
    """Open a repository in a committing session, reporting domain errors."""
    from mahjong_league.data import LeagueRepository, init_db, session_scope

    get_settings().ensure_directories()
    init_db()
    try:
        with session_scope() as session:
            yield LeagueRepository(session)
    except LeagueError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e


def _find_team(repo: LeagueRepository, ref: str) -> Team:
    """Look a team up by name, falling back to id."""
    return repo.find_team_by_name(ref) or repo.get_team(ref)


def _find_player(repo: LeagueRepository, ref: str) -> Player:
    """Look a player up by name, falling back to id."""
    return repo.find_player_by_name(ref) or repo.get_player(ref)


def _parse_seat(raw: str) -> tuple[str, int]:
    """Split a NAME=POINTS seat argument."""
    name, sep, points = raw.rpartition("=")
    if not sep or not name.strip():
        raise InvalidInput(f"Seat must be NAME=POINTS, got {raw!r}")
    try:
        return name.strip(), int(points)
    except ValueError as e:
        raise InvalidInput(f"Points must be an integer, got {points!r}") from e


def _parse_game_date(raw: str | None) -> datetime:
    if raw is None:
        return datetime.now().replace(microsecond=0)
    try:
        return datetime.fromisoformat(raw)
    except ValueError as e:
        raise InvalidInput(f"Game date is not ISO-8601: {raw!r}") from e


def _filter_params(
    team: str | None, date_from: str | None, date_to: str | None
) -> dict[str, str | None]:
    return {"teamFilter": team, "dateFrom": date_from, "dateTo": date_to}


def _import_kind(path: Path, kind: str | None, file_count: int) -> str:
    """Entity kind of an import file: "json" or a CSV kind."""
    if path.suffix.lower() == ".json":
        return "json"
    if kind is not None:
        if file_count > 1:
            raise InvalidInput(
                "--type applies to a single CSV file; name files teams.csv, "
                "players.csv and gameResults.csv instead"
            )
        if kind not in IMPORT_ORDER[1:]:
            raise InvalidInput(
                f"Unknown import type {kind!r}, expected one of "
                f"{', '.join(IMPORT_ORDER[1:])}"
            )
        return kind
    inferred = CSV_KIND_BY_STEM.get(path.stem.lower())
    if inferred is None:
        raise InvalidInput(
            f"Cannot tell the kind of {path.name}; pass --type or name it "
            "teams.csv, players.csv or gameResults.csv"
        )
    return inferred


# =============================================================================
# Team Commands
# =============================================================================


@team_app.command("add")
def team_add(
    name: Annotated[str, typer.Argument(help="Team name")],
    color: Annotated[
        str | None,
        typer.Option("--color", "-c", help="Display color tag"),
    ] = None,
) -> None:
    """Create a team."""
    with _repository() as repo:
        team = repo.create_team(name, color or get_settings().default_team_color)
        console.print(f"[green]Created team[/green] {team.name} ({team.id})")


@team_app.command("list")
def team_list() -> None:
    """List teams with their member counts."""
    with _repository() as repo:
        table = Table(title="Teams")
        table.add_column("Name", style="cyan")
        table.add_column("Color")
        table.add_column("Players", justify="right")
        table.add_column("ID", style="dim")

        for team in repo.list_teams():
            table.add_row(team.name, team.color, str(len(team.players)), team.id)

        console.print(table)


@team_app.command("update")
def team_update(
    team: Annotated[str, typer.Argument(help="Team name or id")],
    name: Annotated[str | None, typer.Option("--name", "-n", help="New name")] = None,
    color: Annotated[
        str | None, typer.Option("--color", "-c", help="New color tag")
    ] = None,
) -> None:
    """Rename or recolor a team."""
    with _repository() as repo:
        updated = repo.update_team(_find_team(repo, team).id, name=name, color=color)
        console.print(f"[green]Updated team[/green] {updated.name}")


@team_app.command("delete")
def team_delete(
    team: Annotated[str, typer.Argument(help="Team name or id")],
) -> None:
    """Delete a team that has no players."""
    with _repository() as repo:
        target = _find_team(repo, team)
        repo.delete_team(target.id)
        console.print(f"[green]Deleted team[/green] {target.name}")


# =============================================================================
# Player Commands
# =============================================================================


@player_app.command("add")
def player_add(
    name: Annotated[str, typer.Argument(help="Player name")],
    team: Annotated[
        str | None, typer.Option("--team", "-t", help="Team name or id")
    ] = None,
) -> None:
    """Create a player, optionally on a team."""
    with _repository() as repo:
        team_id = _find_team(repo, team).id if team else None
        player = repo.create_player(name, team_id=team_id)
        console.print(f"[green]Created player[/green] {player.name} ({player.id})")


@player_app.command("list")
def player_list() -> None:
    """List players and their teams."""
    unaffiliated = get_settings().unaffiliated_label
    with _repository() as repo:
        table = Table(title="Players")
        table.add_column("Name", style="cyan")
        table.add_column("Team")
        table.add_column("ID", style="dim")

        for player in repo.list_players():
            team_name = player.team.name if player.team is not None else unaffiliated
            table.add_row(player.name, team_name, player.id)

        console.print(table)


@player_app.command("update")
def player_update(
    player: Annotated[str, typer.Argument(help="Player name or id")],
    name: Annotated[str | None, typer.Option("--name", "-n", help="New name")] = None,
    team: Annotated[
        str | None, typer.Option("--team", "-t", help="New team name or id")
    ] = None,
    no_team: Annotated[
        bool, typer.Option("--no-team", help="Remove the player from their team")
    ] = False,
) -> None:
    """Rename a player or move them to another team."""
    with _repository() as repo:
        target = _find_player(repo, player)
        if no_team:
            updated = repo.update_player(target.id, name=name, team_id=None)
        elif team is not None:
            updated = repo.update_player(
                target.id, name=name, team_id=_find_team(repo, team).id
            )
        else:
            updated = repo.update_player(target.id, name=name)
        console.print(f"[green]Updated player[/green] {updated.name}")


@player_app.command("delete")
def player_delete(
    player: Annotated[str, typer.Argument(help="Player name or id")],
) -> None:
    """Delete a player with no recorded games."""
    with _repository() as repo:
        target = _find_player(repo, player)
        repo.delete_player(target.id)
        console.print(f"[green]Deleted player[/green] {target.name}")


# =============================================================================
# Game Commands
# =============================================================================


@game_app.command("record")
def game_record(
    seats: Annotated[
        list[str],
        typer.Option("--seat", "-s", help="NAME=POINTS, given four times"),
    ],
    date: Annotated[
        str | None,
        typer.Option("--date", "-d", help="Game time (ISO-8601), default now"),
    ] = None,
) -> None:
    """Score a finished game and store it."""
    with _repository() as repo:
        parsed = [_parse_seat(raw) for raw in seats]
        players = {name: _find_player(repo, name) for name, _ in parsed}
        game = repo.record_game(
            _parse_game_date(date),
            [(players[name].id, points) for name, points in parsed],
        )

        table = Table(title=f"Game {game.game_date:%Y-%m-%d %H:%M}")
        table.add_column("Rank", justify="right")
        table.add_column("Player", style="cyan")
        table.add_column("Points", justify="right")
        table.add_column("Score", justify="right", style="green")
        for seat in game.player_game_results:
            table.add_row(
                str(seat.rank), seat.player.name, f"{seat.points:,}", f"{seat.score:+.1f}"
            )
        console.print(table)


@game_app.command("list")
def game_list(
    limit: Annotated[
        int, typer.Option("--limit", "-n", help="Show at most N games", min=1)
    ] = 20,
) -> None:
    """List recorded games, newest first."""
    with _repository() as repo:
        table = Table(title="Games")
        table.add_column("Date", style="green")
        table.add_column("Results")
        table.add_column("ID", style="dim")

        for game in repo.list_games()[:limit]:
            results = ", ".join(
                f"{seat.rank}. {seat.player.name} {seat.score:+.1f}"
                for seat in game.player_game_results
            )
            table.add_row(f"{game.game_date:%Y-%m-%d %H:%M}", results, game.id)

        console.print(table)


@game_app.command("delete")
def game_delete(
    game_id: Annotated[str, typer.Argument(help="Game id")],
) -> None:
    """Delete a game and its four results."""
    with _repository() as repo:
        repo.delete_game(game_id)
        console.print(f"[green]Deleted game[/green] {game_id}")


# =============================================================================
# Stats Commands
# =============================================================================


@stats_app.command("players")
def stats_players(
    team: Annotated[
        str | None, typer.Option("--team", "-t", help="Team name or id, or 'all'")
    ] = None,
    date_from: Annotated[
        str | None, typer.Option("--from", help="First day (ISO-8601)")
    ] = None,
    date_to: Annotated[
        str | None, typer.Option("--to", help="Last day (ISO-8601)")
    ] = None,
) -> None:
    """Player leaderboard."""
    from mahjong_league.leaderboard import ALL_TEAMS, LeaderboardService, StatsFilter

    with _repository() as repo:
        team_ref = team
        if team and team != ALL_TEAMS:
            team_ref = _find_team(repo, team).id
        stats_filter = StatsFilter.from_query(_filter_params(team_ref, date_from, date_to))
        rows = LeaderboardService(repo).player_leaderboard(stats_filter)

        table = Table(title="Player Ranking")
        table.add_column("#", justify="right")
        table.add_column("Player", style="cyan")
        table.add_column("Team")
        table.add_column("Total", justify="right", style="green")
        table.add_column("Games", justify="right")
        table.add_column("Avg", justify="right")
        table.add_column("Avg Rank", justify="right")
        table.add_column("1st/2nd/3rd/4th", justify="right")

        for position, row in enumerate(rows, start=1):
            table.add_row(
                str(position),
                row.name,
                row.team_name,
                f"{row.total_score:+.1f}",
                str(row.game_count),
                f"{row.average_score:+.1f}",
                f"{row.average_rank:.2f}",
                f"{row.wins}/{row.seconds}/{row.thirds}/{row.fourths}",
            )

        console.print(table)


@stats_app.command("teams")
def stats_teams(
    date_from: Annotated[
        str | None, typer.Option("--from", help="First day (ISO-8601)")
    ] = None,
    date_to: Annotated[
        str | None, typer.Option("--to", help="Last day (ISO-8601)")
    ] = None,
) -> None:
    """Team leaderboard."""
    from mahjong_league.leaderboard import LeaderboardService, StatsFilter

    with _repository() as repo:
        stats_filter = StatsFilter.from_query(_filter_params(None, date_from, date_to))
        rows = LeaderboardService(repo).team_leaderboard(stats_filter)

        table = Table(title="Team Ranking")
        table.add_column("#", justify="right")
        table.add_column("Team", style="cyan")
        table.add_column("Total", justify="right", style="green")
        table.add_column("Games", justify="right")
        table.add_column("Players", justify="right")
        table.add_column("Avg", justify="right")
        table.add_column("Avg Rank", justify="right")

        for position, row in enumerate(rows, start=1):
            table.add_row(
                str(position),
                row.name,
                f"{row.total_score:+.1f}",
                str(row.game_count),
                str(row.player_count),
                f"{row.average_score:+.1f}",
                f"{row.average_rank:.2f}",
            )

        console.print(table)


@stats_app.command("standings")
def stats_standings(
    previous: Annotated[
        str | None,
        typer.Option("--previous", "-p", help="Last day of the previous session"),
    ] = None,
    date_to: Annotated[
        str | None, typer.Option("--to", help="Last day of the current snapshot")
    ] = None,
) -> None:
    """Team standings with points gained since the previous session."""
    from mahjong_league.leaderboard import LeaderboardService, parse_filter_date

    with _repository() as repo:
        standings = LeaderboardService(repo).team_standings(
            previous_session_date=parse_filter_date(previous, "previous"),
            date_to=parse_filter_date(date_to, "to"),
        )

        table = Table(title="Standings")
        table.add_column("#", justify="right")
        table.add_column("Team", style="cyan")
        table.add_column("Total", justify="right", style="green")
        table.add_column("Gap", justify="right")
        table.add_column("Session", justify="right")
        table.add_column("Left", justify="right")

        for standing in standings:
            gap = "-" if standing.position == 1 else f"{standing.point_diff_from_above:.1f}"
            session = f"{standing.session_points:+.1f}" if previous else "-"
            table.add_row(
                str(standing.position),
                standing.stats.name,
                f"{standing.stats.total_score:+.1f}",
                gap,
                session,
                str(standing.remaining_games),
            )

        console.print(table)


# =============================================================================
# Data Commands
# =============================================================================


@data_app.command("export")
def data_export(
    fmt: Annotated[
        str, typer.Option("--format", "-f", help="json or csv")
    ] = "json",
    kind: Annotated[
        str | None,
        typer.Option("--type", "-t", help="teams, players or gameResults (csv)"),
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write to this file")
    ] = None,
) -> None:
    """Export all records as JSON, or one table as CSV."""
    from mahjong_league.transfer import LeagueExporter

    with _repository() as repo:
        exporter = LeagueExporter(repo)
        if fmt == "csv":
            if kind is None:
                raise InvalidInput("--type is required for CSV export")
            text = exporter.to_csv(kind)
        elif fmt == "json":
            text = exporter.to_json()
        else:
            raise InvalidInput(f"Unknown export format {fmt!r}")

    if output is None:
        typer.echo(text, nl=False)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Exported to[/green] {output}")


@data_app.command("import")
def data_import(
    paths: Annotated[
        list[Path],
        typer.Argument(help="CSV or JSON files", exists=True, dir_okay=False),
    ],
    kind: Annotated[
        str | None,
        typer.Option(
            "--type", "-t", help="teams, players or gameResults (single CSV file)"
        ),
    ] = None,
) -> None:
    """Import CSV tables and JSON exports. All files commit or none do.

    CSV kinds are read from --type for a single file, or from the file
    name (teams.csv, players.csv, gameResults.csv). Files are imported
    teams first, then players, then games, through one importer so ids
    from the same export stay linked.
    """
    from mahjong_league.transfer import ImportSummary, LeagueImporter

    with _repository() as repo:
        sources = sorted(
            ((_import_kind(p, kind, len(paths)), p) for p in paths),
            key=lambda source: IMPORT_ORDER.index(source[0]),
        )
        importer = LeagueImporter(repo)
        summary = ImportSummary()
        for source_kind, path in sources:
            text = path.read_text(encoding="utf-8")
            if source_kind == "json":
                summary += importer.import_json(text)
            else:
                summary += importer.import_csv(source_kind, text)

    console.print(
        Panel(
            f"[bold]Teams:[/bold] {summary.teams}\n"
            f"[bold]Players:[/bold] {summary.players}\n"
            f"[bold]Games:[/bold] {summary.games}",
            title="Import Complete",
        )
    )
