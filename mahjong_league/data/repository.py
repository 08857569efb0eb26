"""Record store for teams, players and game results.

``LeagueRepository`` wraps a SQLAlchemy session and enforces the league's
business rules on top of the schema: unique names, at most one team per
player, exactly four seats per game, and no deletes that would orphan
dependent rows. It also runs the filtered result scan that feeds the
stats aggregator.

Nothing here commits. Callers own the transaction (normally through
``session_scope()``), which lets a game and its seats, or a whole import
batch, commit as one unit.

Example:
    >>> from mahjong_league.data import LeagueRepository, session_scope
    >>> with session_scope() as session:
    ...     repo = LeagueRepository(session)
    ...     team = repo.create_team("Red Dragons", "bg-red-100 text-red-800")
    ...     repo.create_player("Aki", team_id=team.id)
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from mahjong_league.data.models import GameResult, Player, PlayerGameResult, Team
from mahjong_league.logging import get_logger
from mahjong_league.scoring.calculator import (
    PLAYERS_PER_GAME,
    TABLE_TOTAL,
    calculate_scores,
)
from mahjong_league.types import (
    DependentRecordsExist,
    DuplicateName,
    InvalidInput,
    MissingReference,
    PlayerResultInput,
    ResultRecord,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

    from mahjong_league.types import GameId, PlayerId, TeamId

logger = get_logger(__name__)

# Marks "argument not given" where None is a meaningful value
_UNSET: Any = object()


class LeagueRepository:
    """CRUD and scan operations over league records.

    Attributes:
        session: Open SQLAlchemy session; the caller commits.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    # =========================================================================
    # Teams
    # =========================================================================

    def list_teams(self) -> list[Team]:
        """Return all teams ordered by name."""
        return self.session.query(Team).order_by(Team.name).all()

    def get_team(self, team_id: TeamId) -> Team:
        """Return a team by id.

        Raises:
            MissingReference: If the team does not exist.
        """
        team = self.session.get(Team, team_id)
        if team is None:
            raise MissingReference("Team", team_id)
        return team

    def find_team_by_name(self, name: str) -> Team | None:
        """Return the team with exactly this name, if any."""
        return self.session.query(Team).filter(Team.name == name).first()

    def create_team(self, name: str, color: str) -> Team:
        """Create a team.

        Raises:
            InvalidInput: If name or color is blank.
            DuplicateName: If a team with this name exists.
        """
        if not name or not name.strip():
            raise InvalidInput("Team name is required")
        if not color or not color.strip():
            raise InvalidInput("Team color is required")
        if self.find_team_by_name(name) is not None:
            raise DuplicateName("Team", name)

        team = Team(name=name, color=color)
        self.session.add(team)
        self.session.flush()
        logger.info("Created team {} ({})", team.name, team.id)
        return team

    def update_team(
        self,
        team_id: TeamId,
        name: str | None = None,
        color: str | None = None,
    ) -> Team:
        """Rename and/or recolor a team.

        Raises:
            MissingReference: If the team does not exist.
            DuplicateName: If another team already has the new name.
        """
        team = self.get_team(team_id)
        if name is not None and name != team.name:
            if not name.strip():
                raise InvalidInput("Team name is required")
            if self.find_team_by_name(name) is not None:
                raise DuplicateName("Team", name)
            team.name = name
        if color is not None:
            team.color = color
        self.session.flush()
        return team

    def delete_team(self, team_id: TeamId) -> None:
        """Delete a team that no player references.

        Raises:
            MissingReference: If the team does not exist.
            DependentRecordsExist: If players are still assigned to it.
        """
        team = self.get_team(team_id)
        members = (
            self.session.query(func.count(Player.id))
            .filter(Player.team_id == team_id)
            .scalar()
        ) or 0
        if members > 0:
            raise DependentRecordsExist("Team", team.name, members)

        self.session.delete(team)
        self.session.flush()
        logger.info("Deleted team {} ({})", team.name, team_id)

    # =========================================================================
    # Players
    # =========================================================================

    def list_players(self) -> list[Player]:
        """Return all players ordered by name, teams preloaded."""
        return (
            self.session.query(Player)
            .options(selectinload(Player.team))
            .order_by(Player.name)
            .all()
        )

    def get_player(self, player_id: PlayerId) -> Player:
        """Return a player by id.

        Raises:
            MissingReference: If the player does not exist.
        """
        player = self.session.get(Player, player_id)
        if player is None:
            raise MissingReference("Player", player_id)
        return player

    def find_player_by_name(self, name: str) -> Player | None:
        """Return the player with exactly this name, if any."""
        return self.session.query(Player).filter(Player.name == name).first()

    def create_player(self, name: str, team_id: TeamId | None = None) -> Player:
        """Create a player, optionally assigned to a team.

        Raises:
            InvalidInput: If the name is blank.
            DuplicateName: If a player with this name exists.
            MissingReference: If ``team_id`` names no team.
        """
        if not name or not name.strip():
            raise InvalidInput("Player name is required")
        if self.find_player_by_name(name) is not None:
            raise DuplicateName("Player", name)
        if team_id is not None:
            self.get_team(team_id)

        player = Player(name=name, team_id=team_id)
        self.session.add(player)
        self.session.flush()
        logger.info("Created player {} ({})", player.name, player.id)
        return player

    def update_player(
        self,
        player_id: PlayerId,
        name: str | None = None,
        team_id: TeamId | None = _UNSET,
    ) -> Player:
        """Rename a player and/or move them to another team.

        Passing ``team_id=None`` makes the player unaffiliated; omitting it
        leaves the assignment alone.

        Raises:
            MissingReference: If the player or the new team does not exist.
            DuplicateName: If another player already has the new name.
        """
        player = self.get_player(player_id)
        if name is not None and name != player.name:
            if not name.strip():
                raise InvalidInput("Player name is required")
            if self.find_player_by_name(name) is not None:
                raise DuplicateName("Player", name)
            player.name = name
        if team_id is not _UNSET:
            if team_id is not None:
                self.get_team(team_id)
            player.team_id = team_id
        self.session.flush()
        return player

    def delete_player(self, player_id: PlayerId) -> None:
        """Delete a player who has no recorded games.

        Raises:
            MissingReference: If the player does not exist.
            DependentRecordsExist: If the player has game results.
        """
        player = self.get_player(player_id)
        seats = (
            self.session.query(func.count(PlayerGameResult.id))
            .filter(PlayerGameResult.player_id == player_id)
            .scalar()
        ) or 0
        if seats > 0:
            raise DependentRecordsExist("Player", player.name, seats)

        self.session.delete(player)
        self.session.flush()
        logger.info("Deleted player {} ({})", player.name, player_id)

    # =========================================================================
    # Games
    # =========================================================================

    def list_games(self) -> list[GameResult]:
        """Return all games newest first, seats and players preloaded."""
        return (
            self.session.query(GameResult)
            .options(
                selectinload(GameResult.player_game_results).selectinload(
                    PlayerGameResult.player
                )
            )
            .order_by(GameResult.game_date.desc(), GameResult.id)
            .all()
        )

    def get_game(self, game_id: GameId) -> GameResult:
        """Return a game by id.

        Raises:
            MissingReference: If the game does not exist.
        """
        game = self.session.get(GameResult, game_id)
        if game is None:
            raise MissingReference("GameResult", game_id)
        return game

    def create_game(
        self,
        game_date: datetime,
        entries: Sequence[PlayerResultInput],
    ) -> GameResult:
        """Store a game with its four pre-computed seats.

        Scores and ranks are stored as given. The game row and its seats
        are added in one flush.

        Args:
            game_date: When the game was played.
            entries: Exactly four seats.

        Returns:
            The new GameResult.

        Raises:
            InvalidInput: On a wrong seat count, repeated player, rank
                outside 1-4, or points not summing to the table total.
            MissingReference: If a player does not exist.
        """
        self._validate_entries(entries)
        for entry in entries:
            self.get_player(entry.player_id)

        game = GameResult(
            game_date=game_date,
            player_game_results=[
                PlayerGameResult(
                    player_id=entry.player_id,
                    points=entry.points,
                    score=entry.score,
                    rank=entry.rank,
                )
                for entry in entries
            ],
        )
        self.session.add(game)
        self.session.flush()
        logger.info("Recorded game {} on {}", game.id, game_date.isoformat())
        return game

    def record_game(
        self,
        game_date: datetime,
        seats: Sequence[tuple[PlayerId, int]],
    ) -> GameResult:
        """Score four (player id, points) pairs and store the game.

        Raises:
            InvalidInput: If the points violate the game preconditions.
            MissingReference: If a player does not exist.
        """
        results = calculate_scores(seats)
        return self.create_game(
            game_date,
            [
                PlayerResultInput(
                    player_id=result.label,
                    points=result.points,
                    score=result.score,
                    rank=result.rank,
                )
                for result in results
            ],
        )

    def delete_game(self, game_id: GameId) -> None:
        """Delete a game together with its seats.

        Raises:
            MissingReference: If the game does not exist.
        """
        game = self.get_game(game_id)
        self.session.delete(game)
        self.session.flush()
        logger.info("Deleted game {}", game_id)

    # =========================================================================
    # Scan
    # =========================================================================

    def fetch_result_records(
        self,
        team_id: TeamId | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[ResultRecord]:
        """Run the filtered scan that feeds the stats aggregator.

        The date window is inclusive on whole days: from 00:00:00 on
        ``date_from`` through 23:59:59.999999 on ``date_to``, applied to the
        game date. The team filter matches the player's current team.

        Args:
            team_id: Only seats of players currently on this team.
            date_from: First day of the window.
            date_to: Last day of the window.

        Returns:
            One ResultRecord per matching seat, oldest game first.
        """
        query = (
            self.session.query(PlayerGameResult, Player, Team, GameResult)
            .join(Player, PlayerGameResult.player_id == Player.id)
            .outerjoin(Team, Player.team_id == Team.id)
            .join(GameResult, PlayerGameResult.game_result_id == GameResult.id)
        )
        if team_id is not None:
            query = query.filter(Player.team_id == team_id)
        if date_from is not None:
            query = query.filter(
                GameResult.game_date >= datetime.combine(date_from, time.min)
            )
        if date_to is not None:
            query = query.filter(
                GameResult.game_date <= datetime.combine(date_to, time.max)
            )
        query = query.order_by(GameResult.game_date, GameResult.id, PlayerGameResult.rank)

        records = [
            ResultRecord(
                player_id=player.id,
                player_name=player.name,
                team_id=player.team_id,
                team_name=team.name if team is not None else None,
                team_color=team.color if team is not None else None,
                score=seat.score,
                rank=seat.rank,
                game_date=game.game_date,
            )
            for seat, player, team, game in query.all()
        ]
        logger.debug(
            "Fetched {} result records (team={}, from={}, to={})",
            len(records),
            team_id,
            date_from,
            date_to,
        )
        return records

    @staticmethod
    def _validate_entries(entries: Sequence[PlayerResultInput]) -> None:
        """Enforce the four-seat game invariants."""
        if len(entries) != PLAYERS_PER_GAME:
            raise InvalidInput(
                f"Exactly {PLAYERS_PER_GAME} player results are required, "
                f"got {len(entries)}"
            )
        player_ids = [entry.player_id for entry in entries]
        if len(set(player_ids)) != len(player_ids):
            raise InvalidInput("A player can only take one seat per game")
        for entry in entries:
            if entry.rank not in range(1, PLAYERS_PER_GAME + 1):
                raise InvalidInput(f"Rank must be 1-4, got {entry.rank!r}")
        total = sum(entry.points for entry in entries)
        if total != TABLE_TOTAL:
            raise InvalidInput(f"Points must sum to {TABLE_TOTAL}, got {total}")
