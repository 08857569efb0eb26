"""Bulk export and import of league records.

Submodules:
    codec: CSV/JSON encoding and the fixed column sets
    schemas: Pydantic models validating import rows
    exporter: Repository to CSV/JSON
    importer: CSV/JSON to repository, with duplicate and reference checks

Example:
    >>> from mahjong_league.transfer import LeagueExporter, LeagueImporter
    >>> text = LeagueExporter(repo).to_json()
    >>> summary = LeagueImporter(other_repo).import_json(text)
"""

from __future__ import annotations

from mahjong_league.transfer.codec import (
    CSV_COLUMNS,
    GAME_RESULT_COLUMNS,
    PLAYER_COLUMNS,
    TEAM_COLUMNS,
    build_export,
    decode_csv,
    decode_json,
    encode_csv,
    encode_json,
)
from mahjong_league.transfer.exporter import LeagueExporter
from mahjong_league.transfer.importer import ImportSummary, LeagueImporter

__all__ = [
    "CSV_COLUMNS",
    "GAME_RESULT_COLUMNS",
    "PLAYER_COLUMNS",
    "TEAM_COLUMNS",
    "ImportSummary",
    "LeagueExporter",
    "LeagueImporter",
    "build_export",
    "decode_csv",
    "decode_json",
    "encode_csv",
    "encode_json",
]
