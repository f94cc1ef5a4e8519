"""Tests for SyncService: fetch -> merge -> upsert with per-source fault isolation."""

from __future__ import annotations

import sqlite3
import threading
from unittest.mock import MagicMock, patch

import pytest

from nesta.core.db import Database
from nesta.core.db.models import Game
from nesta.integrations.steam_web_api import FetchError, SteamWebAPI
from nesta.services.sync_service import SyncService, filter_owned_games

STEAM_ID = "76561198000000001"

SCHEMA = [
    {"name": "a1", "displayName": "First", "description": "d1"},
    {"name": "a2", "displayName": "Second", "description": "d2"},
]
PROGRESS = [
    {"apiname": "a1", "achieved": 1, "unlocktime": 1700000000},
    {"apiname": "a3", "achieved": 1, "unlocktime": 1700000001},
]

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_api() -> MagicMock:
    api = MagicMock(spec=SteamWebAPI)
    api.get_owned_games.return_value = [{"appid": 620, "name": "Portal 2"}]
    api.get_game_schema.return_value = SCHEMA
    api.get_player_achievements.return_value = PROGRESS
    return api


@pytest.fixture
def service(mock_api: MagicMock, database: Database) -> SyncService:
    return SyncService(mock_api, database)


def _dump(db: Database) -> list[tuple]:
    rows = db.conn.execute("SELECT * FROM achievements ORDER BY gameAppId, apiName").fetchall()
    games = db.conn.execute("SELECT * FROM games ORDER BY appId").fetchall()
    return [tuple(r) for r in rows] + [tuple(g) for g in games]


# ---------------------------------------------------------------------------
# Owned games
# ---------------------------------------------------------------------------


class TestFilterOwnedGames:
    def test_filters_invalid_entries(self) -> None:
        raw = [
            {"appid": 440, "name": "Team Fortress 2"},
            {"appid": 570},
            {"appid": 730, "name": ""},
            {"appid": 10, "name": 42},
            {"appid": "220", "name": "Half-Life 2"},
            {"appid": True, "name": "Bool"},
            "garbage",
        ]
        assert filter_owned_games(raw) == [Game(440, "Team Fortress 2")]


class TestSyncGames:
    def test_persists_filtered_games(self, service: SyncService, mock_api: MagicMock, database: Database) -> None:
        mock_api.get_owned_games.return_value = [
            {"appid": 440, "name": "Team Fortress 2"},
            {"appid": 570},
        ]

        games = service.sync_games(STEAM_ID)

        assert games == [Game(440, "Team Fortress 2")]
        assert database.get_games() == [Game(440, "Team Fortress 2")]
        mock_api.get_owned_games.assert_called_once_with(STEAM_ID)

    def test_fetch_error_propagates(self, service: SyncService, mock_api: MagicMock, database: Database) -> None:
        mock_api.get_owned_games.side_effect = FetchError("https://api", status=500)
        with pytest.raises(FetchError):
            service.sync_games(STEAM_ID)
        assert database.get_games() == []


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------


class TestSyncAchievements:
    def test_merges_and_persists(self, service: SyncService, database: Database) -> None:
        merged = service.sync_achievements(620, STEAM_ID)

        assert [a.api_name for a in merged] == ["a1", "a2", "a3"]
        assert database.get_achievements(620) == merged

    def test_schema_failure_keeps_progress(
        self, service: SyncService, mock_api: MagicMock, database: Database
    ) -> None:
        mock_api.get_game_schema.side_effect = FetchError("https://api", status=500)

        merged = service.sync_achievements(620, STEAM_ID)

        assert [(a.api_name, a.display_name, a.achieved) for a in merged] == [
            ("a1", "a1", True),
            ("a3", "a3", True),
        ]
        assert len(database.get_achievements(620)) == 2

    def test_progress_failure_keeps_schema(self, service: SyncService, mock_api: MagicMock) -> None:
        mock_api.get_player_achievements.side_effect = FetchError("https://api", status=403)

        merged = service.sync_achievements(620, STEAM_ID)

        assert [(a.api_name, a.achieved) for a in merged] == [("a1", False), ("a2", False)]

    def test_unexpected_error_degrades_to_empty(self, service: SyncService, mock_api: MagicMock) -> None:
        mock_api.get_player_achievements.side_effect = KeyError("playerstats")

        merged = service.sync_achievements(620, STEAM_ID)

        assert [a.api_name for a in merged] == ["a1", "a2"]

    def test_both_sources_fail(self, service: SyncService, mock_api: MagicMock, database: Database) -> None:
        mock_api.get_game_schema.side_effect = FetchError("https://api")
        mock_api.get_player_achievements.side_effect = FetchError("https://api")

        assert service.sync_achievements(620, STEAM_ID) == []
        assert database.get_achievements(620) == []

    def test_fetches_run_concurrently(self, service: SyncService, mock_api: MagicMock) -> None:
        """Each fetch waits for the other; run one after the other they would time out."""
        barrier = threading.Barrier(2, timeout=5)

        def schema(app_id):
            barrier.wait()
            return SCHEMA

        def progress(app_id, steam_id):
            barrier.wait()
            return PROGRESS

        mock_api.get_game_schema.side_effect = schema
        mock_api.get_player_achievements.side_effect = progress

        merged = service.sync_achievements(620, STEAM_ID)

        assert not barrier.broken
        assert [a.api_name for a in merged] == ["a1", "a2", "a3"]

    def test_malformed_list_elements_are_ignored(
        self, service: SyncService, mock_api: MagicMock, database: Database
    ) -> None:
        mock_api.get_game_schema.return_value = [None, {"name": "a1", "displayName": "First"}]
        mock_api.get_player_achievements.return_value = ["oops", {"apiname": "a1", "achieved": 1}]

        merged = service.sync_achievements(620, STEAM_ID)

        assert [(a.api_name, a.display_name, a.achieved) for a in merged] == [("a1", "First", True)]
        assert database.get_achievements(620) == merged

    def test_both_fetches_are_issued(self, service: SyncService, mock_api: MagicMock) -> None:
        service.sync_achievements(620, STEAM_ID)

        mock_api.get_game_schema.assert_called_once_with(620)
        mock_api.get_player_achievements.assert_called_once_with(620, STEAM_ID)

    def test_resync_is_idempotent(self, service: SyncService, database: Database) -> None:
        service.sync_games(STEAM_ID)
        service.sync_achievements(620, STEAM_ID)
        first = _dump(database)

        service.sync_games(STEAM_ID)
        service.sync_achievements(620, STEAM_ID)

        assert _dump(database) == first

    def test_progress_update_overwrites_previous_state(
        self, service: SyncService, mock_api: MagicMock, database: Database
    ) -> None:
        service.sync_achievements(620, STEAM_ID)
        mock_api.get_player_achievements.return_value = PROGRESS + [
            {"apiname": "a2", "achieved": 1, "unlocktime": 1700000500}
        ]

        service.sync_achievements(620, STEAM_ID)

        a2 = next(a for a in database.get_achievements(620) if a.api_name == "a2")
        assert a2.achieved is True
        assert a2.unlocked_at is not None

    def test_storage_failure_propagates(self, service: SyncService, database: Database) -> None:
        with patch.object(database, "upsert_achievements", side_effect=sqlite3.OperationalError("disk I/O error")):
            with pytest.raises(sqlite3.OperationalError):
                service.sync_achievements(620, STEAM_ID)


# ---------------------------------------------------------------------------
# Full library
# ---------------------------------------------------------------------------


class TestSyncAll:
    def test_syncs_every_owned_game(self, service: SyncService, mock_api: MagicMock, database: Database) -> None:
        mock_api.get_owned_games.return_value = [
            {"appid": 440, "name": "Team Fortress 2"},
            {"appid": 620, "name": "Portal 2"},
        ]

        report = service.sync_all(STEAM_ID)

        assert report.games == 2
        assert report.achievements == 6
        assert report.synced_app_ids == [440, 620]
        assert database.get_achievement_count() == 6

    def test_restrict_to_app_ids(self, service: SyncService, mock_api: MagicMock) -> None:
        report = service.sync_all(STEAM_ID, app_ids=[620])

        assert report.synced_app_ids == [620]
        mock_api.get_game_schema.assert_called_once_with(620)

    def test_owned_games_failure_aborts(self, service: SyncService, mock_api: MagicMock) -> None:
        mock_api.get_owned_games.side_effect = FetchError("https://api", status=401)
        with pytest.raises(FetchError):
            service.sync_all(STEAM_ID)
        mock_api.get_game_schema.assert_not_called()

    def test_malformed_game_does_not_abort_library(self, service: SyncService, mock_api: MagicMock) -> None:
        mock_api.get_owned_games.return_value = [
            {"appid": 440, "name": "Team Fortress 2"},
            {"appid": 620, "name": "Portal 2"},
        ]
        mock_api.get_game_schema.side_effect = lambda app_id: [None] if app_id == 440 else SCHEMA

        report = service.sync_all(STEAM_ID)

        assert report.synced_app_ids == [440, 620]
        assert report.achievements == 5
