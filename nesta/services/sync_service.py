"""Synchronizes owned games and achievements from Steam into the local store.

Per game the flow is fetch -> merge -> upsert. The schema and progress
requests for a game run concurrently and fail independently: a failed
source counts as empty, the other one is still merged and stored.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from nesta.core.db import Database
from nesta.core.db.models import Achievement, Game
from nesta.integrations.steam_web_api import FetchError, SteamWebAPI
from nesta.services.reconciler import merge_schema_and_player_achievements

logger = logging.getLogger("nesta.sync")

__all__ = ["SyncReport", "SyncService", "filter_owned_games"]


@dataclass
class SyncReport:
    """Outcome of a full library sync.

    Attributes:
        games: Number of owned games stored.
        achievements: Number of achievement rows written.
        synced_app_ids: Games whose achievements were synced.
    """

    games: int = 0
    achievements: int = 0
    synced_app_ids: list[int] = field(default_factory=list)


def filter_owned_games(raw_games: Iterable[Any]) -> list[Game]:
    """Keeps owned-games entries with an integer app ID and a non-empty name.

    Args:
        raw_games: Raw ``response.games`` entries.

    Returns:
        Valid games in input order.
    """
    games: list[Game] = []
    for entry in raw_games:
        if not isinstance(entry, dict):
            continue
        app_id = entry.get("appid")
        name = entry.get("name")
        if isinstance(app_id, bool) or not isinstance(app_id, int):
            continue
        if not isinstance(name, str) or not name:
            continue
        games.append(Game(app_id=app_id, name=name))
    return games


class SyncService:
    """Coordinates SteamWebAPI, the reconciler and the Database.

    Holds no state beyond its two collaborators.
    """

    def __init__(self, api: SteamWebAPI, db: Database) -> None:
        """Initializes the SyncService.

        Args:
            api: Steam Web API client.
            db: Open local store.
        """
        self.api = api
        self.db = db

    def sync_games(self, steam_id: str) -> list[Game]:
        """Fetches the owned-games list and upserts it.

        Args:
            steam_id: 64-bit Steam user ID.

        Returns:
            The filtered games that were stored.

        Raises:
            FetchError: If the owned-games request fails.
            sqlite3.Error: If the write fails (nothing is stored).
        """
        raw_games = self.api.get_owned_games(steam_id)
        games = filter_owned_games(raw_games)
        skipped = len(raw_games) - len(games)
        if skipped:
            logger.info("Skipped %d owned-games entries without a valid id or name", skipped)

        self.db.upsert_games(games)
        logger.info("Synced %d owned games", len(games))
        return games

    def sync_achievements(self, app_id: int, steam_id: str) -> list[Achievement]:
        """Fetches, merges and stores the achievements of one game.

        Args:
            app_id: Steam app ID.
            steam_id: 64-bit Steam user ID.

        Returns:
            The merged achievement records (possibly empty).

        Raises:
            sqlite3.Error: If the write fails (the game's set stays unchanged).
        """
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="nesta-fetch") as pool:
            schema_future = pool.submit(self._fetch_or_empty, "schema", app_id, self.api.get_game_schema, app_id)
            player_future = pool.submit(
                self._fetch_or_empty,
                "player progress",
                app_id,
                self.api.get_player_achievements,
                app_id,
                steam_id,
            )
            schema = schema_future.result()
            player = player_future.result()

        merged = merge_schema_and_player_achievements(schema, player, app_id)
        self.db.upsert_achievements(merged)
        logger.debug("App %d: stored %d achievements", app_id, len(merged))
        return merged

    @staticmethod
    def _fetch_or_empty(
        label: str,
        app_id: int,
        fetch: Callable[..., list[dict[str, Any]]],
        *args: Any,
    ) -> list[dict[str, Any]]:
        """Runs one fetch, degrading any failure to an empty source."""
        try:
            return fetch(*args)
        except FetchError as exc:
            logger.warning("App %d: %s unavailable (%s)", app_id, label, exc)
        except Exception as exc:
            logger.warning("App %d: %s fetch failed (%s: %s)", app_id, label, type(exc).__name__, exc)
        return []

    def sync_all(self, steam_id: str, app_ids: Iterable[int] | None = None) -> SyncReport:
        """Syncs owned games, then the achievements of each game.

        Per-game fetch failures degrade to empty sources inside
        sync_achievements; storage errors abort the whole run.

        Args:
            steam_id: 64-bit Steam user ID.
            app_ids: Restrict achievement sync to these games. Defaults to
                every owned game.

        Returns:
            A SyncReport with counts.

        Raises:
            FetchError: If the owned-games request fails.
            sqlite3.Error: On storage failure.
        """
        report = SyncReport()
        games = self.sync_games(steam_id)
        report.games = len(games)

        targets = list(app_ids) if app_ids is not None else [game.app_id for game in games]
        for index, app_id in enumerate(targets, start=1):
            logger.debug("Syncing achievements %d/%d (app %d)", index, len(targets), app_id)
            try:
                merged = self.sync_achievements(app_id, steam_id)
            except sqlite3.Error:
                logger.error("Storage failure while syncing app %d", app_id)
                raise
            report.achievements += len(merged)
            report.synced_app_ids.append(app_id)

        logger.info(
            "Sync finished: %d games, %d achievements",
            report.games,
            report.achievements,
        )
        return report
