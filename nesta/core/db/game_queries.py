"""Game table queries."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from nesta.core.db.models import Game

logger = logging.getLogger("nesta.database")

__all__ = ["GameQueryMixin"]


class GameQueryMixin:
    """Mixin providing game upserts and lookups.

    Requires ConnectionBase attributes: conn, transaction().
    """

    def upsert_games(self, games: Iterable[Game]) -> int:
        """Inserts or replaces games by app ID in a single transaction.

        Args:
            games: Games to write. The last fetch wins for each app ID.

        Returns:
            Number of rows written.
        """
        rows = [(game.app_id, game.name) for game in games]
        if not rows:
            return 0

        with self.transaction():
            self.conn.executemany("INSERT OR REPLACE INTO games (appId, name) VALUES (?, ?)", rows)
        logger.debug("Upserted %d games", len(rows))
        return len(rows)

    def get_games(self) -> list[Game]:
        """Returns all stored games ordered by name."""
        cursor = self.conn.execute("SELECT appId, name FROM games ORDER BY name COLLATE NOCASE, appId")
        return [Game(app_id=row["appId"], name=row["name"]) for row in cursor.fetchall()]

    def get_game(self, app_id: int) -> Game | None:
        """Returns a single game or None if it is unknown."""
        row = self.conn.execute("SELECT appId, name FROM games WHERE appId = ?", (app_id,)).fetchone()
        if row is None:
            return None
        return Game(app_id=row["appId"], name=row["name"])
