"""Achievement table queries.

Rows are keyed by (gameAppId, apiName). ``achieved`` is stored as 0/1
and ``unlockedAt`` as ISO-8601 text or NULL.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable

from nesta.core.db.models import Achievement
from nesta.utils.date_utils import from_iso, to_iso

logger = logging.getLogger("nesta.database")

__all__ = ["AchievementQueryMixin"]

_COLUMNS = "apiName, gameAppId, displayName, description, achieved, unlockedAt"


def _row_to_achievement(row: sqlite3.Row) -> Achievement:
    return Achievement(
        api_name=row["apiName"],
        game_app_id=row["gameAppId"],
        display_name=row["displayName"],
        description=row["description"] or "",
        achieved=bool(row["achieved"]),
        unlocked_at=from_iso(row["unlockedAt"]),
    )


class AchievementQueryMixin:
    """Mixin providing achievement upserts and reads.

    Requires ConnectionBase attributes: conn, transaction().
    """

    def upsert_achievements(self, achievements: Iterable[Achievement]) -> int:
        """Inserts or replaces a set of achievements atomically.

        The whole set becomes visible at once or not at all.

        Args:
            achievements: Reconciled achievement records.

        Returns:
            Number of rows written.
        """
        rows = [
            (
                ach.api_name,
                ach.game_app_id,
                ach.display_name,
                ach.description,
                1 if ach.achieved else 0,
                to_iso(ach.unlocked_at),
            )
            for ach in achievements
        ]
        if not rows:
            return 0

        with self.transaction():
            self.conn.executemany(
                f"INSERT OR REPLACE INTO achievements ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                rows,
            )
        logger.debug("Upserted %d achievements", len(rows))
        return len(rows)

    def get_achievements(self, app_id: int | None = None) -> list[Achievement]:
        """Returns stored achievements, optionally for one game.

        Args:
            app_id: Restrict to this game when given.

        Returns:
            Achievements in insertion (rowid) order.
        """
        if app_id is None:
            cursor = self.conn.execute(f"SELECT {_COLUMNS} FROM achievements ORDER BY gameAppId, rowid")
        else:
            cursor = self.conn.execute(
                f"SELECT {_COLUMNS} FROM achievements WHERE gameAppId = ? ORDER BY rowid",
                (app_id,),
            )
        return [_row_to_achievement(row) for row in cursor.fetchall()]

    def get_unearned_achievements(self) -> list[Achievement]:
        """Returns every achievement the player has not unlocked yet."""
        cursor = self.conn.execute(
            f"SELECT {_COLUMNS} FROM achievements WHERE achieved = 0 ORDER BY gameAppId, rowid"
        )
        return [_row_to_achievement(row) for row in cursor.fetchall()]

    def get_achievement_count(self) -> int:
        """Returns the number of stored achievements across all games."""
        return self.conn.execute("SELECT COUNT(*) FROM achievements").fetchone()[0]
