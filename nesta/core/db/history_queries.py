"""Pick-history ledger.

The ledger is append-only. ``achievementApiName`` is a soft reference:
entries may point at achievements that were never stored or have since
been replaced, so lookups fall back to the raw API name.
"""

from __future__ import annotations

import logging
from datetime import datetime

from nesta.core.db.models import HistoryEntry
from nesta.utils.date_utils import now_utc, to_iso

logger = logging.getLogger("nesta.database")

__all__ = ["HistoryQueryMixin"]


class HistoryQueryMixin:
    """Mixin providing pick recording and listing.

    Requires ConnectionBase attributes: conn, transaction().
    """

    def record_pick(self, api_name: str, picked_at: datetime | None = None) -> None:
        """Appends a pick to the history ledger.

        Args:
            api_name: API name of the picked achievement.
            picked_at: Pick time, defaults to now (UTC).
        """
        with self.transaction():
            self.conn.execute(
                "INSERT INTO pick_history (achievementApiName, pickedAt) VALUES (?, ?)",
                (api_name, to_iso(picked_at or now_utc())),
            )
        logger.debug("Recorded pick %s", api_name)

    def get_pick_history(self, limit: int = 50) -> list[HistoryEntry]:
        """Returns the most recent picks, newest first.

        Args:
            limit: Maximum number of entries.

        Returns:
            History entries; ``display_name`` is None when no stored
            achievement matches the API name.
        """
        # Correlated lookup instead of a plain LEFT JOIN: the same API name
        # may exist in several games and must not duplicate history rows.
        cursor = self.conn.execute(
            """
            SELECT ph.pickedAt AS pickedAt,
                   ph.achievementApiName AS achievementApiName,
                   (SELECT a.displayName FROM achievements a
                    WHERE a.apiName = ph.achievementApiName
                    ORDER BY a.gameAppId LIMIT 1) AS displayName
            FROM pick_history ph
            ORDER BY ph.pickedAt DESC, ph.id DESC
            LIMIT ?
            """,
            (limit,),
        )
        return [
            HistoryEntry(
                picked_at=row["pickedAt"],
                achievement_api_name=row["achievementApiName"],
                display_name=row["displayName"],
            )
            for row in cursor.fetchall()
        ]
