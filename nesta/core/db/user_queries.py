"""Single-row user configuration storage."""

from __future__ import annotations

import logging

from nesta.core.db.models import UserConfig

logger = logging.getLogger("nesta.database")

__all__ = ["UserQueryMixin"]


class UserQueryMixin:
    """Mixin providing access to the ``users`` row.

    Requires ConnectionBase attributes: conn, transaction().
    """

    def get_user_config(self) -> UserConfig | None:
        """Returns the stored configuration row, or None if never saved."""
        row = self.conn.execute("SELECT steamId, apiKey, openRouterApiKey FROM users WHERE id = 1").fetchone()
        if row is None:
            return None
        return UserConfig(
            steam_id=row["steamId"] or "",
            api_key=row["apiKey"],
            openrouter_api_key=row["openRouterApiKey"],
        )

    def save_user_config(self, user_config: UserConfig) -> None:
        """Replaces the stored configuration row.

        Args:
            user_config: The full configuration to persist.
        """
        with self.transaction():
            self.conn.execute(
                """
                INSERT OR REPLACE INTO users (id, steamId, apiKey, openRouterApiKey)
                VALUES (1, ?, ?, ?)
                """,
                (user_config.steam_id, user_config.api_key, user_config.openrouter_api_key),
            )
        logger.debug("User configuration saved")
