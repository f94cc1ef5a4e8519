"""Database schema creation and migrations.

Creates the four nesta tables (users, games, achievements, pick_history)
on first open and upgrades stores written by the earlier JavaScript
release of the tool (schema v1, no ``schema_version`` table).
"""

from __future__ import annotations

import logging
import sqlite3
import time

logger = logging.getLogger("nesta.database")

__all__ = ["SchemaMixin"]

_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at INTEGER NOT NULL,
    description TEXT DEFAULT ''
);

CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    steamId TEXT NOT NULL DEFAULT '',
    apiKey TEXT,
    openRouterApiKey TEXT
);

CREATE TABLE IF NOT EXISTS games (
    appId INTEGER PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS achievements (
    apiName TEXT NOT NULL,
    gameAppId INTEGER NOT NULL,
    displayName TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    achieved INTEGER NOT NULL DEFAULT 0 CHECK (achieved IN (0, 1)),
    unlockedAt TEXT,
    PRIMARY KEY (gameAppId, apiName)
);

CREATE INDEX IF NOT EXISTS idx_achievements_api_name ON achievements(apiName);

CREATE TABLE IF NOT EXISTS pick_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    achievementApiName TEXT NOT NULL,
    pickedAt TEXT NOT NULL
);
"""



def _normalize_timestamps_sql(table: str, column: str) -> str:
    """UPDATE rewriting parseable non-ISO timestamps to ``YYYY-MM-DDTHH:MM:SS+00:00``."""
    return f"""
        UPDATE {table}
        SET {column} = strftime('%Y-%m-%dT%H:%M:%S', {column}) || '+00:00'
        WHERE {column} NOT LIKE '%+00:00'
          AND strftime('%Y-%m-%dT%H:%M:%S', {column}) IS NOT NULL
        """


class SchemaMixin:
    """Mixin providing schema creation and migration logic.

    Requires ConnectionBase attributes: conn, SCHEMA_VERSION.
    """

    def _ensure_schema(self) -> None:
        """Create or migrate database schema."""
        current_version = self._get_schema_version()

        if current_version == 0:
            self._create_schema()
            self._set_schema_version(self.SCHEMA_VERSION, "initial schema")
        elif current_version < self.SCHEMA_VERSION:
            self._migrate(current_version, self.SCHEMA_VERSION)

    def _get_schema_version(self) -> int:
        """Get current database schema version.

        A store without ``schema_version`` but with an ``achievements``
        table predates versioning and counts as v1.
        """
        try:
            cursor = self.conn.execute("SELECT MAX(version) FROM schema_version")
            result = cursor.fetchone()
            return result[0] if result[0] is not None else 0
        except sqlite3.OperationalError:
            return 1 if self._table_exists("achievements") else 0

    def _table_exists(self, name: str) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (name,),
        ).fetchone()
        return row is not None

    def _set_schema_version(self, version: int, description: str) -> None:
        """Set database schema version."""
        self.conn.execute(
            """
            INSERT OR REPLACE INTO schema_version (version, applied_at, description)
            VALUES (?, ?, ?)
            """,
            (version, int(time.time()), description),
        )
        self.conn.commit()

    def _create_schema(self) -> None:
        """Create the current schema from scratch."""
        try:
            self.conn.executescript(_SCHEMA_SQL)
            self.conn.commit()
            logger.info("Database schema v%d created", self.SCHEMA_VERSION)
        except sqlite3.Error as e:
            logger.error("Failed to create database schema: %s", e)
            raise

    def _migrate(self, from_version: int, to_version: int) -> None:
        """Migrate database schema.

        Args:
            from_version: Current schema version.
            to_version: Target schema version.
        """
        logger.info(
            "Migrating database from version %d to %d",
            from_version,
            to_version,
        )

        if from_version < 2:
            self._migrate_to_v2()
            self._set_schema_version(2, "per-game achievement keys, single users row")

    def _migrate_to_v2(self) -> None:
        """Migrate to schema v2.

        v1 keyed achievements by apiName alone and allowed several users
        rows. Rows are copied into the new tables; for users only the
        first stored row survives. Legacy ``YYYY-MM-DD HH:MM:SS`` and
        ``...Z`` timestamps are rewritten to the ISO form new rows use, so
        text ordering stays chronological.

        The whole upgrade runs as one script inside an explicit
        transaction; on failure the v1 tables are left untouched.
        """
        statements = ["BEGIN"]
        legacy_users = self._table_exists("users")
        legacy_achievements = self._table_exists("achievements")

        if legacy_users:
            statements.append("ALTER TABLE users RENAME TO users_v1")
        if legacy_achievements:
            statements.append("ALTER TABLE achievements RENAME TO achievements_v1")

        statements.append(_SCHEMA_SQL)

        if legacy_users:
            statements.append("""
                INSERT OR REPLACE INTO users (id, steamId, apiKey, openRouterApiKey)
                SELECT 1, COALESCE(steamId, ''), apiKey, openRouterApiKey
                FROM users_v1 ORDER BY rowid LIMIT 1
                """)
            statements.append("DROP TABLE users_v1")
        if legacy_achievements:
            statements.append("""
                INSERT OR REPLACE INTO achievements
                (apiName, gameAppId, displayName, description, achieved, unlockedAt)
                SELECT apiName, gameAppId, COALESCE(displayName, apiName),
                       COALESCE(description, ''), CASE WHEN achieved THEN 1 ELSE 0 END,
                       unlockedAt
                FROM achievements_v1
                """)
            statements.append("DROP TABLE achievements_v1")

        statements.append(_normalize_timestamps_sql("pick_history", "pickedAt"))
        statements.append(_normalize_timestamps_sql("achievements", "unlockedAt"))
        statements.append("COMMIT")

        script = ";\n".join(statement.strip().rstrip(";") for statement in statements) + ";"
        try:
            self.conn.executescript(script)
        except sqlite3.Error as e:
            if self.conn.in_transaction:
                self.conn.rollback()
            logger.error("Migration to schema v2 failed, store left at v1: %s", e)
            raise
        logger.info("Migrated to schema v2: per-game achievement keys")
