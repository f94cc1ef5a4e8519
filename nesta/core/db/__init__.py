"""Local store for nesta.

All mixins compose into the Database class via multiple inheritance.
The MRO ensures ConnectionBase.__init__ runs first, then
SchemaMixin._ensure_schema() creates or migrates the schema.
"""

from __future__ import annotations

from nesta.core.db.achievement_queries import AchievementQueryMixin
from nesta.core.db.connection import ConnectionBase
from nesta.core.db.game_queries import GameQueryMixin
from nesta.core.db.history_queries import HistoryQueryMixin
from nesta.core.db.models import Achievement, Game, HistoryEntry, UserConfig
from nesta.core.db.schema import SchemaMixin
from nesta.core.db.user_queries import UserQueryMixin

__all__ = [
    "Achievement",
    "Database",
    "Game",
    "HistoryEntry",
    "UserConfig",
]


class Database(
    SchemaMixin,
    UserQueryMixin,
    GameQueryMixin,
    AchievementQueryMixin,
    HistoryQueryMixin,
    ConnectionBase,
):
    """Main database class composing all query mixins.

    Inherits connection management from ConnectionBase,
    schema handling from SchemaMixin, and all query methods
    from the remaining mixins.
    """

    pass
