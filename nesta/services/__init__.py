from __future__ import annotations

from nesta.services.picker import pick_achievement, select_next
from nesta.services.reconciler import merge_schema_and_player_achievements
from nesta.services.sync_service import SyncReport, SyncService

__all__: list[str] = [
    "SyncReport",
    "SyncService",
    "merge_schema_and_player_achievements",
    "pick_achievement",
    "select_next",
]
