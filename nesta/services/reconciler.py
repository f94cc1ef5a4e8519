"""Merges a game's achievement schema with the player's progress.

Schema entries carry static metadata (display name, description);
progress entries carry the mutable unlock state. The merge is a full
outer join on the achievement API name:

- every schema entry and every progress entry yields exactly one record;
- ``achieved`` / ``unlocked_at`` come from progress, ``display_name`` /
  ``description`` from the schema;
- progress-only entries are kept with ``display_name = api_name`` and an
  empty description.

Output order is schema order followed by progress-only entries in
progress order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from nesta.core.db.models import Achievement
from nesta.utils.date_utils import from_unix_seconds

logger = logging.getLogger("nesta.reconciler")

__all__ = ["merge_schema_and_player_achievements"]


def merge_schema_and_player_achievements(
    schema_achievements: Iterable[Mapping[str, Any]],
    player_achievements: Iterable[Mapping[str, Any]],
    app_id: int,
) -> list[Achievement]:
    """Builds one canonical Achievement per API name.

    Args:
        schema_achievements: Raw GetSchemaForGame entries
            (``name``, optional ``displayName`` / ``description``).
        player_achievements: Raw GetPlayerAchievements entries
            (``apiname``, ``achieved`` 0/1, optional ``unlocktime`` seconds).
        app_id: App ID the records belong to.

    Returns:
        Merged achievements in deterministic order.
    """
    merged: dict[str, Achievement] = {}

    for entry in schema_achievements:
        if not isinstance(entry, Mapping):
            logger.debug("Skipping non-object schema entry for app %d", app_id)
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name:
            logger.debug("Skipping schema entry without a name for app %d", app_id)
            continue
        merged[name] = Achievement(
            api_name=name,
            game_app_id=app_id,
            display_name=entry.get("displayName") or name,
            description=entry.get("description") or "",
        )

    progress_only = 0
    for entry in player_achievements:
        if not isinstance(entry, Mapping):
            logger.debug("Skipping non-object progress entry for app %d", app_id)
            continue
        api_name = entry.get("apiname")
        if not isinstance(api_name, str) or not api_name:
            logger.debug("Skipping progress entry without an apiname for app %d", app_id)
            continue

        achieved = entry.get("achieved") == 1
        unlocked_at = from_unix_seconds(entry.get("unlocktime")) if achieved else None

        existing = merged.get(api_name)
        if existing is not None:
            existing.achieved = achieved
            existing.unlocked_at = unlocked_at
        else:
            progress_only += 1
            merged[api_name] = Achievement(
                api_name=api_name,
                game_app_id=app_id,
                display_name=api_name,
                description="",
                achieved=achieved,
                unlocked_at=unlocked_at,
            )

    if progress_only:
        logger.debug("App %d: %d achievements missing from schema", app_id, progress_only)

    return list(merged.values())
