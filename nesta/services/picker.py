"""Achievement picking.

The selection heuristic is a plain callable ``(candidates) -> Achievement | None``
so callers can swap it out. The default, select_next(), favours the game
the player is closest to completing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from nesta.core.db import Database
from nesta.core.db.models import Achievement

logger = logging.getLogger("nesta.picker")

__all__ = ["Selector", "list_achievements", "pick_achievement", "select_next"]

Selector = Callable[[Sequence[Achievement]], Achievement | None]


def select_next(candidates: Sequence[Achievement]) -> Achievement | None:
    """Default selector.

    Groups candidates by game, ranks games by their achieved ratio
    (highest first), and returns the first unearned achievement of the
    best game. Ties keep input order.

    Args:
        candidates: Reconciled achievements of every synced game.

    Returns:
        The recommended achievement, or None if everything is unlocked.
    """
    totals: dict[int, list[int]] = {}
    for ach in candidates:
        counts = totals.setdefault(ach.game_app_id, [0, 0])
        counts[1] += 1
        if ach.achieved:
            counts[0] += 1

    best: Achievement | None = None
    best_ratio = -1.0
    for ach in candidates:
        if ach.achieved:
            continue
        done, total = totals[ach.game_app_id]
        ratio = done / total
        if ratio > best_ratio:
            best, best_ratio = ach, ratio
    return best


def list_achievements(db: Database, unearned_only: bool = False) -> list[Achievement]:
    """Returns stored achievements for browsing, optionally only the locked ones."""
    if unearned_only:
        return db.get_unearned_achievements()
    return db.get_achievements()


def pick_achievement(db: Database, selector: Selector = select_next) -> Achievement | None:
    """Selects the next achievement and records the pick.

    Args:
        db: Local store with synced achievements.
        selector: Selection heuristic.

    Returns:
        The picked achievement, or None when nothing suitable exists
        (no pick is recorded then).
    """
    candidates = db.get_achievements()
    picked = selector(candidates)
    if picked is None:
        logger.info("No unearned achievement among %d candidates", len(candidates))
        return None
    if picked.achieved:
        logger.warning("Selector returned an unlocked achievement (%s); ignoring it", picked.api_name)
        return None

    db.record_pick(picked.api_name)
    logger.info("Picked %s (app %d)", picked.api_name, picked.game_app_id)
    return picked
