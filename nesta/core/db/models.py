"""Database data models.

Contains the core data structures passed between the store, the sync
layer and the CLI: UserConfig, Game, Achievement and HistoryEntry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

__all__ = [
    "Achievement",
    "Game",
    "HistoryEntry",
    "UserConfig",
]


@dataclass(frozen=True)
class UserConfig:
    """Per-installation configuration row.

    An empty ``steam_id`` or a ``None`` key means "not configured".

    Attributes:
        steam_id: 64-bit Steam user ID as a string.
        api_key: Steam Web API key.
        openrouter_api_key: OpenRouter key used for pick explanations.
    """

    steam_id: str = ""
    api_key: str | None = None
    openrouter_api_key: str | None = None

    def missing_fields(self) -> tuple[str, ...]:
        """Returns the names of required fields that are not configured.

        Returns:
            A subset of ``("steam_id", "api_key")``, in that order.
        """
        missing: list[str] = []
        if not self.steam_id:
            missing.append("steam_id")
        if not self.api_key:
            missing.append("api_key")
        return tuple(missing)


@dataclass(frozen=True)
class Game:
    """An owned Steam game."""

    app_id: int
    name: str


@dataclass
class Achievement:
    """Canonical achievement record: schema metadata plus player progress.

    Attributes:
        api_name: Steam API name, unique within a game.
        game_app_id: App ID of the owning game.
        display_name: Human label; the API name when the schema has none.
        description: Schema description, empty if unknown.
        achieved: Whether the player has unlocked it.
        unlocked_at: UTC unlock time, only set for achieved entries with a
            positive unlock timestamp.
    """

    api_name: str
    game_app_id: int
    display_name: str
    description: str = ""
    achieved: bool = False
    unlocked_at: datetime | None = None


@dataclass(frozen=True)
class HistoryEntry:
    """One row of the pick-history ledger joined with its achievement."""

    picked_at: str
    achievement_api_name: str
    display_name: str | None = None

    @property
    def label(self) -> str:
        """Display name when the achievement is known, else the raw API name."""
        return self.display_name or self.achievement_api_name
