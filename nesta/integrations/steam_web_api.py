"""Steam Web API client for owned games and achievement data.

Wraps the four read-only endpoints nesta needs: vanity URL resolution,
the owned-games list, a game's achievement schema and a player's
achievement progress. Pure network I/O: no merging, no persistence.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

logger = logging.getLogger("nesta.steam_web_api")

__all__ = ["FetchError", "SteamWebAPI"]

_API_BASE = "https://api.steampowered.com"
_TIMEOUT = 30


class FetchError(Exception):
    """A Steam Web API request failed.

    Attributes:
        url: Requested endpoint URL (without the query string, which carries the key).
        status: HTTP status code, or None for transport and parse errors.
        reason: Short human-readable cause.
    """

    def __init__(self, url: str, status: int | None = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        if status is not None:
            message = f"HTTP {status} for {url}"
        else:
            message = f"Request to {url} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    """Returns a nested object from a response, or {} if absent or malformed."""
    value = data.get(key)
    return value if isinstance(value, dict) else {}


class SteamWebAPI:
    """Steam Web API client.

    Every request is a single HTTPS GET with the key as a query parameter.
    There is no retry or backoff; failures surface as FetchError and the
    caller decides whether to tolerate them.

    Attributes:
        api_key: Steam Web API key for authentication.
    """

    def __init__(self, api_key: str, session: requests.Session | None = None) -> None:
        """Initializes the SteamWebAPI client.

        Args:
            api_key: Steam Web API key. Must not be empty.
            session: Optional requests session (shared connection pool).

        Raises:
            ValueError: If api_key is empty or whitespace-only.
        """
        if not api_key or not api_key.strip():
            raise ValueError("Steam API key must not be empty")
        self.api_key: str = api_key.strip()
        self._session = session or requests.Session()

    def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """Performs a GET request and returns the decoded JSON object.

        Args:
            path: Endpoint path below the API base URL.
            params: Query parameters (the key is added here).

        Returns:
            The decoded JSON object.

        Raises:
            FetchError: On transport errors, non-2xx responses or a body
                that is not a JSON object.
        """
        url = f"{_API_BASE}/{path}"
        query = {"key": self.api_key, **params}

        try:
            response = self._session.get(url, params=query, timeout=_TIMEOUT)
        except requests.RequestException as exc:
            raise FetchError(url, reason=type(exc).__name__) from exc

        if not 200 <= response.status_code < 300:
            raise FetchError(url, status=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise FetchError(url, status=response.status_code, reason="invalid JSON") from exc

        if not isinstance(data, dict):
            raise FetchError(url, status=response.status_code, reason="unexpected response shape")
        return data

    def resolve_vanity_url(self, vanity_name: str) -> str:
        """Resolves a custom profile name to a 64-bit Steam ID.

        Uses ISteamUser/ResolveVanityURL/v1. Resolution failure is not
        fatal: the input is returned unchanged and the caller validates it.

        Args:
            vanity_name: Custom URL name (the part after /id/).

        Returns:
            The resolved Steam ID, or ``vanity_name`` if it could not be resolved.
        """
        try:
            data = self._get_json("ISteamUser/ResolveVanityURL/v1/", {"vanityurl": vanity_name})
        except FetchError as exc:
            logger.warning("Vanity URL resolution failed: %s", exc)
            return vanity_name

        response = _section(data, "response")
        steam_id = response.get("steamid")
        if response.get("success") == 1 and isinstance(steam_id, str) and steam_id:
            return steam_id

        logger.info("Vanity name %r not found (success=%s)", vanity_name, response.get("success"))
        return vanity_name

    def get_owned_games(self, steam_id: str) -> list[dict[str, Any]]:
        """Fetches the player's owned games.

        Uses IPlayerService/GetOwnedGames/v1 including app info and
        played free games. Entries are returned raw; filtering is up to
        the caller.

        Args:
            steam_id: 64-bit Steam user ID.

        Returns:
            Raw game dicts (``appid``, ``name``, ...). Empty for a private
            profile or an empty library.

        Raises:
            FetchError: If the request fails.
        """
        data = self._get_json(
            "IPlayerService/GetOwnedGames/v1/",
            {
                "steamid": steam_id,
                "include_appinfo": "true",
                "include_played_free_games": "true",
            },
        )
        games = _section(data, "response").get("games") or []
        return games if isinstance(games, list) else []

    def get_game_schema(self, app_id: int) -> list[dict[str, Any]]:
        """Fetches the achievement schema for a game.

        Uses ISteamUserStats/GetSchemaForGame/v2.

        Args:
            app_id: Steam app ID.

        Returns:
            Raw schema achievements (``name``, ``displayName``, ``description``).

        Raises:
            FetchError: If the request fails.
        """
        data = self._get_json("ISteamUserStats/GetSchemaForGame/v2/", {"appid": app_id})
        stats = _section(_section(data, "game"), "availableGameStats")
        achievements = stats.get("achievements") or []
        return achievements if isinstance(achievements, list) else []

    def get_player_achievements(self, app_id: int, steam_id: str) -> list[dict[str, Any]]:
        """Fetches the player's achievement progress for a game.

        Uses ISteamUserStats/GetPlayerAchievements/v1. Steam answers 400
        for games without stats and 403 for private profiles; both raise.

        Args:
            app_id: Steam app ID.
            steam_id: 64-bit Steam user ID.

        Returns:
            Raw progress entries (``apiname``, ``achieved``, ``unlocktime``).

        Raises:
            FetchError: If the request fails.
        """
        data = self._get_json(
            "ISteamUserStats/GetPlayerAchievements/v1/",
            {"steamid": steam_id, "appid": app_id},
        )
        achievements = _section(data, "playerstats").get("achievements") or []
        return achievements if isinstance(achievements, list) else []
