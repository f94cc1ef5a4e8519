from __future__ import annotations

__all__: list[str] = ["FetchError", "OpenRouterClient", "SteamWebAPI"]

from nesta.integrations.openrouter_api import OpenRouterClient
from nesta.integrations.steam_web_api import FetchError, SteamWebAPI
