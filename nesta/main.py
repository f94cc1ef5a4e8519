#!/usr/bin/env python3
"""nesta - Main Entry Point (command line).

Subcommands:
    config   read or set a configuration value
    sync     pull owned games and achievements from Steam
    pick     recommend the next achievement to chase
    history  list recent picks
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from collections.abc import Mapping, Sequence

from dotenv import find_dotenv, load_dotenv

from nesta.config import ConfigResolver, MissingConfigError, Settings, require_complete
from nesta.core.db import Database
from nesta.core.db.models import Achievement, UserConfig
from nesta.core.logging import setup_logging
from nesta.integrations.openrouter_api import OpenRouterClient
from nesta.integrations.steam_web_api import FetchError, SteamWebAPI
from nesta.services.picker import list_achievements, pick_achievement
from nesta.services.sync_service import SyncService
from nesta.utils.date_utils import format_datetime
from nesta.version import __app_name__, __version__

logger = logging.getLogger("nesta.main")

__all__ = ["CONFIG_KEYS", "build_parser", "main", "missing_config_message"]

CONFIG_KEYS: dict[str, str] = {
    "steam.steamId": "steam_id",
    "steam.apiKey": "api_key",
    "openrouter.apiKey": "openrouter_api_key",
}

CONFIG_USAGE = "Usage: nesta config <key> [value]"

_STEAM_ID_PATTERN = re.compile(r"^\d{17}$")
_PROFILE_URL_PATTERN = re.compile(r"steamcommunity\.com/(id|profiles)/([^/?#]+)")


def missing_config_message(missing: Sequence[str]) -> str:
    """Guidance text for each configuration-absence state.

    Args:
        missing: Missing field names as reported by UserConfig.missing_fields().
    """
    if "steam_id" in missing and "api_key" in missing:
        return (
            "Steam is not configured yet. Set both values first:\n"
            "  nesta config steam.steamId <steam-id-or-profile-name>\n"
            "  nesta config steam.apiKey <steam-web-api-key>\n"
            "A key can be requested at https://steamcommunity.com/dev/apikey"
        )
    if "api_key" in missing:
        return (
            "No Steam API key configured. Set it with:\n"
            "  nesta config steam.apiKey <steam-web-api-key>\n"
            "or export STEAM_API_KEY."
        )
    return (
        "steamId is not configured. Set it with:\n"
        "  nesta config steam.steamId <steam-id-or-profile-name>\n"
        "or export STEAM_ID."
    )


def _normalize_steam_id(value: str, api_key: str | None) -> str:
    """Turns a profile URL or vanity name into a 64-bit Steam ID when possible."""
    value = value.strip()
    match = _PROFILE_URL_PATTERN.search(value)
    if match:
        kind, value = match.groups()
        if kind == "profiles":
            return value

    if _STEAM_ID_PATTERN.match(value) or not api_key:
        return value

    resolved = SteamWebAPI(api_key).resolve_vanity_url(value)
    if not _STEAM_ID_PATTERN.match(resolved):
        print(f"Warning: could not resolve '{value}' to a Steam ID; storing it as given.")
    return resolved


def _cmd_config(args: argparse.Namespace, resolver: ConfigResolver) -> int:
    if not args.key:
        print(CONFIG_USAGE)
        print("Keys: " + ", ".join(CONFIG_KEYS))
        return 0

    field_name = CONFIG_KEYS.get(args.key)
    if field_name is None:
        print(f"Unknown config key '{args.key}'.")
        print(CONFIG_USAGE)
        print("Keys: " + ", ".join(CONFIG_KEYS))
        return 2

    current = resolver.get_config()
    if args.value is None:
        print(getattr(current, field_name) or "(not set)")
        return 0

    value = args.value
    if field_name == "steam_id":
        value = _normalize_steam_id(value, current.api_key)
    resolver.set_config(**{field_name: value})
    print(f"{args.key} = {value}")
    return 0


def _load_complete_config(resolver: ConfigResolver) -> UserConfig | None:
    try:
        return require_complete(resolver.get_config())
    except MissingConfigError as exc:
        print(missing_config_message(exc.missing))
        return None


def _run_sync(db: Database, user_config: UserConfig) -> bool:
    service = SyncService(SteamWebAPI(user_config.api_key or ""), db)
    try:
        report = service.sync_all(user_config.steam_id)
    except FetchError as exc:
        logger.error("Owned-games request failed: %s", exc)
        print(f"Could not fetch your games from Steam ({exc}).")
        return False
    print(f"Synced {report.games} games and {report.achievements} achievements.")
    return True


def _cmd_sync(args: argparse.Namespace, db: Database, resolver: ConfigResolver) -> int:
    user_config = _load_complete_config(resolver)
    if user_config is None:
        return 1
    return 0 if _run_sync(db, user_config) else 1


def _format_achievement(ach: Achievement, game_names: Mapping[int, str]) -> str:
    mark = "x" if ach.achieved else " "
    game = game_names.get(ach.game_app_id, f"App {ach.game_app_id}")
    return f"[{mark}] {ach.display_name} ({game})"


def _cmd_pick(args: argparse.Namespace, db: Database, resolver: ConfigResolver) -> int:
    user_config = _load_complete_config(resolver)
    if user_config is None:
        return 1

    if args.sync or db.get_achievement_count() == 0:
        if not _run_sync(db, user_config):
            return 1

    if args.browse:
        game_names = {game.app_id: game.name for game in db.get_games()}
        achievements = list_achievements(db, unearned_only=args.unearned)
        if not achievements:
            if args.unearned:
                print("No locked achievements left.")
            else:
                print("No achievements stored yet. Run \"nesta sync\" first.")
            return 0
        for ach in achievements:
            print(_format_achievement(ach, game_names))
        return 0

    picked = pick_achievement(db)
    if picked is None:
        print("No suitable achievement found. Every synced achievement is already unlocked.")
        return 0

    game = db.get_game(picked.game_app_id)
    game_name = game.name if game is not None else None
    print(f"Your next achievement is: {picked.display_name}")
    if game_name:
        print(f"Game: {game_name}")
    if picked.description:
        print(picked.description)

    if args.explain:
        if not user_config.openrouter_api_key:
            print("Explanations need an OpenRouter key: nesta config openrouter.apiKey <key>")
        else:
            explanation = OpenRouterClient(user_config.openrouter_api_key).explain(picked, game_name)
            if explanation:
                print(f"Why: {explanation}")
            else:
                print("Why: no explanation available right now.")
    return 0


def _cmd_history(args: argparse.Namespace, db: Database) -> int:
    entries = db.get_pick_history(limit=args.limit)
    if not entries:
        print('No history yet. Tip: run "nesta pick" to choose an achievement, then it will appear here.')
        return 0
    for entry in entries:
        print(f"{format_datetime(entry.picked_at)} - {entry.label}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Builds the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="nesta",
        description="Track your Steam achievements and pick what to chase next.",
    )
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    config_parser = subparsers.add_parser("config", help="Read or set a configuration value")
    config_parser.add_argument("key", nargs="?", help=", ".join(CONFIG_KEYS))
    config_parser.add_argument("value", nargs="?", help="New value (omit to print the current one)")

    subparsers.add_parser("sync", help="Sync owned games and achievements from Steam")

    pick_parser = subparsers.add_parser("pick", help="Recommend the next achievement")
    pick_parser.add_argument("--explain", action="store_true", help="Ask a language model why")
    pick_parser.add_argument("--browse", action="store_true", help="List achievements instead of picking")
    pick_parser.add_argument("--unearned", action="store_true", help="With --browse, list only locked achievements")
    pick_parser.add_argument("--sync", action="store_true", help="Sync from Steam before picking")

    history_parser = subparsers.add_parser("history", help="Show recent picks")
    history_parser.add_argument("--limit", type=int, default=50, help="Number of entries (default: 50)")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Runs the CLI.

    Args:
        argv: Arguments without the program name, defaults to sys.argv[1:].

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True), override=False)
    settings = Settings.from_env()
    setup_logging(logging.DEBUG if args.verbose else settings.log_level, settings.LOG_FILE)

    if args.command is None:
        parser.print_help()
        return 0

    with Database(settings.DB_PATH) as db:
        resolver = ConfigResolver(db)
        if args.command == "config":
            return _cmd_config(args, resolver)
        if args.command == "sync":
            return _cmd_sync(args, db, resolver)
        if args.command == "pick":
            return _cmd_pick(args, db, resolver)
        return _cmd_history(args, db)


if __name__ == "__main__":
    sys.exit(main())
