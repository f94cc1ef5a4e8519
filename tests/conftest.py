# tests/conftest.py
from pathlib import Path
from typing import Generator

import pytest

from nesta.core.db import Database
from nesta.core.db.models import Achievement, Game

STEAM_ENV_VARS = (
    "STEAM_ID",
    "STEAMID64",
    "STEAM_ID64",
    "STEAM_STEAMID",
    "STEAM_API_KEY",
    "STEAM_WEB_API_KEY",
    "STEAMKEY",
    "OPENROUTER_API_KEY",
)


@pytest.fixture
def temp_db_path(tmp_path) -> Path:
    """Temporary SQLite database file path."""
    return tmp_path / "test_nesta.db"


@pytest.fixture
def database(temp_db_path) -> Generator[Database, None, None]:
    """Fresh Database on a temp file."""
    db = Database(temp_db_path)
    yield db
    db.close()


@pytest.fixture
def clean_env(monkeypatch) -> None:
    """Remove every Steam/OpenRouter variable the config resolver reads."""
    for name in STEAM_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sample_games() -> list[Game]:
    """Two owned games."""
    return [Game(app_id=440, name="Team Fortress 2"), Game(app_id=620, name="Portal 2")]


@pytest.fixture
def sample_achievements() -> list[Achievement]:
    """Achievements for two games: Portal 2 is 2/3 done, TF2 is 0/2."""
    return [
        Achievement(api_name="TF_PLAY_GAME", game_app_id=440, display_name="Ready for Duty"),
        Achievement(api_name="TF_WIN_MATCH", game_app_id=440, display_name="First Win"),
        Achievement(api_name="ACH_SURVIVE", game_app_id=620, display_name="Wake Up Call", achieved=True),
        Achievement(api_name="ACH_TOWER", game_app_id=620, display_name="You Monster", achieved=True),
        Achievement(
            api_name="ACH_END",
            game_app_id=620,
            display_name="Lunacy",
            description="That just happened.",
        ),
    ]
