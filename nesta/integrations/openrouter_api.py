"""OpenRouter client for short pick explanations.

Asks a chat-completions model why a recommended achievement is a good
next target. Explanations are optional garnish: every failure is logged
and turned into None, never raised.
"""

from __future__ import annotations

import logging

import requests

from nesta.core.db.models import Achievement

logger = logging.getLogger("nesta.openrouter_api")

__all__ = ["OpenRouterClient"]

_TIMEOUT = 30


class OpenRouterClient:
    """Client for the OpenRouter chat-completions endpoint."""

    BASE_URL = "https://openrouter.ai/api/v1/chat/completions"
    DEFAULT_MODEL = "openai/gpt-4o-mini"

    def __init__(self, api_key: str, model: str | None = None) -> None:
        """Initializes the client with a configured session.

        Args:
            api_key: OpenRouter API key. Must not be empty.
            model: Model identifier, defaults to DEFAULT_MODEL.

        Raises:
            ValueError: If api_key is empty or whitespace-only.
        """
        if not api_key or not api_key.strip():
            raise ValueError("OpenRouter API key must not be empty")
        self.model = model or self.DEFAULT_MODEL
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key.strip()}",
                "Content-Type": "application/json",
                "X-Title": "nesta",
            }
        )

    @staticmethod
    def build_prompt(achievement: Achievement, game_name: str | None = None) -> str:
        """Builds the user prompt for one achievement."""
        lines = [
            "In two sentences, explain why this Steam achievement is a good next goal.",
            f"Game: {game_name or f'App {achievement.game_app_id}'}",
            f"Achievement: {achievement.display_name}",
        ]
        if achievement.description:
            lines.append(f"Description: {achievement.description}")
        return "\n".join(lines)

    def explain(self, achievement: Achievement, game_name: str | None = None) -> str | None:
        """Requests a short justification for picking ``achievement``.

        Args:
            achievement: The picked achievement.
            game_name: Name of the owning game, if known.

        Returns:
            The model's answer, or None on any failure or empty answer.
        """
        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": self.build_prompt(achievement, game_name)}],
            "temperature": 0.4,
        }
        try:
            response = self._session.post(self.BASE_URL, json=body, timeout=_TIMEOUT)
            if response.status_code != 200:
                logger.warning("OpenRouter: unexpected status %d", response.status_code)
                return None
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("OpenRouter request failed: %s", exc)
            return None

        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices or not isinstance(choices[0], dict):
            return None
        message = choices[0].get("message") or {}
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            return None
        return content.strip()
