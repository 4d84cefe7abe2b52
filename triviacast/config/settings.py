"""
Configuration management for TriviaCast.

Loads settings from:
1. Environment variables (.env file) - secrets
2. config/config.json - application settings and trivia defaults

Supports ${ENV_VAR} substitution in JSON values.
"""

import json
import os
import re
from pathlib import Path
from typing import Any

from dotenv import load_dotenv


class Settings:
    """Application settings loaded from environment and config file."""

    def __init__(self) -> None:
        # Load .env file
        load_dotenv()

        # Load config.json
        self._config = self._load_config()

        # Required environment variables
        self.telegram_bot_token = self._require_env("TELEGRAM_BOT_TOKEN")

        # Optional environment variables with defaults
        self.database_path = os.getenv("DATABASE_PATH", "./data/triviacast.db")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        # Admin settings
        admin_config = self._config.get("admin", {})
        self.admin_users: list[int] = admin_config.get("admin_users", [])

        # Rate limiting for audience commands
        rate_config = self._config.get("rate_limit", {})
        self.requests_per_minute = rate_config.get("requests_per_minute", 10)

        # Trivia defaults (persisted overrides are layered on top by ConfigStore)
        trivia_config = self._config.get("trivia", {})
        self.opentdb_url = trivia_config.get(
            "opentdb_url", "https://opentdb.com/api.php"
        )
        self.trivia_amount = trivia_config.get("amount", 50)
        self.trivia_category = str(trivia_config.get("category", ""))
        self.trivia_difficulty = trivia_config.get("difficulty", "")
        self.trivia_question_type = trivia_config.get("question_type", "")
        self.trivia_encoding = trivia_config.get("encoding", "base64")
        self.answer_delay_seconds = trivia_config.get("answer_delay_seconds", 15)
        self.between_questions_delay_seconds = trivia_config.get(
            "between_questions_delay_seconds", 10
        )
        self.fetch_batch_size = trivia_config.get("fetch_batch_size", 50)
        self.chat_prefix = trivia_config.get("chat_prefix", "Trivia: ")
        self.start_enabled = self._get_env_bool(
            "TRIVIA_ENABLED", trivia_config.get("start_enabled", True)
        )
        self.fetch_timeout_seconds = float(
            trivia_config.get("fetch_timeout_seconds", 30)
        )

    def _require_env(self, name: str) -> str:
        """Get required environment variable or raise error."""
        value = os.getenv(name)
        if not value:
            raise ValueError(
                f"Required environment variable {name} is not set. "
                f"Please set it in your .env file."
            )
        return value

    def _get_env_bool(self, name: str, default: bool) -> bool:
        """Get boolean from environment variable."""
        value = os.getenv(name)
        if value is None:
            return default
        return value.lower() in ("true", "1", "yes")

    def _load_config(self) -> dict[str, Any]:
        """Load config.json with environment variable substitution."""
        config_path = Path(__file__).parent.parent.parent / "config" / "config.json"

        if not config_path.exists():
            return {}

        with open(config_path) as f:
            content = f.read()

        # Substitute ${ENV_VAR} patterns
        def replace_env_var(match: re.Match) -> str:
            var_name = match.group(1)
            return os.getenv(var_name, "")

        content = re.sub(r"\$\{(\w+)\}", replace_env_var, content)

        return json.loads(content)

    def is_admin(self, telegram_id: int) -> bool:
        """Check if a user may manage trivia."""
        return telegram_id in self.admin_users

    def trivia_defaults(self) -> dict[str, Any]:
        """Default trivia settings keyed by TriviaConfig field name."""
        return {
            "amount": self.trivia_amount,
            "category": self.trivia_category,
            "difficulty": self.trivia_difficulty,
            "question_type": self.trivia_question_type,
            "encoding": self.trivia_encoding,
            "answer_delay_seconds": self.answer_delay_seconds,
            "between_questions_delay_seconds": self.between_questions_delay_seconds,
            "fetch_batch_size": self.fetch_batch_size,
            "chat_prefix": self.chat_prefix,
            "start_enabled": self.start_enabled,
        }


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
