"""Configuration module for TriviaCast."""

from triviacast.config.constants import (
    CHOICE_LETTERS,
    OPENTDB_RESPONSE_CODES,
    Difficulty,
    Encoding,
    QuestionType,
)
from triviacast.config.logging import (
    get_broadcast_logger,
    get_logger,
    log_user_action,
    setup_logging,
)
from triviacast.config.settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Constants
    "CHOICE_LETTERS",
    "OPENTDB_RESPONSE_CODES",
    "Difficulty",
    "Encoding",
    "QuestionType",
    # Logging
    "setup_logging",
    "get_logger",
    "get_broadcast_logger",
    "log_user_action",
]
