"""
Logging configuration for TriviaCast.

Application logs go to stdout. Everything broadcast to the audience is also
written to a separate operator console stream so it reads like the chat.
"""

import logging
import sys
from typing import Optional

# Operator console for everything broadcast to the audience
BROADCAST_LOGGER_NAME = "triviacast.broadcast"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
BROADCAST_FORMAT = "%(asctime)s | TRIVIA   | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "telegram", "apscheduler", "aiohttp")


def setup_logging(level: str = "INFO", console: bool = True) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console: Echo broadcasts to the operator console stream
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(numeric_level)
    stdout_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(stdout_handler)

    # Broadcasts get their own format and skip the root handler
    broadcast_logger = get_broadcast_logger()
    broadcast_logger.handlers.clear()
    broadcast_logger.propagate = False
    broadcast_logger.disabled = not console
    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(
            logging.Formatter(fmt=BROADCAST_FORMAT, datefmt=DATE_FORMAT)
        )
        broadcast_logger.addHandler(console_handler)
        broadcast_logger.setLevel(logging.INFO)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module (typically called with __name__)."""
    return logging.getLogger(name)


def get_broadcast_logger() -> logging.Logger:
    """Get the operator console logger that mirrors every broadcast."""
    return logging.getLogger(BROADCAST_LOGGER_NAME)


def log_user_action(
    logger: logging.Logger,
    user_id: int,
    action: str,
    chat_id: Optional[int] = None,
) -> None:
    """
    Log a command from a Telegram user.

    Args:
        logger: Logger instance
        user_id: Telegram user ID
        action: Command text (e.g., "/trivia enable")
        chat_id: Chat the command was sent in, when it matters
    """
    where = f" in {chat_id}" if chat_id is not None else ""
    logger.info(f"[{user_id}] >> {action}{where}")
