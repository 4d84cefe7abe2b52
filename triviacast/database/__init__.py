"""Database module for TriviaCast."""

from triviacast.database.migrations import initialize_database, run_migrations
from triviacast.database.repository import (
    Repository,
    close_repository,
    get_repository,
)

__all__ = [
    "Repository",
    "close_repository",
    "get_repository",
    "initialize_database",
    "run_migrations",
]
