"""
Database migrations for TriviaCast.

Handles schema creation and updates.
"""

import aiosqlite

from triviacast.config.logging import get_logger
from triviacast.database.models import ALL_TABLES, CREATE_INDEXES

logger = get_logger(__name__)

SCHEMA_VERSION = 1


async def initialize_database(db_path: str) -> None:
    """
    Initialize the database with all tables and indexes.

    Args:
        db_path: Path to the SQLite database file
    """
    logger.info(f"Initializing database at {db_path}")

    async with aiosqlite.connect(db_path) as db:
        # Create all tables
        for table_sql in ALL_TABLES:
            await db.execute(table_sql)

        # Create indexes
        for index_sql in CREATE_INDEXES:
            await db.execute(index_sql)

        await db.commit()

    await run_migrations(db_path)
    logger.info("Database initialized successfully")


async def get_schema_version(db: aiosqlite.Connection) -> int:
    """Get current schema version."""
    async with db.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
        return row[0] if row else 0


async def set_schema_version(db: aiosqlite.Connection, version: int) -> None:
    """Set schema version."""
    await db.execute(f"PRAGMA user_version = {int(version)}")


async def run_migrations(db_path: str) -> None:
    """
    Run any pending migrations.

    Args:
        db_path: Path to the SQLite database file
    """
    async with aiosqlite.connect(db_path) as db:
        current_version = await get_schema_version(db)

        # v1: initial schema, created by initialize_database
        if current_version < 1:
            await set_schema_version(db, 1)

        await db.commit()

    if current_version < SCHEMA_VERSION:
        logger.info(f"Migrated schema from v{current_version} to v{SCHEMA_VERSION}")
