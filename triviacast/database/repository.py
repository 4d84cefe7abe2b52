"""
Database repository for TriviaCast.

All database operations are centralized here.
"""

import json
from typing import Any, Optional

import aiosqlite

from triviacast.config.logging import get_logger

logger = get_logger(__name__)


class Repository:
    """Async database repository for all data operations."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Open database connection."""
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Get active connection."""
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    # =========================================================================
    # Trivia Settings
    # =========================================================================

    async def get_setting(self, key: str) -> Any:
        """Get a persisted setting value, or None if it was never set."""
        async with self.db.execute(
            "SELECT value FROM trivia_settings WHERE key = ?",
            (key,),
        ) as cursor:
            row = await cursor.fetchone()
            return json.loads(row["value"]) if row else None

    async def get_all_settings(self) -> dict[str, Any]:
        """Get all persisted settings as a dict."""
        async with self.db.execute(
            "SELECT key, value FROM trivia_settings"
        ) as cursor:
            rows = await cursor.fetchall()

        settings: dict[str, Any] = {}
        for row in rows:
            try:
                settings[row["key"]] = json.loads(row["value"])
            except json.JSONDecodeError:
                logger.warning(f"Ignoring unreadable setting {row['key']!r}")
        return settings

    async def set_setting(self, key: str, value: Any) -> None:
        """Insert or replace a persisted setting."""
        await self.db.execute(
            """
            INSERT INTO trivia_settings (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            (key, json.dumps(value)),
        )
        await self.db.commit()

    async def set_settings(self, values: dict[str, Any]) -> None:
        """Persist several settings in one transaction."""
        if not values:
            return

        await self.db.executemany(
            """
            INSERT INTO trivia_settings (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = CURRENT_TIMESTAMP
            """,
            [(key, json.dumps(value)) for key, value in values.items()],
        )
        await self.db.commit()

    # =========================================================================
    # Audience
    # =========================================================================

    async def add_audience_chat(
        self,
        chat_id: int,
        title: Optional[str] = None,
        chat_type: Optional[str] = None,
    ) -> bool:
        """
        Add a chat to the audience.

        Returns:
            True if the chat was newly added, False if it was already present
        """
        cursor = await self.db.execute(
            """
            INSERT OR IGNORE INTO audience_chats (chat_id, title, chat_type)
            VALUES (?, ?, ?)
            """,
            (chat_id, title, chat_type),
        )
        await self.db.commit()

        added = cursor.rowcount > 0
        if added:
            logger.info(f"Added chat {chat_id} to audience")
        return added

    async def remove_audience_chat(self, chat_id: int) -> bool:
        """Remove a chat from the audience. Returns True if it was present."""
        cursor = await self.db.execute(
            "DELETE FROM audience_chats WHERE chat_id = ?",
            (chat_id,),
        )
        await self.db.commit()

        removed = cursor.rowcount > 0
        if removed:
            logger.info(f"Removed chat {chat_id} from audience")
        return removed

    async def get_audience_chats(self) -> list[dict[str, Any]]:
        """Get all audience chats, oldest first."""
        async with self.db.execute(
            "SELECT * FROM audience_chats ORDER BY joined_at, chat_id"
        ) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def get_audience_count(self) -> int:
        """Get number of audience chats."""
        async with self.db.execute(
            "SELECT COUNT(*) FROM audience_chats"
        ) as cursor:
            row = await cursor.fetchone()
            return row[0] if row else 0


# Global repository instance
_repository: Optional[Repository] = None


async def get_repository(db_path: str) -> Repository:
    """Get or create the global repository instance."""
    global _repository
    if _repository is None:
        _repository = Repository(db_path)
        await _repository.connect()
    return _repository


async def close_repository() -> None:
    """Close the global repository instance if open."""
    global _repository
    if _repository is not None:
        await _repository.close()
        _repository = None
