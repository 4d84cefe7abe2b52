"""
Audience membership for TriviaCast.

The audience is the set of chats that receive broadcasts. It is kept in
memory for the scheduler's round-boundary checks and persisted through the
repository so it survives restarts.
"""

from typing import Optional

from triviacast.config.logging import get_logger
from triviacast.database.repository import Repository

logger = get_logger(__name__)


class Audience:
    """Chats currently subscribed to trivia broadcasts."""

    def __init__(self, repo: Repository) -> None:
        self._repo = repo
        self._chat_ids: set[int] = set()

    async def load(self) -> int:
        """Load persisted audience chats. Returns the number loaded."""
        chats = await self._repo.get_audience_chats()
        self._chat_ids = {chat["chat_id"] for chat in chats}
        logger.info(f"Loaded {len(self._chat_ids)} audience chats")
        return len(self._chat_ids)

    def is_empty(self) -> bool:
        return not self._chat_ids

    def count(self) -> int:
        return len(self._chat_ids)

    def chat_ids(self) -> list[int]:
        """Snapshot of audience chat IDs, safe to iterate across awaits."""
        return sorted(self._chat_ids)

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._chat_ids

    async def add(
        self,
        chat_id: int,
        title: Optional[str] = None,
        chat_type: Optional[str] = None,
    ) -> bool:
        """
        Subscribe a chat.

        Returns:
            True if this chat made the audience go from empty to non-empty
        """
        was_empty = self.is_empty()
        await self._repo.add_audience_chat(chat_id, title=title, chat_type=chat_type)
        self._chat_ids.add(chat_id)
        return was_empty and not self.is_empty()

    async def remove(self, chat_id: int) -> bool:
        """Unsubscribe a chat. Returns True if it was subscribed."""
        await self._repo.remove_audience_chat(chat_id)
        if chat_id not in self._chat_ids:
            return False
        self._chat_ids.discard(chat_id)
        return True
