"""
Broadcast channel for TriviaCast.

Sends trivia lines to every audience chat and mirrors them to the operator
console log.
"""

import asyncio
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from telegram.error import Forbidden, TelegramError

from triviacast.config.logging import get_broadcast_logger, get_logger

if TYPE_CHECKING:
    from telegram import Bot

    from triviacast.services.audience import Audience

logger = get_logger(__name__)
console = get_broadcast_logger()


class TelegramBroadcaster:
    """Fan-out of trivia messages to all audience chats."""

    # Telegram allows ~30 messages/second, use 50ms (20/sec) to be safe
    SEND_INTERVAL_SECONDS = 0.05

    def __init__(
        self,
        bot: "Bot",
        audience: "Audience",
        prefix: str = "",
    ) -> None:
        self.bot = bot
        self.audience = audience
        self.prefix = prefix

    def render(self, lines: Sequence[str]) -> str:
        """Join lines into one message with the chat prefix on top."""
        return self.prefix + "\n".join(lines)

    async def send(
        self,
        lines: Sequence[str],
        still_current: Optional[Callable[[], bool]] = None,
    ) -> int:
        """
        Send lines as a single message to every audience chat.

        Args:
            lines: Message lines, in display order
            still_current: Checked before each chat; once it returns False
                the remaining chats are skipped

        Returns:
            Number of chats the message was delivered to
        """
        chat_ids = self.audience.chat_ids()
        if not chat_ids:
            return 0

        text = self.render(lines)
        console.info(text.replace("\n", " | "))

        delivered = 0
        for index, chat_id in enumerate(chat_ids):
            if index:
                await asyncio.sleep(self.SEND_INTERVAL_SECONDS)
            if still_current is not None and not still_current():
                logger.debug(
                    f"Broadcast superseded after {index} of {len(chat_ids)} chats"
                )
                break
            try:
                await self.bot.send_message(chat_id=chat_id, text=text)
                delivered += 1
            except Forbidden as e:
                # Bot was blocked or removed from the chat
                logger.info(f"Dropping chat {chat_id} from audience: {e}")
                await self.audience.remove(chat_id)
            except TelegramError as e:
                logger.warning(f"Failed to broadcast to {chat_id}: {e}")

        return delivered
