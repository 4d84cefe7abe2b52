"""
Audience command handlers for TriviaCast.

Chats opt in with /start and out with /stop. Groups are also tracked
automatically when the bot is added or removed.
"""

from telegram import ChatMember, ChatMemberUpdated, Update
from telegram.ext import ContextTypes

from triviacast.bot import messages
from triviacast.bot.middleware import rate_limit_middleware
from triviacast.config.logging import get_logger, log_user_action
from triviacast.services.scheduler import get_trivia_scheduler

logger = get_logger(__name__)

_PRESENT_STATUSES = {
    ChatMember.MEMBER,
    ChatMember.ADMINISTRATOR,
    ChatMember.OWNER,
}


async def subscribe_chat(chat_id: int, title: str | None, chat_type: str | None) -> bool:
    """
    Add a chat to the trivia audience.

    Restarts the loop fresh when this is the first chat.

    Returns:
        False if trivia isn't running yet or the chat was already subscribed
    """
    trivia = get_trivia_scheduler()
    if trivia is None:
        logger.warning(f"Trivia not running; cannot subscribe chat {chat_id}")
        return False

    if chat_id in trivia.audience:
        return False

    became_non_empty = await trivia.audience.add(chat_id, title=title, chat_type=chat_type)
    if became_non_empty:
        trivia.on_audience_arrived()
    return True


async def unsubscribe_chat(chat_id: int) -> bool:
    """Remove a chat from the trivia audience."""
    trivia = get_trivia_scheduler()
    if trivia is None:
        return False
    return await trivia.audience.remove(chat_id)


@rate_limit_middleware()
async def start_command(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Handle /start command - subscribe this chat to trivia."""
    if not update.effective_user or not update.effective_chat or not update.message:
        return

    chat = update.effective_chat
    log_user_action(logger, update.effective_user.id, "/start", chat_id=chat.id)

    if await subscribe_chat(chat.id, chat.title or chat.username, chat.type):
        await update.message.reply_text(messages.format_subscribed_message())
    else:
        await update.message.reply_text(messages.format_already_subscribed_message())


@rate_limit_middleware()
async def stop_command(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Handle /stop command - unsubscribe this chat from trivia."""
    if not update.effective_user or not update.effective_chat or not update.message:
        return

    chat_id = update.effective_chat.id
    log_user_action(logger, update.effective_user.id, "/stop", chat_id=chat_id)

    await unsubscribe_chat(chat_id)
    await update.message.reply_text(messages.format_unsubscribed_message())


@rate_limit_middleware()
async def help_command(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Handle /help command."""
    if not update.effective_user or not update.message:
        return

    log_user_action(logger, update.effective_user.id, "/help")
    await update.message.reply_text(messages.format_help_message())


async def my_chat_member_handler(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Track groups the bot is added to or removed from."""
    change: ChatMemberUpdated | None = update.my_chat_member
    if change is None:
        return

    chat = change.chat
    if chat.type == "private":
        return

    was_present = change.old_chat_member.status in _PRESENT_STATUSES
    is_present = change.new_chat_member.status in _PRESENT_STATUSES

    if is_present and not was_present:
        logger.info(f"Bot added to {chat.type} {chat.id} ({chat.title})")
        await subscribe_chat(chat.id, chat.title, chat.type)
    elif was_present and not is_present:
        logger.info(f"Bot removed from {chat.type} {chat.id} ({chat.title})")
        await unsubscribe_chat(chat.id)
