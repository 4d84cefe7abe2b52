"""
TriviaCast - Telegram Trivia Broadcast Bot

Entry point for the application.

Usage:
    python -m triviacast.main                # Run the bot
    python -m triviacast.main --show-config  # Print effective trivia config
"""

import argparse
import asyncio
import signal
from pathlib import Path

from triviacast.config.logging import get_logger, setup_logging
from triviacast.config.settings import get_settings
from triviacast.database.migrations import initialize_database

logger = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="TriviaCast - Telegram trivia bot")
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the effective trivia config as JSON and exit",
    )
    return parser.parse_args()


async def show_config() -> None:
    """Print defaults merged with persisted overrides."""
    from triviacast.database.repository import close_repository, get_repository
    from triviacast.services.config_store import ConfigStore

    settings = get_settings()
    Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)
    await initialize_database(settings.database_path)
    repo = await get_repository(settings.database_path)

    try:
        config = await ConfigStore(repo, settings).load()
        print(config.model_dump_json(indent=2))
    finally:
        await close_repository()


def register_handlers(application) -> None:
    """Register all bot handlers."""
    from telegram.ext import ChatMemberHandler, CommandHandler

    from triviacast.bot.admin_handlers import trivia_command
    from triviacast.bot.handlers import (
        help_command,
        my_chat_member_handler,
        start_command,
        stop_command,
    )

    # Audience command handlers
    application.add_handler(CommandHandler("start", start_command))
    application.add_handler(CommandHandler("stop", stop_command))
    application.add_handler(CommandHandler("help", help_command))

    # Admin command handlers
    application.add_handler(CommandHandler("trivia", trivia_command))

    # Group membership tracking
    application.add_handler(
        ChatMemberHandler(my_chat_member_handler, ChatMemberHandler.MY_CHAT_MEMBER)
    )

    logger.info("Registered all handlers")


async def run_bot() -> None:
    """Initialize and run the bot."""
    from telegram import Update
    from telegram.ext import Application

    from triviacast.database.repository import close_repository
    from triviacast.services.scheduler import start_trivia, stop_trivia

    # Load settings (validates required env vars)
    settings = get_settings()

    # Set up logging
    setup_logging(settings.log_level)

    logger.info("Starting TriviaCast bot...")

    # Initialize database
    Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)
    await initialize_database(settings.database_path)
    logger.info("Database initialized")

    # Build application
    application = (
        Application.builder()
        .token(settings.telegram_bot_token)
        .build()
    )

    # Register handlers
    register_handlers(application)

    stop_event = asyncio.Event()

    # Set up signal handlers for graceful shutdown
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    async with application:
        await application.start()
        # my_chat_member updates are not delivered by default
        await application.updater.start_polling(
            drop_pending_updates=True,
            allowed_updates=Update.ALL_TYPES,
        )

        # Start the trivia loop once the bot can send messages
        try:
            await start_trivia(application)
            logger.info("Trivia started")
        except Exception as e:
            logger.error(f"Failed to start trivia: {e}")

        logger.info("Bot is running. Press Ctrl+C to stop.")

        # Wait until stop signal is received
        await stop_event.wait()

        # Graceful shutdown
        logger.info("Shutting down...")
        await stop_trivia()
        await application.updater.stop()
        await application.stop()

    await close_repository()
    logger.info("Bot stopped")


def main() -> None:
    """Entry point."""
    args = parse_args()

    # Config CLI mode - read and exit
    if args.show_config:
        asyncio.run(show_config())
        return

    asyncio.run(run_bot())


if __name__ == "__main__":
    main()
