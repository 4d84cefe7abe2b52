"""
Admin command handlers for TriviaCast.

Handles /trivia subcommands: loop control and configuration changes.
Arguments are validated here; nothing invalid reaches the config store.
"""

from dataclasses import asdict
from typing import Awaitable, Callable, Optional

from pydantic import ValidationError
from telegram import Update
from telegram.ext import ContextTypes

from triviacast.bot import messages
from triviacast.bot.middleware import admin_middleware
from triviacast.config.constants import (
    format_filter_value,
    normalize_category,
    normalize_difficulty,
    normalize_encoding,
    normalize_question_type,
)
from triviacast.config.logging import get_logger, log_user_action
from triviacast.services.cycle_scheduler import CycleScheduler
from triviacast.services.scheduler import get_trivia_scheduler

logger = get_logger(__name__)

Subcommand = Callable[[CycleScheduler, list[str]], Awaitable[str]]


def parse_int_arg(arg: str) -> Optional[int]:
    """Parse an integer argument, returning None if it isn't one."""
    try:
        return int(arg)
    except ValueError:
        return None


async def _save(trivia: CycleScheduler, **changes) -> Optional[str]:
    """
    Persist config changes.

    Returns:
        An error reply, or None on success
    """
    if trivia.config_store is None:
        return "Trivia configuration storage is unavailable."
    try:
        await trivia.config_store.update(**changes)
    except ValidationError as e:
        logger.warning(f"Rejected trivia config change {changes}: {e}")
        return f"Invalid value: {e.errors()[0]['msg']}"
    return None


# =============================================================================
# Loop Control
# =============================================================================


async def enable_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    trivia.enable()
    return "Trivia enabled."


async def disable_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    trivia.disable()
    return "Trivia disabled."


async def status_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    return messages.format_status(asdict(trivia.status()))


async def reload_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    await trivia.reload(filters_changed=True)
    return "Trivia config reloaded."


async def now_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if not trivia.trigger_now():
        return "Trivia is disabled. Use /trivia enable first."
    return "Triggered next trivia cycle (reset loop)."


async def config_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    return messages.format_config(trivia.config, trivia.enabled)


# =============================================================================
# Configuration
# =============================================================================


async def amount_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if not args:
        return "Usage: /trivia amount <number>"

    amount = parse_int_arg(args[0])
    if amount is None:
        return f"Invalid number: {args[0]}"
    if amount < 1:
        return "Amount must be >= 1."

    if error := await _save(trivia, amount=amount):
        return error
    await trivia.reload(filters_changed=True)
    return f"Set amount to {amount}."


async def category_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if not args:
        return "Usage: /trivia category <id|any>"

    try:
        category = normalize_category(args[0])
    except ValueError as e:
        return str(e)

    if error := await _save(trivia, category=category):
        return error
    await trivia.reload(filters_changed=True)
    return f"Set category to {format_filter_value(category)}."


async def difficulty_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if not args:
        return "Usage: /trivia difficulty <easy|medium|hard|any>"

    try:
        difficulty = normalize_difficulty(args[0])
    except ValueError as e:
        return str(e)

    if error := await _save(trivia, difficulty=difficulty):
        return error
    await trivia.reload(filters_changed=True)
    return f"Set difficulty to {format_filter_value(difficulty)}."


async def type_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if not args:
        return "Usage: /trivia type <multiple|boolean|any>"

    try:
        question_type = normalize_question_type(args[0])
    except ValueError as e:
        return str(e)

    if error := await _save(trivia, question_type=question_type):
        return error
    await trivia.reload(filters_changed=True)
    return f"Set question type to {format_filter_value(question_type)}."


async def encode_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if not args:
        return "Usage: /trivia encode <base64|url3986|urlLegacy|default>"

    try:
        encoding = normalize_encoding(args[0])
    except ValueError as e:
        return str(e)

    if error := await _save(trivia, encoding=encoding):
        return error
    await trivia.reload(filters_changed=True)
    return f"Set encode to {encoding or 'default'}."


async def delay_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /trivia delay <answerSeconds> <betweenSeconds>"

    answer_seconds = parse_int_arg(args[0])
    between_seconds = parse_int_arg(args[1])
    if answer_seconds is None or between_seconds is None:
        return f"Invalid numbers: {args[0]} {args[1]}"
    if answer_seconds < 1 or between_seconds < 0:
        return "answerSeconds must be >=1 and betweenSeconds >=0."

    if error := await _save(
        trivia,
        answer_delay_seconds=answer_seconds,
        between_questions_delay_seconds=between_seconds,
    ):
        return error
    await trivia.reload(filters_changed=False)
    return f"Set delays: answer={answer_seconds}s, between={between_seconds}s."


async def fetchbatch_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if not args:
        return "Usage: /trivia fetchbatch <number>"

    batch_size = parse_int_arg(args[0])
    if batch_size is None:
        return f"Invalid number: {args[0]}"
    if batch_size < 1:
        return "fetch_batch_size must be >=1."

    if error := await _save(trivia, fetch_batch_size=batch_size):
        return error
    trivia.apply_config(await trivia.config_store.load())
    return f"Set fetch_batch_size to {batch_size}."


async def prefix_subcommand(trivia: CycleScheduler, args: list[str]) -> str:
    if not args:
        return "Usage: /trivia prefix <chat prefix text>"

    # Keep a separator between the prefix and the broadcast text
    prefix = " ".join(args) + " "

    if error := await _save(trivia, chat_prefix=prefix):
        return error
    trivia.apply_config(await trivia.config_store.load())
    return f'Set chat prefix to: "{prefix}"'


SUBCOMMANDS: dict[str, Subcommand] = {
    "enable": enable_subcommand,
    "disable": disable_subcommand,
    "status": status_subcommand,
    "reload": reload_subcommand,
    "now": now_subcommand,
    "config": config_subcommand,
    "amount": amount_subcommand,
    "category": category_subcommand,
    "difficulty": difficulty_subcommand,
    "type": type_subcommand,
    "encode": encode_subcommand,
    "delay": delay_subcommand,
    "fetchbatch": fetchbatch_subcommand,
    "prefix": prefix_subcommand,
}


@admin_middleware
async def trivia_command(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Handle /trivia command - dispatch to a subcommand."""
    if not update.effective_user or not update.message:
        return

    args = context.args or []
    log_user_action(logger, update.effective_user.id, f"/trivia {' '.join(args)}")

    trivia = get_trivia_scheduler()
    if trivia is None:
        await update.message.reply_text("Trivia is still starting up. Try again shortly.")
        return

    subcommand = SUBCOMMANDS.get(args[0].lower()) if args else None
    if subcommand is None:
        await update.message.reply_text(messages.format_admin_usage())
        return

    reply = await subcommand(trivia, args[1:])
    await update.message.reply_text(reply)
