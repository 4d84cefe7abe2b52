"""
Scheduler service for TriviaCast.

Runs delayed trivia continuations with APScheduler and owns the lifecycle
of the trivia runtime (queue, refill, audience, broadcaster, cycle loop).
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Coroutine, Optional, Protocol

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from telegram.ext import Application

from triviacast.config.logging import get_logger
from triviacast.config.settings import get_settings
from triviacast.database.repository import get_repository
from triviacast.services.audience import Audience
from triviacast.services.broadcaster import TelegramBroadcaster
from triviacast.services.config_store import ConfigStore
from triviacast.services.cycle_scheduler import CycleScheduler
from triviacast.services.question_queue import QuestionQueue
from triviacast.services.question_source import OpenTriviaClient
from triviacast.services.refill_coordinator import RefillCoordinator

logger = get_logger(__name__)

Continuation = Callable[..., Coroutine[Any, Any, None]]


class DelayedCalls(Protocol):
    """Timer abstraction used by the cycle scheduler."""

    def call_later(self, delay: float, callback: Continuation, *args: Any) -> None:
        """Run callback(*args) on the event loop after delay seconds."""


class APSchedulerDelays:
    """DelayedCalls backed by one-shot APScheduler date jobs."""

    def __init__(self, scheduler: AsyncIOScheduler) -> None:
        self._scheduler = scheduler

    def call_later(self, delay: float, callback: Continuation, *args: Any) -> None:
        run_date = datetime.now(timezone.utc) + timedelta(seconds=max(0.0, delay))
        self._scheduler.add_job(
            callback,
            DateTrigger(run_date=run_date),
            args=list(args),
            misfire_grace_time=None,
        )


# Global instances
_scheduler: AsyncIOScheduler | None = None
_trivia: CycleScheduler | None = None
_source: OpenTriviaClient | None = None


async def start_trivia(application: Application) -> CycleScheduler:
    """
    Build the trivia runtime and start the round loop.

    Performs an initial refill before starting, so the first round usually
    has a question ready.

    Args:
        application: Telegram bot application

    Returns:
        The started cycle scheduler
    """
    global _scheduler, _trivia, _source

    if _trivia is not None:
        logger.warning("Trivia already running")
        return _trivia

    settings = get_settings()
    repo = await get_repository(settings.database_path)

    config_store = ConfigStore(repo, settings)
    config = await config_store.load()

    audience = Audience(repo)
    await audience.load()

    queue = QuestionQueue()
    _source = OpenTriviaClient(settings.opentdb_url)
    coordinator = RefillCoordinator(
        queue,
        _source,
        audience,
        fetch_timeout=settings.fetch_timeout_seconds,
    )
    broadcaster = TelegramBroadcaster(application.bot, audience, config.chat_prefix)

    _scheduler = AsyncIOScheduler()
    _scheduler.start()

    _trivia = CycleScheduler(
        config=config,
        queue=queue,
        coordinator=coordinator,
        audience=audience,
        broadcaster=broadcaster,
        delays=APSchedulerDelays(_scheduler),
        config_store=config_store,
    )

    # Initial fetch, then start the loop if enabled
    coordinator.request_refill(config.amount, config.filters())
    await coordinator.wait_idle()
    _trivia.start()

    logger.info(
        f"Trivia loaded; start_enabled={config.start_enabled}, "
        f"queue={len(queue)}, audience={audience.count()}"
    )
    return _trivia


async def stop_trivia() -> None:
    """Stop the round loop, the scheduler, and the HTTP session."""
    global _scheduler, _trivia, _source

    if _trivia is not None:
        _trivia.shutdown()
        _trivia = None

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Scheduler stopped")

    if _source is not None:
        await _source.close()
        _source = None


def get_trivia_scheduler() -> Optional[CycleScheduler]:
    """Get the running cycle scheduler, or None before start_trivia."""
    return _trivia
