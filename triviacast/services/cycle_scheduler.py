"""
Trivia cycle scheduler for TriviaCast.

Drives the repeating question -> answer -> pause rounds. Every delayed
continuation carries the generation it was scheduled under; stop, start,
restart and trigger-now bump the generation, so continuations from a
superseded epoch find a mismatch on entry and do nothing. Nothing is ever
cancelled by handle.

All methods run on the bot's event loop. Continuations are coroutine
functions so the delayed-call timer runs them on that same loop.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from triviacast.bot.messages import format_answer_line, format_question_lines
from triviacast.config.logging import get_logger
from triviacast.services.question import Question
from triviacast.services.question_queue import QuestionQueue

if TYPE_CHECKING:
    from triviacast.services.audience import Audience
    from triviacast.services.broadcaster import TelegramBroadcaster
    from triviacast.services.config_store import ConfigStore, TriviaConfig
    from triviacast.services.refill_coordinator import RefillCoordinator
    from triviacast.services.scheduler import DelayedCalls

logger = get_logger(__name__)


class LoopState(str, Enum):
    """Whether the round loop is running."""

    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class SchedulerStatus:
    """Snapshot for /trivia status."""

    enabled: bool
    running: bool
    generation: int
    queue_size: int
    fetching: bool
    audience: int
    refill_requests: int = 0
    questions_fetched: int = 0
    fetch_failures: int = 0


class CycleScheduler:
    """
    Generation-gated state machine for trivia rounds.

    Also the control surface the command layer talks to: enable, disable,
    reload, trigger_now and status.
    """

    # Wait while nobody is listening
    IDLE_POLL_SECONDS = 10
    # Wait while the queue is empty
    STARVATION_POLL_SECONDS = 5

    def __init__(
        self,
        config: "TriviaConfig",
        queue: QuestionQueue,
        coordinator: "RefillCoordinator",
        audience: "Audience",
        broadcaster: "TelegramBroadcaster",
        delays: "DelayedCalls",
        config_store: Optional["ConfigStore"] = None,
    ) -> None:
        self.queue = queue
        self.coordinator = coordinator
        self.audience = audience
        self.broadcaster = broadcaster
        self.config_store = config_store
        self._delays = delays

        self.enabled = config.start_enabled
        self.state = LoopState.STOPPED
        self.generation = 0

        self.config = config
        self.apply_config(config)

    # =========================================================================
    # State transitions
    # =========================================================================

    @property
    def running(self) -> bool:
        return self.state is LoopState.RUNNING

    def is_current(self, generation: int) -> bool:
        """True if a continuation from this generation may still act."""
        return (
            self.enabled
            and self.state is LoopState.RUNNING
            and generation == self.generation
        )

    def start(self) -> bool:
        """
        Start the loop if enabled and stopped.

        Returns:
            True if a new epoch was started
        """
        if not self.enabled or self.running:
            return False

        self._begin_epoch()
        logger.info(f"Trivia loop started (generation {self.generation})")
        return True

    def stop(self) -> None:
        """Stop the loop, invalidating every pending continuation."""
        self.state = LoopState.STOPPED
        self.generation += 1
        logger.debug(f"Trivia loop stopped (generation {self.generation})")

    def restart(self, fetch_immediately: bool) -> None:
        """
        Restart from a fresh epoch with an empty queue.

        Used when the question filters or delays change, and when the
        audience goes from empty to non-empty.

        Args:
            fetch_immediately: Drop any in-flight refill and fetch a new batch
        """
        self.stop()
        self.queue.clear()

        if fetch_immediately:
            self.coordinator.cancel_inflight()
            self.coordinator.request_refill(self.config.amount, self.config.filters())

        if self.enabled:
            self._begin_epoch()
            logger.info(f"Trivia loop restarted (generation {self.generation})")
        else:
            logger.info("Trivia loop reset while disabled; staying stopped")

    def trigger_now(self) -> bool:
        """
        Abandon the round in flight and run the next one immediately.

        Returns:
            False if trivia is disabled
        """
        if not self.enabled:
            return False

        self._begin_epoch()
        logger.info(f"Triggered trivia round (generation {self.generation})")
        return True

    def _begin_epoch(self) -> None:
        self.state = LoopState.RUNNING
        self.generation += 1
        self._delays.call_later(0, self.run_round, self.generation)

    # =========================================================================
    # Rounds
    # =========================================================================

    async def run_round(self, generation: int) -> None:
        """Ask the next question, or wait for an audience or a refill."""
        if not self.is_current(generation):
            return

        if self.audience.is_empty():
            self._delays.call_later(self.IDLE_POLL_SECONDS, self.run_round, generation)
            return

        config = self.config
        if len(self.queue) < config.low_water_mark and not self.coordinator.is_fetching:
            self.coordinator.request_refill(config.amount, config.filters())

        question = self.queue.pop_front()
        if question is None:
            logger.debug("Question queue empty; waiting for refill")
            self._delays.call_later(
                self.STARVATION_POLL_SECONDS, self.run_round, generation
            )
            return

        await self.broadcaster.send(
            format_question_lines(question),
            still_current=lambda: self.is_current(generation),
        )

        # Superseded while broadcasting
        if not self.is_current(generation):
            return

        self._delays.call_later(
            config.answer_delay_seconds, self._reveal_answer, generation, question
        )

    async def _reveal_answer(self, generation: int, question: Question) -> None:
        if not self.is_current(generation):
            return

        if not self.audience.is_empty():
            await self.broadcaster.send(
                [format_answer_line(question)],
                still_current=lambda: self.is_current(generation),
            )
            if not self.is_current(generation):
                return

        self._delays.call_later(
            self.config.between_questions_delay_seconds, self._next_round, generation
        )

    async def _next_round(self, generation: int) -> None:
        if not self.is_current(generation):
            return
        await self.run_round(generation)

    # =========================================================================
    # Control surface
    # =========================================================================

    def enable(self) -> bool:
        """Enable trivia and start the loop. Returns True if it started."""
        self.enabled = True
        return self.start()

    def disable(self) -> None:
        """Disable trivia and stop the loop."""
        self.enabled = False
        self.stop()

    def apply_config(self, config: "TriviaConfig") -> None:
        """Take a new config snapshot without restarting the loop."""
        self.config = config
        self.broadcaster.prefix = config.chat_prefix

    async def reload(self, filters_changed: bool = True) -> "TriviaConfig":
        """
        Re-read configuration and restart under it.

        Args:
            filters_changed: Whether the new config changes which questions
                are fetched (forces a refetch)

        Returns:
            The config now in effect
        """
        if self.config_store is not None:
            self.apply_config(await self.config_store.load())

        if self.enabled:
            self.restart(fetch_immediately=filters_changed)
        else:
            self.queue.clear()
            self.coordinator.cancel_inflight()
            self.stop()

        return self.config

    def on_audience_arrived(self) -> None:
        """Restart fresh when the first chat joins the audience."""
        if not self.enabled:
            return
        logger.info("First audience chat joined; restarting trivia loop fresh")
        self.restart(fetch_immediately=True)

    def status(self) -> SchedulerStatus:
        return SchedulerStatus(
            enabled=self.enabled,
            running=self.running,
            generation=self.generation,
            queue_size=len(self.queue),
            fetching=self.coordinator.is_fetching,
            audience=self.audience.count(),
            refill_requests=self.coordinator.stats["requests"],
            questions_fetched=self.coordinator.stats["added"],
            fetch_failures=self.coordinator.stats["failures"],
        )

    def shutdown(self) -> None:
        """Stop the loop and drop buffered and in-flight questions."""
        self.stop()
        self.queue.clear()
        self.coordinator.cancel_inflight()
        logger.info("Trivia loop shut down")
