"""
Question queue refill for TriviaCast.

Keeps the question queue supplied from the question source without ever
issuing overlapping requests. A refill is a single asyncio task on the bot's
event loop, so queue appends never race the cycle scheduler.
"""

import asyncio
import random
from typing import TYPE_CHECKING, Any, Optional

from triviacast.config.constants import OPENTDB_RESPONSE_CODES, OPENTDB_SUCCESS
from triviacast.config.logging import get_logger
from triviacast.services.question import build_question
from triviacast.services.question_queue import QuestionQueue
from triviacast.services.question_source import (
    QuestionFilters,
    SourceRecord,
    decode_text,
)

if TYPE_CHECKING:
    from triviacast.services.audience import Audience
    from triviacast.services.question_source import OpenTriviaClient

logger = get_logger(__name__)


class RefillCoordinator:
    """
    Single-flight refill of the question queue.

    The in-flight task slot is the fetching flag: a refill is claimed by
    storing its task, synchronously, with no await between the check and the
    claim. The slot is released in the task's finally block, but only by the
    task that still owns it.
    """

    DEFAULT_FETCH_TIMEOUT = 30.0

    def __init__(
        self,
        queue: QuestionQueue,
        source: "OpenTriviaClient",
        audience: "Audience",
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._queue = queue
        self._source = source
        self._audience = audience
        self.fetch_timeout = fetch_timeout
        self._rng = rng or random.Random()
        self._inflight: Optional[asyncio.Task] = None

        # Running totals for /trivia status
        self.stats: dict[str, Any] = {
            "requests": 0,
            "added": 0,
            "failures": 0,
        }

    @property
    def is_fetching(self) -> bool:
        """True while a refill request is outstanding."""
        return self._inflight is not None

    def request_refill(
        self,
        amount: int,
        filters: QuestionFilters,
    ) -> Optional[asyncio.Task]:
        """
        Start a refill unless one is already in flight.

        Must be called from the event loop. Callers are not expected to await
        the returned task.

        Args:
            amount: Number of questions to request
            filters: Filters forwarded to the source

        Returns:
            The refill task, or None if skipped (no audience or already fetching)
        """
        if self._audience.is_empty():
            logger.debug("Skipping refill: audience is empty")
            return None

        if self._inflight is not None:
            return None

        task = asyncio.get_running_loop().create_task(
            self._refill(amount, filters),
            name="trivia-refill",
        )
        self._inflight = task
        self.stats["requests"] += 1
        return task

    def cancel_inflight(self) -> bool:
        """
        Abandon the outstanding refill, if any.

        The gate is released immediately so a refill with new filters can be
        claimed right away; the cancelled task adds nothing to the queue.

        Returns:
            True if a refill was cancelled
        """
        task = self._inflight
        if task is None:
            return False

        self._inflight = None
        task.cancel()
        logger.info("Cancelled in-flight trivia refill")
        return True

    async def wait_idle(self) -> None:
        """Wait for the outstanding refill, if any, to settle."""
        task = self._inflight
        if task is not None:
            await asyncio.wait({task})

    async def _refill(self, amount: int, filters: QuestionFilters) -> int:
        """Fetch one batch and append the valid questions. Returns count added."""
        try:
            try:
                batch = await asyncio.wait_for(
                    self._source.fetch(amount, filters),
                    timeout=self.fetch_timeout,
                )
            except asyncio.TimeoutError:
                self.stats["failures"] += 1
                logger.warning(
                    f"Trivia fetch timed out after {self.fetch_timeout:.0f}s "
                    f"(no questions added)"
                )
                return 0
            except Exception as e:
                self.stats["failures"] += 1
                logger.warning(f"Failed to fetch trivia: {e}")
                return 0

            if batch.status_code != OPENTDB_SUCCESS:
                self.stats["failures"] += 1
                meaning = OPENTDB_RESPONSE_CODES.get(batch.status_code, "unknown")
                logger.warning(
                    f"Open Trivia DB response_code={batch.status_code} "
                    f"({meaning}); no questions added"
                )
                return 0

            added = self._enqueue_records(batch.records, filters.encoding)
            self.stats["added"] += added
            logger.info(f"Fetched {added} questions (queue={len(self._queue)})")
            return added
        finally:
            if self._inflight is asyncio.current_task():
                self._inflight = None

    def _enqueue_records(self, records: list[Any], encoding: str) -> int:
        """
        Decode records in source order and append the usable ones.

        A fault aborts the rest of the batch; questions appended before the
        fault are kept.
        """
        added = 0
        skipped = 0

        try:
            for raw in records:
                record = SourceRecord.model_validate(raw)
                question = build_question(
                    text=decode_text(record.question, encoding),
                    correct=decode_text(record.correct_answer, encoding),
                    incorrect=[
                        decode_text(answer, encoding)
                        for answer in record.incorrect_answers
                    ],
                    rng=self._rng,
                )
                if question is None:
                    skipped += 1
                    continue

                self._queue.push_back(question)
                added += 1
        except Exception as e:
            self.stats["failures"] += 1
            logger.warning(
                f"Error parsing trivia after {added} of {len(records)} records: {e}"
            )

        if skipped:
            logger.debug(f"Skipped {skipped} unusable trivia records")

        return added
