"""
Tests for the single-flight refill coordinator.
"""

import asyncio
import random
from unittest.mock import AsyncMock

import pytest

from conftest import FakeAudience, make_record
from triviacast.services.question_queue import QuestionQueue
from triviacast.services.question_source import (
    QuestionFilters,
    QuestionSourceError,
    SourceBatch,
)
from triviacast.services.refill_coordinator import RefillCoordinator


def blocking_source(release: asyncio.Event, batch: SourceBatch) -> AsyncMock:
    """Source whose fetch waits for release before returning batch."""

    async def fetch(amount, filters):
        await release.wait()
        return batch

    source = AsyncMock()
    source.fetch = AsyncMock(side_effect=fetch)
    return source


def make_coordinator(source, audience=None, **kwargs) -> tuple[RefillCoordinator, QuestionQueue]:
    queue = QuestionQueue()
    coordinator = RefillCoordinator(
        queue,
        source,
        audience if audience is not None else FakeAudience({1}),
        rng=random.Random(7),
        **kwargs,
    )
    return coordinator, queue


class TestSingleFlight:
    """Tests for the at-most-one-outstanding-request gate."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_issue_one_fetch(self):
        """Test that many refill requests while fetching produce one fetch."""
        release = asyncio.Event()
        source = blocking_source(release, SourceBatch(0, [make_record()]))
        coordinator, queue = make_coordinator(source)

        tasks = [coordinator.request_refill(50, QuestionFilters()) for _ in range(10)]

        assert tasks[0] is not None
        assert tasks[1:] == [None] * 9
        assert coordinator.is_fetching

        release.set()
        await coordinator.wait_idle()

        assert source.fetch.await_count == 1
        assert len(queue) == 1
        assert not coordinator.is_fetching

    @pytest.mark.asyncio
    async def test_new_refill_allowed_after_completion(self):
        """Test that the gate reopens once a refill settles."""
        source = AsyncMock()
        source.fetch = AsyncMock(return_value=SourceBatch(0, [make_record()]))
        coordinator, queue = make_coordinator(source)

        await coordinator.request_refill(50, QuestionFilters())
        await coordinator.request_refill(50, QuestionFilters())

        assert source.fetch.await_count == 2
        assert len(queue) == 2

    @pytest.mark.asyncio
    async def test_empty_audience_skips_fetch(self):
        """Test that nothing is fetched while nobody is listening."""
        source = AsyncMock()
        coordinator, _ = make_coordinator(source, audience=FakeAudience())

        assert coordinator.request_refill(50, QuestionFilters()) is None
        assert not coordinator.is_fetching
        source.fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_inflight_releases_gate(self):
        """Test that a cancelled refill frees the gate and adds nothing."""
        release = asyncio.Event()
        source = blocking_source(release, SourceBatch(0, [make_record()]))
        coordinator, queue = make_coordinator(source)

        stale = coordinator.request_refill(50, QuestionFilters(category="9"))
        await asyncio.sleep(0)

        assert coordinator.cancel_inflight() is True
        assert not coordinator.is_fetching

        fresh = coordinator.request_refill(50, QuestionFilters(category="10"))
        assert fresh is not None
        assert coordinator.is_fetching

        await asyncio.wait({stale})
        assert stale.cancelled()
        # The cancelled task must not release the new owner's slot
        assert coordinator.is_fetching

        release.set()
        await coordinator.wait_idle()

        assert len(queue) == 1
        assert not coordinator.is_fetching

    def test_cancel_without_inflight(self):
        """Test that cancelling with nothing in flight is a no-op."""
        coordinator, _ = make_coordinator(AsyncMock())
        assert coordinator.cancel_inflight() is False


class TestRefillOutcomes:
    """Tests that the fetching flag clears on every outcome."""

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        """Test that a raising source adds nothing and clears the flag."""
        source = AsyncMock()
        source.fetch = AsyncMock(side_effect=QuestionSourceError("HTTP 503"))
        coordinator, queue = make_coordinator(source)

        added = await coordinator.request_refill(50, QuestionFilters())

        assert added == 0
        assert len(queue) == 0
        assert not coordinator.is_fetching
        assert coordinator.stats["failures"] == 1

    @pytest.mark.asyncio
    async def test_nonzero_status_code(self):
        """Test that a non-zero response code adds nothing."""
        source = AsyncMock()
        source.fetch = AsyncMock(return_value=SourceBatch(5, [make_record()]))
        coordinator, queue = make_coordinator(source)

        added = await coordinator.request_refill(50, QuestionFilters())

        assert added == 0
        assert len(queue) == 0
        assert not coordinator.is_fetching

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test that a hung fetch times out and clears the flag."""
        source = blocking_source(asyncio.Event(), SourceBatch(0, []))
        coordinator, queue = make_coordinator(source, fetch_timeout=0.01)

        added = await coordinator.request_refill(50, QuestionFilters())

        assert added == 0
        assert not coordinator.is_fetching
        assert coordinator.stats["failures"] == 1


class TestRecordHandling:
    """Tests for decoding and queueing records."""

    @pytest.mark.asyncio
    async def test_blank_records_skipped(self):
        """Test that 10 records with one blank question yield 9 questions."""
        records = [make_record(question=f"Question {i}?") for i in range(9)]
        records.insert(4, make_record(question=""))
        source = AsyncMock()
        source.fetch = AsyncMock(return_value=SourceBatch(0, records))
        coordinator, queue = make_coordinator(source)

        added = await coordinator.request_refill(50, QuestionFilters())

        assert added == 9
        texts = [queue.pop_front().text for _ in range(9)]
        assert texts == [f"Question {i}?" for i in range(9)]

    @pytest.mark.asyncio
    async def test_fault_keeps_earlier_questions(self):
        """Test that a malformed record stops the batch but keeps prior questions."""
        records = [
            make_record(question="First?"),
            make_record(question="Second?"),
            {"correct_answer": "no question field"},
            make_record(question="Never reached?"),
        ]
        source = AsyncMock()
        source.fetch = AsyncMock(return_value=SourceBatch(0, records))
        coordinator, queue = make_coordinator(source)

        added = await coordinator.request_refill(50, QuestionFilters())

        assert added == 2
        assert [queue.pop_front().text for _ in range(2)] == ["First?", "Second?"]
        assert queue.pop_front() is None
        assert not coordinator.is_fetching

    @pytest.mark.asyncio
    async def test_records_decoded_with_filter_encoding(self):
        """Test that base64 records are decoded before queueing."""
        records = [{
            "question": "MisyPT8=",  # 2+2=?
            "correct_answer": "NA==",  # 4
            "incorrect_answers": ["Mw==", "NQ=="],  # 3, 5
        }]
        source = AsyncMock()
        source.fetch = AsyncMock(return_value=SourceBatch(0, records))
        coordinator, queue = make_coordinator(source)

        await coordinator.request_refill(50, QuestionFilters(encoding="base64"))

        question = queue.pop_front()
        assert question.text == "2+2=?"
        assert question.correct_choice == "4"
        assert sorted(question.choices) == ["3", "4", "5"]

    @pytest.mark.asyncio
    async def test_non_object_record_keeps_earlier_questions(self):
        """Test that a non-object entry stops the batch after the valid ones."""
        records = [make_record(question="First?"), "garbage", make_record(question="Later?")]
        source = AsyncMock()
        source.fetch = AsyncMock(return_value=SourceBatch(0, records))
        coordinator, queue = make_coordinator(source)

        added = await coordinator.request_refill(50, QuestionFilters())

        assert added == 1
        assert queue.pop_front().text == "First?"
