"""
Tests for the APScheduler-backed timer and the trivia runtime lifecycle.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from conftest import make_record
from triviacast.database.migrations import initialize_database
from triviacast.database.repository import close_repository, get_repository
from triviacast.services import scheduler as trivia_runtime
from triviacast.services.config_store import TriviaConfig
from triviacast.services.question_source import SourceBatch
from triviacast.services.scheduler import (
    APSchedulerDelays,
    get_trivia_scheduler,
    start_trivia,
    stop_trivia,
)


async def wait_until(condition, timeout: float = 3.0) -> None:
    """Poll condition on the event loop until it holds or timeout expires."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not condition():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.02)


@pytest.fixture
def mock_settings(temp_db_path):
    """Create mock settings pointing at a temporary database."""
    settings = MagicMock()
    settings.database_path = temp_db_path
    settings.opentdb_url = "https://example.test/api.php"
    settings.fetch_timeout_seconds = 5.0
    settings.trivia_defaults.return_value = TriviaConfig(
        encoding="", chat_prefix=""
    ).model_dump()
    return settings


class TestAPSchedulerDelays:
    """Tests for running continuations as APScheduler jobs."""

    @pytest.mark.asyncio
    async def test_call_later_runs_coroutine_with_args(self):
        """Test that a coroutine continuation runs on the loop with its args."""
        scheduler = AsyncIOScheduler()
        scheduler.start()
        received = []

        async def continuation(generation, label):
            received.append((generation, label))

        try:
            APSchedulerDelays(scheduler).call_later(0, continuation, 7, "round")
            await wait_until(lambda: received)
        finally:
            scheduler.shutdown(wait=False)

        assert received == [(7, "round")]

    @pytest.mark.asyncio
    async def test_call_later_waits_for_delay(self):
        """Test that a delayed continuation has not run before its time."""
        scheduler = AsyncIOScheduler()
        scheduler.start()
        received = []

        async def continuation(generation):
            received.append(generation)

        try:
            APSchedulerDelays(scheduler).call_later(60, continuation, 1)
            await asyncio.sleep(0.1)
            assert received == []
            assert len(scheduler.get_jobs()) == 1
        finally:
            scheduler.shutdown(wait=False)


class TestTriviaLifecycle:
    """Tests for start_trivia/stop_trivia with a mocked bot."""

    @pytest.mark.asyncio
    async def test_start_broadcasts_and_stop_tears_down(self, mock_settings, temp_db_path):
        """Test that startup refills, the first round broadcasts, and shutdown cleans up."""
        await initialize_database(temp_db_path)
        repo = await get_repository(temp_db_path)
        await repo.add_audience_chat(-100200, title="Quiz Night", chat_type="group")

        source = MagicMock()
        source.fetch = AsyncMock(return_value=SourceBatch(0, [make_record()]))
        source.close = AsyncMock()
        application = MagicMock()
        application.bot.send_message = AsyncMock()

        try:
            with patch.object(trivia_runtime, "get_settings", return_value=mock_settings):
                with patch.object(trivia_runtime, "OpenTriviaClient", return_value=source):
                    trivia = await start_trivia(application)

                    assert get_trivia_scheduler() is trivia
                    assert trivia.running
                    source.fetch.assert_awaited_once()

                    await wait_until(lambda: application.bot.send_message.await_count > 0)

                    call = application.bot.send_message.await_args
                    assert call.kwargs["chat_id"] == -100200
                    assert call.kwargs["text"].startswith("Question: 2+2=?")
        finally:
            await stop_trivia()
            await close_repository()

        assert get_trivia_scheduler() is None
        assert not trivia.running
        source.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_start_twice_returns_running_instance(self, mock_settings, temp_db_path):
        """Test that a second start_trivia does not build a second runtime."""
        await initialize_database(temp_db_path)

        source = MagicMock()
        source.fetch = AsyncMock(return_value=SourceBatch(0, []))
        source.close = AsyncMock()

        try:
            with patch.object(trivia_runtime, "get_settings", return_value=mock_settings):
                with patch.object(trivia_runtime, "OpenTriviaClient", return_value=source):
                    first = await start_trivia(MagicMock())
                    second = await start_trivia(MagicMock())
        finally:
            await stop_trivia()
            await close_repository()

        assert first is second
        # Empty audience: no initial fetch
        source.fetch.assert_not_awaited()
