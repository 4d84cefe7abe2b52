"""
Pytest fixtures for TriviaCast tests.
"""

import os
import tempfile
from typing import Any, AsyncGenerator, Generator, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Set test environment variables before importing settings
os.environ["TELEGRAM_BOT_TOKEN"] = "test_token_12345"
os.environ.pop("TRIVIA_ENABLED", None)


@pytest.fixture
def temp_db_path() -> Generator[str, None, None]:
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield db_path
    # Cleanup
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest_asyncio.fixture
async def repository(temp_db_path: str) -> AsyncGenerator:
    """Create a test repository with initialized database."""
    from triviacast.database.migrations import initialize_database
    from triviacast.database.repository import Repository

    await initialize_database(temp_db_path)

    repo = Repository(temp_db_path)
    await repo.connect()

    yield repo

    await repo.close()


class ManualDelays:
    """DelayedCalls fake that records continuations until a test runs them."""

    def __init__(self) -> None:
        self.pending: list[tuple[float, Any, tuple]] = []

    def call_later(self, delay: float, callback: Any, *args: Any) -> None:
        self.pending.append((delay, callback, args))

    @property
    def delays(self) -> list[float]:
        return [delay for delay, _, _ in self.pending]

    async def run_next(self) -> float:
        """Run the oldest pending continuation. Returns its delay."""
        delay, callback, args = self.pending.pop(0)
        await callback(*args)
        return delay

    async def run_all(self, limit: int = 20) -> int:
        """Run continuations (including newly scheduled ones) up to limit."""
        ran = 0
        while self.pending and ran < limit:
            await self.run_next()
            ran += 1
        return ran


class FakeAudience:
    """In-memory audience."""

    def __init__(self, chat_ids: Optional[set[int]] = None) -> None:
        self._chat_ids = set(chat_ids or ())

    def is_empty(self) -> bool:
        return not self._chat_ids

    def count(self) -> int:
        return len(self._chat_ids)

    def chat_ids(self) -> list[int]:
        return sorted(self._chat_ids)

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._chat_ids

    async def add(self, chat_id: int, title=None, chat_type=None) -> bool:
        was_empty = self.is_empty()
        self._chat_ids.add(chat_id)
        return was_empty

    async def remove(self, chat_id: int) -> bool:
        if chat_id not in self._chat_ids:
            return False
        self._chat_ids.discard(chat_id)
        return True


class RecordingBroadcaster:
    """Broadcaster fake that records each message's lines."""

    def __init__(self, audience: FakeAudience, prefix: str = "") -> None:
        self.audience = audience
        self.prefix = prefix
        self.messages: list[list[str]] = []
        self.on_send = None

    async def send(self, lines, still_current=None) -> int:
        if still_current is not None and not still_current():
            return 0
        self.messages.append(list(lines))
        if self.on_send is not None:
            self.on_send()
        return self.audience.count()

    @property
    def lines(self) -> list[str]:
        return [line for message in self.messages for line in message]


def make_record(
    question: str = "2+2=?",
    correct: str = "4",
    incorrect: Optional[list[str]] = None,
) -> dict[str, Any]:
    """Raw (unencoded) Open Trivia DB record."""
    return {
        "category": "Math",
        "type": "multiple",
        "difficulty": "easy",
        "question": question,
        "correct_answer": correct,
        "incorrect_answers": incorrect if incorrect is not None else ["3", "5", "6"],
    }


@pytest.fixture
def delays() -> ManualDelays:
    return ManualDelays()


@pytest.fixture
def audience() -> FakeAudience:
    return FakeAudience({1001})


@pytest.fixture
def broadcaster(audience: FakeAudience) -> RecordingBroadcaster:
    return RecordingBroadcaster(audience)


@pytest.fixture
def fake_source() -> AsyncMock:
    """Question source whose fetch returns an empty successful batch."""
    from triviacast.services.question_source import SourceBatch

    source = AsyncMock()
    source.fetch = AsyncMock(return_value=SourceBatch(status_code=0, records=[]))
    return source


@pytest.fixture
def trivia_config():
    """Plain-text config with the default delays."""
    from triviacast.services.config_store import TriviaConfig

    return TriviaConfig(encoding="", chat_prefix="")
