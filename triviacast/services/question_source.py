"""
Open Trivia DB client for TriviaCast.

Fetches batches of raw question records over HTTP. Records are decoded and
turned into Questions by the refill coordinator.
"""

import base64
import binascii
import html
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import unquote, unquote_plus

import aiohttp
from pydantic import BaseModel, Field

from triviacast.config.constants import Encoding
from triviacast.config.logging import get_logger

logger = get_logger(__name__)


class QuestionSourceError(Exception):
    """The question source returned an unusable response."""


@dataclass(frozen=True)
class QuestionFilters:
    """Filter parameters forwarded to the source as-is."""

    category: str = ""
    difficulty: str = ""
    question_type: str = ""
    encoding: str = ""

    def to_params(self, amount: int) -> dict[str, str]:
        """Build query parameters, omitting blank filters."""
        params = {"amount": str(max(1, amount))}
        if self.category.strip():
            params["category"] = self.category
        if self.difficulty.strip():
            params["difficulty"] = self.difficulty
        if self.question_type.strip():
            params["type"] = self.question_type
        if self.encoding.strip():
            params["encode"] = self.encoding
        return params


@dataclass
class SourceBatch:
    """One response from the question source."""

    status_code: int
    records: list[Any] = field(default_factory=list)


class SourceRecord(BaseModel):
    """A single encoded question record from Open Trivia DB."""

    question: str
    correct_answer: str
    incorrect_answers: list[str] = Field(default_factory=list)
    category: Optional[str] = None
    difficulty: Optional[str] = None
    type: Optional[str] = None


class SourceResponse(BaseModel):
    """Envelope of an Open Trivia DB response."""

    response_code: int
    # Records are validated one by one during refill
    results: list[Any] = Field(default_factory=list)


def decode_text(value: str, encoding: str) -> str:
    """
    Decode a text field according to the response encoding.

    Falls back to the raw value if it cannot be decoded.
    """
    try:
        if encoding == Encoding.BASE64.value:
            return base64.b64decode(value, validate=True).decode("utf-8")
        if encoding == Encoding.URL3986.value:
            return unquote(value, errors="strict")
        if encoding == Encoding.URL_LEGACY.value:
            return unquote_plus(value, errors="strict")
        return html.unescape(value)
    except (binascii.Error, UnicodeDecodeError, ValueError):
        logger.debug(f"Could not decode {encoding or 'html'} text, using raw value")
        return value


class OpenTriviaClient:
    """Async HTTP client for the Open Trivia DB API."""

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.base_url = base_url
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def fetch(self, amount: int, filters: QuestionFilters) -> SourceBatch:
        """
        Fetch a batch of question records.

        Args:
            amount: Number of questions requested
            filters: Category/difficulty/type/encoding filters

        Returns:
            SourceBatch with the API response_code and raw records

        Raises:
            QuestionSourceError: Non-2xx status or malformed body
            aiohttp.ClientError: Transport failure
        """
        session = await self._get_session()
        params = filters.to_params(amount)
        logger.info(f"Fetching trivia from {self.base_url} with {params}")

        async with session.get(self.base_url, params=params) as response:
            if response.status >= 300:
                raise QuestionSourceError(
                    f"Open Trivia DB returned HTTP {response.status}"
                )
            try:
                payload = await response.json(content_type=None)
            except ValueError as e:
                raise QuestionSourceError(f"Invalid JSON from Open Trivia DB: {e}") from e

        if not isinstance(payload, dict) or "response_code" not in payload:
            raise QuestionSourceError("Open Trivia DB response missing response_code")

        parsed = SourceResponse.model_validate(payload)
        return SourceBatch(status_code=parsed.response_code, records=parsed.results)

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
