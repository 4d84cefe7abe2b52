"""
Trivia configuration store for TriviaCast.

Combines defaults from Settings (config/config.json) with overrides persisted
by admin commands, and hands out immutable TriviaConfig snapshots.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from triviacast.config.constants import Difficulty, Encoding, QuestionType
from triviacast.config.logging import get_logger
from triviacast.config.settings import Settings
from triviacast.database.repository import Repository
from triviacast.services.question_source import QuestionFilters

logger = get_logger(__name__)

# Floor applied to the fetch batch size used for the low-water mark
MIN_FETCH_BATCH_SIZE = 5


class TriviaConfig(BaseModel):
    """Snapshot of trivia settings, read at well-defined reload points."""

    model_config = ConfigDict(frozen=True)

    amount: int = Field(50, ge=1, description="Questions requested per fetch")
    category: str = ""
    difficulty: str = ""
    question_type: str = ""
    encoding: str = Encoding.BASE64.value
    answer_delay_seconds: int = Field(15, ge=1)
    between_questions_delay_seconds: int = Field(10, ge=0)
    fetch_batch_size: int = Field(50, ge=1)
    chat_prefix: str = "Trivia: "
    start_enabled: bool = True

    @field_validator("category", mode="before")
    @classmethod
    def _category_as_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("difficulty")
    @classmethod
    def _known_difficulty(cls, value: str) -> str:
        if value and value not in {d.value for d in Difficulty}:
            raise ValueError(f"unknown difficulty {value!r}")
        return value

    @field_validator("question_type")
    @classmethod
    def _known_question_type(cls, value: str) -> str:
        if value and value not in {t.value for t in QuestionType}:
            raise ValueError(f"unknown question type {value!r}")
        return value

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        if value not in {e.value for e in Encoding}:
            raise ValueError(f"unknown encoding {value!r}")
        return value

    @property
    def effective_batch_size(self) -> int:
        return max(MIN_FETCH_BATCH_SIZE, self.fetch_batch_size)

    @property
    def low_water_mark(self) -> int:
        """Queue size below which a refill is requested."""
        return max(MIN_FETCH_BATCH_SIZE, self.effective_batch_size // 4)

    def filters(self) -> QuestionFilters:
        return QuestionFilters(
            category=self.category,
            difficulty=self.difficulty,
            question_type=self.question_type,
            encoding=self.encoding,
        )


# Settings that change which questions are fetched
FILTER_KEYS = frozenset({"amount", "category", "difficulty", "question_type", "encoding"})


class ConfigStore:
    """Persisted trivia settings layered over Settings defaults."""

    def __init__(self, repo: Repository, settings: Settings) -> None:
        self._repo = repo
        self._settings = settings

    def defaults(self) -> dict[str, Any]:
        return self._settings.trivia_defaults()

    async def load(self) -> TriviaConfig:
        """
        Build a config snapshot from defaults plus persisted overrides.

        Persisted values that fail validation are ignored (logged) so a bad
        row can never take the bot down.
        """
        values = self.defaults()
        overrides = await self._repo.get_all_settings()

        for key, value in overrides.items():
            if key not in TriviaConfig.model_fields:
                logger.warning(f"Ignoring unknown trivia setting {key!r}")
                continue
            candidate = {**values, key: value}
            try:
                TriviaConfig.model_validate(candidate)
            except ValidationError as e:
                logger.warning(f"Ignoring invalid trivia setting {key}={value!r}: {e}")
                continue
            values = candidate

        try:
            return TriviaConfig.model_validate(values)
        except ValidationError as e:
            logger.error(f"Invalid trivia defaults in config.json, using built-ins: {e}")
            return TriviaConfig()

    async def update(self, **changes: Any) -> TriviaConfig:
        """
        Validate and persist new setting values.

        Raises:
            KeyError: Unknown setting name
            pydantic.ValidationError: Invalid value (nothing is persisted)
        """
        unknown = set(changes) - set(TriviaConfig.model_fields)
        if unknown:
            raise KeyError(f"Unknown trivia setting(s): {', '.join(sorted(unknown))}")

        current = await self.load()
        updated = TriviaConfig.model_validate({**current.model_dump(), **changes})

        await self._repo.set_settings(
            {key: getattr(updated, key) for key in changes}
        )
        logger.info(f"Updated trivia settings: {changes}")
        return updated

