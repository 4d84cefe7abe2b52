"""
Application constants for TriviaCast.

Contains Open Trivia DB filter values, response codes, and the helpers that
normalize admin command arguments into stored filter values.
"""

from enum import Enum


class Difficulty(str, Enum):
    """Open Trivia DB difficulty filter values."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QuestionType(str, Enum):
    """Open Trivia DB question type filter values."""

    MULTIPLE_CHOICE = "multiple"
    TRUE_FALSE = "boolean"


class Encoding(str, Enum):
    """Open Trivia DB response encodings."""

    DEFAULT = ""  # HTML entities
    BASE64 = "base64"
    URL3986 = "url3986"
    URL_LEGACY = "urlLegacy"


# Arguments that clear a filter back to "any"
ANY_ALIASES = frozenset({"any", "none", "-"})

QUESTION_TYPE_ALIASES: dict[str, QuestionType] = {
    "multiple": QuestionType.MULTIPLE_CHOICE,
    "multiple-choice": QuestionType.MULTIPLE_CHOICE,
    "mc": QuestionType.MULTIPLE_CHOICE,
    "boolean": QuestionType.TRUE_FALSE,
    "true/false": QuestionType.TRUE_FALSE,
    "truefalse": QuestionType.TRUE_FALSE,
    "tf": QuestionType.TRUE_FALSE,
}

ENCODING_ALIASES: dict[str, Encoding] = {
    "base64": Encoding.BASE64,
    "url3986": Encoding.URL3986,
    "urllegacy": Encoding.URL_LEGACY,
    "default": Encoding.DEFAULT,
    "html": Encoding.DEFAULT,
}

# Open Trivia DB response_code meanings
OPENTDB_SUCCESS = 0
OPENTDB_RESPONSE_CODES: dict[int, str] = {
    0: "success",
    1: "no results",
    2: "invalid parameter",
    3: "token not found",
    4: "token empty",
    5: "rate limit",
}

# Labels for enumerated choices
CHOICE_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def normalize_category(arg: str) -> str:
    """
    Normalize a category argument.

    Args:
        arg: Numeric Open Trivia DB category ID or an "any" alias

    Returns:
        Category ID string, or "" for any category

    Raises:
        ValueError: If the argument is not a positive integer or alias
    """
    value = arg.strip().lower()
    if value in ANY_ALIASES:
        return ""
    if not value.isdigit() or int(value) < 1:
        raise ValueError(f"Invalid category: {arg}")
    return str(int(value))


def normalize_difficulty(arg: str) -> str:
    """Normalize a difficulty argument to easy/medium/hard or ""."""
    value = arg.strip().lower()
    if value in ANY_ALIASES:
        return ""
    try:
        return Difficulty(value).value
    except ValueError:
        raise ValueError(
            "Invalid difficulty. Use easy, medium, hard, or any."
        ) from None


def normalize_question_type(arg: str) -> str:
    """Normalize a question type argument to multiple/boolean or ""."""
    value = arg.strip().lower()
    if value in ANY_ALIASES:
        return ""
    if value not in QUESTION_TYPE_ALIASES:
        raise ValueError("Invalid type. Use multiple, boolean, or any.")
    return QUESTION_TYPE_ALIASES[value].value


def normalize_encoding(arg: str) -> str:
    """Normalize an encoding argument to an Open Trivia DB encode value."""
    value = arg.strip().lower()
    if value not in ENCODING_ALIASES:
        raise ValueError(
            "Invalid encoding. Use base64, url3986, urlLegacy, or default."
        )
    return ENCODING_ALIASES[value].value


def format_filter_value(value: str) -> str:
    """Display helper: blank filter values read as "any"."""
    return value if value else "any"
