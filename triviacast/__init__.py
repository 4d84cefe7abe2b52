"""TriviaCast - Telegram trivia broadcast bot."""

__version__ = "1.0.0"
