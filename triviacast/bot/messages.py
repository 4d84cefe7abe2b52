"""
Message templates for TriviaCast.

Contains broadcast line formatting and admin reply text.
"""

from typing import TYPE_CHECKING, Any

from triviacast.config.constants import CHOICE_LETTERS, format_filter_value

if TYPE_CHECKING:
    from triviacast.services.question import Question
    from triviacast.services.config_store import TriviaConfig


def format_question_lines(question: "Question") -> list[str]:
    """
    Format a question and its lettered choices for broadcast.

    Returns:
        ["Question: <text>", "A) <choice>", "B) <choice>", ...]
    """
    lines = [f"Question: {question.text}"]
    for letter, choice in zip(CHOICE_LETTERS, question.choices):
        lines.append(f"{letter}) {choice}")
    return lines


def format_answer_line(question: "Question") -> str:
    """Format the answer reveal line, e.g. "Answer: B) 4"."""
    letter = CHOICE_LETTERS[question.correct_index]
    return f"Answer: {letter}) {question.correct_choice}"


def format_status(status: dict[str, Any]) -> str:
    """Format /trivia status output."""
    state = "ENABLED" if status["enabled"] else "DISABLED"
    lines = [
        f"Trivia is {state}",
        f"Queue: {status['queue_size']}",
        f"Active: {status['running']}",
        f"Generation: {status['generation']}",
        f"Fetching: {status['fetching']}",
        f"Audience: {status['audience']} chats",
        f"Fetched: {status['questions_fetched']} questions in "
        f"{status['refill_requests']} requests ({status['fetch_failures']} failed)",
    ]
    return "\n".join(lines)


def format_config(config: "TriviaConfig", enabled: bool) -> str:
    """Format /trivia config output."""
    lines = [
        "Trivia configuration:",
        f"enabled: {enabled}",
        f"amount: {config.amount}",
        f"category: {format_filter_value(config.category)}",
        f"difficulty: {format_filter_value(config.difficulty)}",
        f"type: {format_filter_value(config.question_type)}",
        f"encode: {config.encoding or 'default'}",
        f"answer_delay_seconds: {config.answer_delay_seconds}",
        f"between_questions_delay_seconds: {config.between_questions_delay_seconds}",
        f"fetch_batch_size: {config.fetch_batch_size}",
        f'chat_prefix: "{config.chat_prefix}"',
    ]
    return "\n".join(lines)


def format_admin_usage() -> str:
    """Format /trivia usage text."""
    return """Trivia commands:
  /trivia enable|disable|status|reload|now
  /trivia config
  /trivia amount <n>
  /trivia category <id|any>
  /trivia difficulty <easy|medium|hard|any>
  /trivia type <multiple|boolean|any>
  /trivia encode <base64|url3986|urlLegacy|default>
  /trivia delay <answerSeconds> <betweenSeconds>
  /trivia fetchbatch <n>
  /trivia prefix <text...>"""


def format_help_message() -> str:
    """Format the /help message for audience members."""
    return """TriviaCast posts a trivia question here every so often and reveals the answer a little later.

/start - receive trivia in this chat
/stop - stop receiving trivia in this chat
/help - show this message"""


def format_subscribed_message() -> str:
    return "Trivia is on its way! Questions will appear in this chat. Use /stop to opt out."


def format_already_subscribed_message() -> str:
    return "This chat already receives trivia. Use /stop to opt out."


def format_unsubscribed_message() -> str:
    return "This chat will no longer receive trivia. Use /start to come back."
