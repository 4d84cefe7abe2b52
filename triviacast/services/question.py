"""
Trivia question value type.

A Question holds its choices already shuffled, along with the index of the
choice the source marked correct.
"""

import random
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question, immutable once built."""

    text: str
    choices: tuple[str, ...]
    correct_index: int

    def __post_init__(self) -> None:
        if len(self.choices) < 2:
            raise ValueError("A question needs at least two choices")
        if not 0 <= self.correct_index < len(self.choices):
            raise ValueError(
                f"correct_index {self.correct_index} out of range "
                f"for {len(self.choices)} choices"
            )

    @property
    def correct_choice(self) -> str:
        """Text of the correct choice."""
        return self.choices[self.correct_index]


def build_question(
    text: str,
    correct: str,
    incorrect: Iterable[str],
    rng: Optional[random.Random] = None,
) -> Optional[Question]:
    """
    Build a Question with the correct answer shuffled among the others.

    Args:
        text: Decoded question text
        correct: Decoded correct answer
        incorrect: Decoded incorrect answers
        rng: Random source for the shuffle (module-level random if None)

    Returns:
        The question, or None when the record is unusable (blank text or
        answer, fewer than two choices, or the answer lost in the shuffle)
    """
    if not text or not text.strip() or not correct or not correct.strip():
        return None

    options = list(incorrect)
    options.append(correct)
    (rng or random).shuffle(options)

    try:
        correct_index = options.index(correct)
    except ValueError:
        return None

    if len(options) < 2:
        return None

    return Question(
        text=text,
        choices=tuple(options),
        correct_index=correct_index,
    )
