"""FIFO buffer of questions waiting to be asked."""

from collections import deque
from typing import Iterable, Optional

from triviacast.services.question import Question


class QuestionQueue:
    """
    Insertion-ordered question buffer.

    Owned by the cycle scheduler's event loop. The refill coordinator only
    appends; the scheduler pops and clears.
    """

    def __init__(self, questions: Iterable[Question] = ()) -> None:
        self._items: deque[Question] = deque(questions)

    def push_back(self, question: Question) -> None:
        """Append a question to the end of the queue."""
        self._items.append(question)

    def pop_front(self) -> Optional[Question]:
        """Remove and return the oldest question, or None if empty."""
        if not self._items:
            return None
        return self._items.popleft()

    def size(self) -> int:
        """Number of buffered questions."""
        return len(self._items)

    def clear(self) -> None:
        """Drop every buffered question."""
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)
