"""
Middleware decorators for TriviaCast bot handlers.

Provides access control and rate limiting.
"""

import time
from functools import wraps
from typing import Any, Callable, Coroutine, Optional

from telegram import Update
from telegram.ext import ContextTypes

from triviacast.config.logging import get_logger
from triviacast.config.settings import get_settings

logger = get_logger(__name__)

class RateLimiter:
    """Sliding one-minute window of request timestamps per user."""

    WINDOW_SECONDS = 60.0

    def __init__(self) -> None:
        self._requests: dict[int, list[float]] = {}

    def allow(self, user_id: int, limit: int, now: Optional[float] = None) -> bool:
        """
        Record a request if the user is under the limit.

        Returns:
            False if the user already made `limit` requests in the window
        """
        now = time.time() if now is None else now
        recent = [
            ts for ts in self._requests.get(user_id, ()) if ts > now - self.WINDOW_SECONDS
        ]

        if len(recent) >= limit:
            self._requests[user_id] = recent
            return False

        recent.append(now)
        self._requests[user_id] = recent
        return True

    def prune(self, now: Optional[float] = None) -> None:
        """Forget users with no requests inside the window."""
        now = time.time() if now is None else now
        cutoff = now - self.WINDOW_SECONDS
        idle = [
            user_id
            for user_id, stamps in self._requests.items()
            if not stamps or stamps[-1] <= cutoff
        ]
        for user_id in idle:
            del self._requests[user_id]

    def tracked_users(self) -> int:
        return len(self._requests)

    def clear(self) -> None:
        self._requests.clear()


_rate_limiter = RateLimiter()


def rate_limit_middleware(
    requests_per_minute: Optional[int] = None,
) -> Callable[
    [Callable[..., Coroutine[Any, Any, Any]]],
    Callable[..., Coroutine[Any, Any, Any]],
]:
    """
    Middleware to enforce rate limits.

    Args:
        requests_per_minute: Max requests per minute (uses config default if None)
    """

    def decorator(
        func: Callable[..., Coroutine[Any, Any, Any]]
    ) -> Callable[..., Coroutine[Any, Any, Any]]:
        @wraps(func)
        async def wrapper(
            update: Update,
            context: ContextTypes.DEFAULT_TYPE,
            *args: Any,
            **kwargs: Any,
        ) -> Any:
            if not update.effective_user:
                return None

            user_id = update.effective_user.id
            settings = get_settings()
            limit = requests_per_minute or settings.requests_per_minute

            _rate_limiter.prune()
            if not _rate_limiter.allow(user_id, limit):
                logger.warning(f"Rate limit exceeded for user {user_id}")

                if update.effective_message:
                    await update.effective_message.reply_text(
                        "You're sending too many requests. Please slow down."
                    )
                return None

            return await func(update, context, *args, **kwargs)

        return wrapper

    return decorator


def admin_middleware(
    func: Callable[..., Coroutine[Any, Any, Any]]
) -> Callable[..., Coroutine[Any, Any, Any]]:
    """
    Middleware to restrict trivia management to admin users.
    """

    @wraps(func)
    async def wrapper(
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        if not update.effective_user:
            return None

        user_id = update.effective_user.id
        settings = get_settings()

        if not settings.is_admin(user_id):
            logger.warning(f"Non-admin user {user_id} tried to manage trivia")

            if update.effective_message:
                await update.effective_message.reply_text(
                    "You don't have permission to manage trivia."
                )
            return None

        return await func(update, context, *args, **kwargs)

    return wrapper
