"""
Bounded retry policy for read queries.

Only transient kinds are retried. Authorization, validation, not-found,
conflict and configuration failures are raised on the first attempt.
Mutations are never wrapped.

When the read runs on the request's session, every attempt runs inside a
savepoint, so a failed statement does not leave the surrounding
transaction aborted for the next attempt.
"""
import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from djagency.core.config import settings
from djagency.core.errors import ErrorKind, classify_exception

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_KINDS = frozenset({ErrorKind.UNAVAILABLE, ErrorKind.BACKEND})


def should_retry(error: BaseException) -> bool:
    return classify_exception(error) in RETRYABLE_KINDS


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int | None = None,
    delay: float | None = None,
    session: Optional[Any] = None,
) -> T:
    """
    Run a read operation with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory
        attempts: Maximum attempts (defaults to READ_RETRY_ATTEMPTS)
        delay: Base delay in seconds (defaults to READ_RETRY_DELAY)
        session: AsyncSession the operation reads through; each attempt
            runs in a savepoint of it

    Returns:
        The operation result
    """
    max_attempts = max(1, attempts if attempts is not None else settings.READ_RETRY_ATTEMPTS)
    base_delay = delay if delay is not None else settings.READ_RETRY_DELAY

    for attempt in range(max_attempts):
        try:
            if session is None:
                return await operation()
            async with session.begin_nested():
                return await operation()
        except Exception as e:
            if not should_retry(e) or attempt == max_attempts - 1:
                raise
            wait = base_delay * (2 ** attempt)
            logger.warning(
                f"Read attempt {attempt + 1}/{max_attempts} failed "
                f"({classify_exception(e).value}): {e}. Retrying in {wait:.2f}s"
            )
            await asyncio.sleep(wait)

    raise RuntimeError("unreachable")


def read_retry(attempts: int | None = None, delay: float | None = None):
    """Decorator applying run_with_retry to an async read function.

    The session is taken from a `db` keyword or the first AsyncSession
    positional argument.
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            session = kwargs.get("db")
            if session is None:
                session = next((arg for arg in args if isinstance(arg, AsyncSession)), None)
            return await run_with_retry(lambda: func(*args, **kwargs), attempts, delay, session)

        return wrapper

    return decorator
