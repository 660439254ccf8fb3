"""
Retry with exponential back-off for calls to external services.

wait(attempt) = initial_wait * factor ** (attempt - 1), so with the defaults
(4.4 s, x1.5) attempts 1, 2, 3 wait 4.4, 6.6, 9.9 seconds before the next try.
Rate limits and timeouts are retried; other errors get the same back-off rather
than failing immediately. UnknownContentType is a programming error and is never
retried.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from ..errors import EmbeddingTimeout, RateLimited, RetriesExhausted, UnknownContentType

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int, initial_wait: float, factor: float = 1.5) -> float:
    """Seconds to wait after failed attempt number `attempt` (1-based)."""
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return initial_wait * factor ** (attempt - 1)


def _describe(error: BaseException) -> str:
    if isinstance(error, RateLimited):
        return "rate limited"
    if isinstance(error, EmbeddingTimeout):
        return "timed out"
    return f"{type(error).__name__}: {error}"


async def with_backoff(
    func: Callable[[], Awaitable[T]],
    *,
    operation: str,
    max_attempts: int = 5,
    initial_wait: float = 4.4,
    factor: float = 1.5,
    sleep: Optional[Sleep] = None,
) -> T:
    """
    Await func() until it succeeds or max_attempts is reached.

    Raises:
        RetriesExhausted: every attempt failed (wraps the last error)
        UnknownContentType: immediately, without retrying
    """
    sleep = sleep or asyncio.sleep
    last_error: Optional[BaseException] = None
    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except UnknownContentType:
            raise
        except Exception as e:
            last_error = e
            if attempt >= max_attempts:
                break
            delay = backoff_delay(attempt, initial_wait, factor)
            logger.warning(
                "[retry] %s %s on attempt %d/%d, sleeping %.1fs",
                operation, _describe(e), attempt, max_attempts, delay,
            )
            await sleep(delay)
    raise RetriesExhausted(operation, max_attempts, last_error)
