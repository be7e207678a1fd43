"""Bounded retry with exponential backoff for transient probe failures."""

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from pingwatch.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class RetryError(Exception):
    """Raised when all retry attempts have failed."""
    pass


def backoff_delay(
    attempt: int,
    base_delay: float,
    multiplier: float,
    max_delay: float,
    jitter: bool
) -> float:
    """
    Delay to wait after a failed attempt.

    Args:
        attempt: Attempt number that just failed (1-indexed)
        base_delay: Initial delay in seconds
        multiplier: Multiplier for exponential backoff
        max_delay: Upper bound in seconds
        jitter: Whether to randomise the delay between 50% and 150%

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (multiplier ** (attempt - 1)), max_delay)
    if jitter:
        delay = delay * (0.5 + random.random())
    return delay


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    multiplier: float = 2.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    **kwargs: Any
) -> T:
    """
    Execute an async function, retrying on the given exceptions.

    The number of attempts is always bounded by ``max_attempts``; the
    caller is responsible for bounding each attempt's duration.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        max_attempts: Maximum number of attempts (at least 1)
        base_delay: Initial delay in seconds
        multiplier: Multiplier for exponential backoff
        max_delay: Maximum delay in seconds
        jitter: Whether to add random jitter to delay
        exceptions: Exception types that trigger a retry
        **kwargs: Keyword arguments for func

    Returns:
        Result of the function call

    Raises:
        RetryError: If all attempts fail. The last failure is chained as
            ``__cause__``.

    Example:
        ```python
        status = await retry_with_backoff(
            check.check,
            "https://example.com",
            max_attempts=2,
            base_delay=0.5
        )
        ```
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_exception: Optional[BaseException] = None
    name = getattr(func, "__name__", repr(func))

    for attempt in range(1, max_attempts + 1):
        try:
            result = await func(*args, **kwargs)

            if attempt > 1:
                logger.info(
                    "Call succeeded after retry",
                    extra={"function": name, "attempt": attempt}
                )

            return result

        except exceptions as e:
            last_exception = e

            if attempt == max_attempts:
                break

            delay = backoff_delay(attempt, base_delay, multiplier, max_delay, jitter)

            logger.warning(
                "Call failed, retrying",
                extra={
                    "function": name,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "delay": delay,
                    "error": str(e) or type(e).__name__
                }
            )

            await asyncio.sleep(delay)

    raise RetryError(
        f"Function {name} failed after {max_attempts} attempts. "
        f"Last error: {last_exception!r}"
    ) from last_exception
