"""Async retry with exponential backoff.

Deterministic backoff without jitter: attempt ``n`` (0-based) is followed
by a sleep of ``initial_delay * 2**n`` seconds. The engine is error-kind
agnostic unless a ``should_retry`` predicate is supplied.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 1.0  # seconds


class SleepFunc(Protocol):
    """Protocol for injectable async sleep functions."""

    async def __call__(self, seconds: float) -> None: ...


def backoff_delays(max_retries: int, initial_delay: float) -> list[float]:
    """Return the full delay schedule, e.g. ``[1.0, 2.0, 4.0]`` for the defaults."""
    return [initial_delay * (2**attempt) for attempt in range(max_retries)]


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    *,
    should_retry: Optional[Callable[[Exception], bool]] = None,
    sleep_func: Optional[SleepFunc] = None,
    label: str = "operation",
) -> T:
    """Invoke ``operation`` up to ``max_retries + 1`` times.

    Args:
        operation: Async callable with no arguments (use a lambda for args).
        max_retries: Retries after the first attempt (default 3).
        initial_delay: Delay in seconds before the first retry (default 1.0).
        should_retry: Predicate deciding whether an error is retried
            (default: every error is retried).
        sleep_func: Injectable sleep function for time control in tests.
        label: Name used in retry log messages.

    Returns:
        Result from the operation on success.

    Raises:
        ValueError: ``max_retries`` is negative.
        Exception: The last error, unmodified, once retries are exhausted or
            ``should_retry`` refuses it.

    Testing example:
        >>> delays = []
        >>> async def fake_sleep(s): delays.append(s)
        >>> await retry_with_backoff(op, 2, 0.5, sleep_func=fake_sleep)
        >>> delays  # on permanent failure
        [0.5, 1.0]
    """
    if max_retries < 0:
        raise ValueError(f"max_retries must be non-negative, got {max_retries}")

    _sleep = sleep_func or asyncio.sleep
    last_exception: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            last_exception = e

            if attempt == max_retries:
                break
            if should_retry is not None and not should_retry(e):
                break

            delay = initial_delay * (2**attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                label,
                attempt + 1,
                max_retries + 1,
                delay,
                e,
            )
            await _sleep(delay)

    if last_exception:
        raise last_exception
    raise RuntimeError(f"retry_with_backoff: {label} made no attempts")


__all__ = [
    "DEFAULT_INITIAL_DELAY",
    "DEFAULT_MAX_RETRIES",
    "SleepFunc",
    "backoff_delays",
    "retry_with_backoff",
]
