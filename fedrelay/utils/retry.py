from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, TypeVar

from fedrelay.core.exceptions import InvalidParameterError, RetryExhaustedError

T = TypeVar("T")

DelayFn = Callable[[int], float]


def linear_backoff(base_delay: float = 1.0) -> DelayFn:
    """Wait `attempt * base_delay` seconds after the given attempt."""
    return lambda attempt: attempt * base_delay


def exponential_backoff(base_delay: float = 1.0, factor: float = 2.0) -> DelayFn:
    """Wait `base_delay * factor ** (attempt - 1)` seconds."""
    return lambda attempt: base_delay * (factor ** (attempt - 1))


async def retry_async(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    delay_fn: DelayFn | None = None,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[int, Exception, float], None] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run `func` at most `max_attempts` times.

    Parameters
    ----------
    func : Callable[[], Awaitable[T]]
        Zero-argument coroutine factory, called once per attempt.
    max_attempts : int
        Upper bound on attempts, must be at least 1.
    delay_fn : DelayFn | None
        Seconds to wait after a failed attempt, given its 1-based number.
        Defaults to ``linear_backoff(1.0)``.
    exceptions : tuple[type[Exception], ...]
        Exception types that trigger a retry. Anything else propagates.
    on_retry : Callable[[int, Exception, float], None] | None
        Called with (attempt, error, delay) before sleeping.

    Raises
    ------
    RetryExhaustedError
        If every attempt failed.
    """
    if max_attempts < 1:
        raise InvalidParameterError(
            f"max_attempts must be at least 1, got {max_attempts}"
        )
    delay_fn = delay_fn or linear_backoff()
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return await func()
        except exceptions as e:
            last_error = e
            if attempt == max_attempts:
                break
            delay = delay_fn(attempt)
            if on_retry is not None:
                on_retry(attempt, e, delay)
            await sleep(delay)

    raise RetryExhaustedError(
        f"All {max_attempts} attempts failed: {str(last_error)}",
        attempts=max_attempts,
        last_error=last_error,
    ) from last_error
