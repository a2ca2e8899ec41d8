"""Backoff retry for the exchange calls that are worth repeating.

Only whole-snapshot requests are retried; per-symbol kline fetches fail
fast and the scan reports the symbol as skipped instead.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any, Awaitable, Callable, Iterator, TypeVar

from loguru import logger

T = TypeVar("T")


def backoff_delays(
    delay: float, backoff: float, retries: int, max_delay: float | None = None
) -> Iterator[float]:
    """Yield the pause before each retry: ``delay, delay*backoff, ...``."""
    current = delay
    for _ in range(retries):
        yield min(current, max_delay) if max_delay is not None else current
        current *= backoff


def retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    max_delay: float | None = 30.0,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Retry a coroutine function when it raises one of *exceptions*.

    Args:
        max_attempts: Total calls including the first one.
        delay: Pause before the first retry, in seconds.
        backoff: Multiplier applied to the pause after every retry.
        exceptions: Exception types that trigger a retry. Anything else
            propagates on the first occurrence.
        max_delay: Upper bound for a single pause (``None`` = unbounded).

    Usage::

        @retry(max_attempts=3, delay=1.0, exceptions=(UpstreamUnavailableError,))
        async def get_tickers_24h(self) -> list[Ticker24h]:
            ...
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            pauses = backoff_delays(delay, backoff, max_attempts - 1, max_delay)
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as exc:
                    pause = next(pauses, None)
                    if pause is None:
                        logger.error(
                            "{}() gave up after {} attempt(s): {}", func.__name__, attempt, exc
                        )
                        raise
                    logger.warning(
                        "{}() attempt {}/{} failed ({}), retrying in {:.1f}s",
                        func.__name__,
                        attempt,
                        max_attempts,
                        exc,
                        pause,
                    )
                    await asyncio.sleep(pause)
                    attempt += 1

        return wrapper

    return decorator
