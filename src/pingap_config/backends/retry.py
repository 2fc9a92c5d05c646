"""Retry logic with exponential backoff and jitter."""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pingap_config.config import StoreConfig
from pingap_config.exceptions import (
    ConnectionError,
    RateLimitError,
    ServerError,
    TimeoutError,
)
from pingap_config.utils.logging import logger

T = TypeVar("T")

RETRYABLE_EXCEPTIONS = (ServerError, ConnectionError, TimeoutError, RateLimitError)


async def retry_async(
    config: StoreConfig,
    func: Callable[..., Awaitable[T]],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Execute async func with retry logic."""
    last_exception: Exception | None = None
    for attempt in range(config.max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except RETRYABLE_EXCEPTIONS as e:
            last_exception = e
            if attempt >= config.max_retries:
                break
            if isinstance(e, RateLimitError) and e.retry_after is not None:
                delay = min(e.retry_after, config.max_retry_delay)
                logger.warning("Rate limited, retrying after %.1fs", delay)
                await asyncio.sleep(delay)
            else:
                delay = await _async_sleep_with_backoff(
                    attempt, config.retry_delay, config.max_retry_delay
                )
                logger.debug(
                    "Retry attempt %s/%s after %s, slept %.1fs",
                    attempt + 1,
                    config.max_retries,
                    type(e).__name__,
                    delay,
                )
    if last_exception is not None:
        raise last_exception
    raise RuntimeError("retry loop exited without attempt or exception")


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    return min(base_delay * (2**attempt) + random.uniform(0, base_delay), max_delay)


async def _async_sleep_with_backoff(attempt: int, base_delay: float, max_delay: float) -> float:
    delay = backoff_delay(attempt, base_delay, max_delay)
    await asyncio.sleep(delay)
    return delay
