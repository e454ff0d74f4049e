# oneword/retry.py
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import RetryExhausted

log = logging.getLogger(__name__)

T = TypeVar("T")


def _default_retryable(exc: BaseException) -> bool:
    return bool(getattr(exc, "retryable", False))


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    retryable: Callable[[BaseException], bool] = _default_retryable,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: Optional[str] = None,
) -> T:
    """
    Await `fn()` up to `attempts` times with exponential backoff.

    Errors that `retryable` rejects propagate immediately. When every attempt
    fails, RetryExhausted is raised with the last error attached.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    last: Optional[BaseException] = None
    for attempt in range(1, attempts + 1):
        try:
            return await fn()
        except Exception as e:
            if not retryable(e):
                raise
            last = e
            if attempt == attempts:
                break
            delay = min(max_delay, base_delay * (2 ** (attempt - 1)))
            log.info("retrying %s in %.2fs (attempt %d/%d): %s",
                     label or "call", delay, attempt + 1, attempts, e)
            await sleep(delay)
    raise RetryExhausted(attempts, last)
