# © 2026 Crest Advisory Group LLC. All rights reserved.
# PROPRIETARY AND CONFIDENTIAL. Unauthorized copying, distribution, or use is strictly prohibited.

"""
Bounded retry for transient embedding and store failures.
Explicit loops only; never retries AuthError or RateLimited (those have their own policy).
"""

import asyncio
import time
from collections.abc import Callable

from juris_rag.config.logging_config import setup_logger
from juris_rag.services.errors import TransientError

logger = setup_logger(__name__)

# Retry config
DEFAULT_RETRIES = 3
DEFAULT_INITIAL_DELAY = 1.0
DEFAULT_MAX_DELAY = 30.0
DEFAULT_BACKOFF = 1.0  # fixed delay

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (TransientError,)


def call_with_retry(
    fn,
    *args,
    retries: int = DEFAULT_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    backoff: float = DEFAULT_BACKOFF,
    retry_on: tuple[type[BaseException], ...] = RETRYABLE_ERRORS,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs,
):
    """Synchronous bounded retry. Re-raises the last error once attempts run out."""
    delay = initial_delay
    for attempt in range(retries + 1):
        try:
            return fn(*args, **kwargs)
        except retry_on as e:
            if attempt >= retries:
                raise
            logger.warning("Retry %s/%s after %s: %s", attempt + 1, retries, type(e).__name__, e)
            sleep(delay)
            delay = min(delay * backoff, max_delay)
    raise AssertionError("unreachable")


async def _async_retry_impl(
    fn,
    *args,
    retries: int = DEFAULT_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    backoff: float = DEFAULT_BACKOFF,
    retry_on: tuple[type[BaseException], ...] = RETRYABLE_ERRORS,
    **kwargs,
):
    """Async bounded retry."""
    delay = initial_delay
    for attempt in range(retries + 1):
        try:
            return await fn(*args, **kwargs)
        except retry_on as e:
            if attempt >= retries:
                raise
            logger.warning("Retry %s/%s after %s: %s", attempt + 1, retries, type(e).__name__, e)
            await asyncio.sleep(delay)
            delay = min(delay * backoff, max_delay)
    raise AssertionError("unreachable")


async def retry_async(coro_fn, retries: int = DEFAULT_RETRIES, initial_delay: float = DEFAULT_INITIAL_DELAY):
    """
    Retry an async call. Usage: await retry_async(lambda: loop.run_in_executor(None, embed, text))
    """
    return await _async_retry_impl(coro_fn, retries=retries, initial_delay=initial_delay)
