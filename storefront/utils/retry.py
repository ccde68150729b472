"""Retry helpers for single-source fetches."""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import random
from collections.abc import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

RETRY_EXCEPTIONS = (httpx.TransportError, asyncio.TimeoutError)
MAX_ATTEMPTS = int(os.environ.get("STOREFRONT_RETRY_ATTEMPTS", 3))
BASE_DELAY = float(os.environ.get("STOREFRONT_RETRY_DELAY", 0.5))


def retry_async(func: Callable[..., Awaitable]):
    """Retry transport failures with jittered exponential backoff.

    Error statuses are not retried; ``raise_for_status`` errors propagate on
    the first attempt.
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        delay = BASE_DELAY
        attempts = max(1, MAX_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                return await func(*args, **kwargs)
            except RETRY_EXCEPTIONS as exc:
                if attempt == attempts:
                    raise
                logger.info("Retrying %s after %s (attempt %s/%s)", func.__name__, exc, attempt, attempts)
                await asyncio.sleep(delay + random.random() * delay)
                delay *= 2
    return wrapper
