"""Outbound HTTP with retry/backoff for third-party lookups."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


def _backoff(attempt: int, base_delay: float, max_delay: float) -> float:
    delay = min(max_delay, base_delay * (2**attempt))
    return delay + random.uniform(0, delay / 2) if delay else 0.0


async def request_with_retries(
    send: Callable[[], Awaitable[httpx.Response]],
    *,
    max_attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 4.0,
) -> httpx.Response:
    """
    Call ``send`` until it returns a non-retryable response.

    Transport errors and 429/5xx responses are retried with exponential
    backoff. The last attempt's response is returned as is; its transport
    error is raised.
    """
    last_attempt = max_attempts - 1
    for attempt in range(max_attempts):
        try:
            response = await send()
        except httpx.RequestError as exc:
            if attempt == last_attempt:
                raise
            logger.warning("HTTP request failed, retrying", exc_info=exc)
        else:
            if response.status_code not in RETRY_STATUSES or attempt == last_attempt:
                return response
            logger.warning("HTTP request returned %s, retrying", response.status_code)

        delay = _backoff(attempt, base_delay, max_delay)
        if delay:
            await asyncio.sleep(delay)

    raise RuntimeError("max_attempts must be at least 1")
