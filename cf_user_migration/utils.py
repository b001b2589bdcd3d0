"""Utilities: request-ID helper, retry/backoff, url normalization."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({502, 503, 504})


def generate_request_id() -> str:
    """Short UUID4 hex string for X-Vcap-Request-Id."""
    return uuid.uuid4().hex[:12]


def normalize_url(url: str) -> str:
    """Lower-case and strip trailing slashes so two spellings of one endpoint compare equal."""
    return url.strip().rstrip("/").lower()


def retry_with_backoff(
    fn: Callable[[], httpx.Response],
    *,
    retries: int = 2,
    backoff_base: float = 0.5,
    retryable_statuses: frozenset = RETRYABLE_STATUS_CODES,
) -> httpx.Response:
    """Call fn() with exponential backoff on gateway errors and network failures.

    fn must return an httpx.Response. The last response is returned once
    retries are exhausted; the last network error is re-raised.
    """
    last_exc: Optional[Exception] = None
    for attempt in range(retries + 1):
        try:
            resp = fn()
        except httpx.TransportError as e:
            last_exc = e
            if attempt < retries:
                logger.debug("request failed (%s), retry %d/%d", e, attempt + 1, retries)
                time.sleep(backoff_base * (2 ** attempt))
                continue
            raise
        if resp.status_code not in retryable_statuses or attempt >= retries:
            return resp
        logger.debug("got %d, retry %d/%d", resp.status_code, attempt + 1, retries)
        time.sleep(backoff_base * (2 ** attempt))
    raise last_exc  # type: ignore[misc]
