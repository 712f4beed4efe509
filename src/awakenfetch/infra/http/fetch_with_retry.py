"""Shared JSON-over-HTTP fetch with exponential backoff, used by every chain adapter."""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

import httpx
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from awakenfetch.exceptions import ExternalServiceError, RateLimitedError
from awakenfetch.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds

DEFAULT_HEADERS = {"accept": "application/json"}


async def sleep(seconds: float) -> None:
    """Plain delay primitive; patched out in tests."""
    await asyncio.sleep(seconds)


def _merge_headers(headers: Mapping[str, str] | None) -> httpx.Headers:
    merged = httpx.Headers(DEFAULT_HEADERS)
    if headers:
        # Caller wins, case-insensitively
        merged.update(headers)
    return merged


async def fetch_with_retry(
    http: RateLimitedClient,
    url: str,
    *,
    params: Mapping[str, str | int] | None = None,
    headers: Mapping[str, str] | None = None,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    error_label: str = "API",
) -> Any:
    """GET ``url`` and return its parsed JSON body.

    At most ``max_retries`` calls are made; before the call at index ``i + 1``
    we wait ``base_delay * 2**i`` seconds. Every failure (network error, 429,
    any other non-2xx) is retried the same way. When attempts run out:

    - a network error is re-raised unchanged,
    - a trailing 429 becomes ``"{error_label} request failed after retries"``,
    - any other status becomes ``"{error_label} error: {status} {reason}"``.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be at least 1, got {max_retries}")

    request_headers = _merge_headers(headers)

    retrying = AsyncRetrying(
        # Undecodable JSON bodies surface as ValueError
        retry=retry_if_exception_type((httpx.TransportError, ExternalServiceError, ValueError)),
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=base_delay, exp_base=2, min=0),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )

    try:
        async for attempt in retrying:
            with attempt:
                resp = await http.get(url, params=params, headers=request_headers)

                if resp.status_code == 429:
                    raise RateLimitedError(f"{error_label} rate limited (429)")

                if not resp.is_success:
                    raise ExternalServiceError(f"{error_label} error: {resp.status_code} {resp.reason_phrase}")

                return resp.json()
    except RateLimitedError:
        raise ExternalServiceError(f"{error_label} request failed after retries") from None

    # AsyncRetrying with reraise=True either returns above or raises
    raise ExternalServiceError(f"{error_label} request failed after retries")
