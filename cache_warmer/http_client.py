"""HTTP access with per-domain identity and retry on transient network errors."""

from __future__ import annotations

import asyncio
import errno
import logging
from typing import Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from .config import Settings
from .models import DomainTarget

logger = logging.getLogger(__name__)

TRANSIENT_ERRNOS = frozenset({errno.ECONNABORTED, errno.ECONNRESET, errno.ETIMEDOUT})


def build_client(
    target: DomainTarget,
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Return a client that speaks with the target's user agent and proxy."""
    kwargs = {}
    if target.proxy:
        kwargs["proxy"] = target.proxy
    if transport is not None:
        kwargs["transport"] = transport
    return httpx.AsyncClient(
        timeout=settings.request_timeout,
        follow_redirects=True,
        headers={"user-agent": target.user_agent},
        **kwargs,
    )


def _os_errno(exc: BaseException) -> Optional[int]:
    """Find the errno of the first OSError in the exception chain."""
    seen = set()
    cur: Optional[BaseException] = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        if isinstance(cur, OSError) and cur.errno is not None:
            return cur.errno
        cur = cur.__cause__ or cur.__context__
    return None


def is_transient_error(exc: BaseException) -> bool:
    """Return True for errors worth retrying.

    Retries on:
      - Timeouts (connect, read, write, pool)
      - Connections reset or aborted mid-request

    Does NOT retry on:
      - DNS or TLS failures, refused connections
      - Protocol errors and malformed responses
      - Anything that is not a transport error
    """
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, (httpx.ReadError, httpx.WriteError)):
        return True
    if isinstance(exc, httpx.TransportError):
        return _os_errno(exc) in TRANSIENT_ERRNOS
    return False


async def retryable_get(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float,
    max_attempts: int = 3,
    wait_seconds: float = 2.0,
    is_transient: Callable[[BaseException], bool] = is_transient_error,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> httpx.Response:
    """GET a URL, retrying transient failures with a fixed pause.

    Any HTTP status is returned as-is; only exceptions count as failures.
    ``sleep`` performs the pause between attempts.

    Raises:
        httpx.HTTPError: The last error once attempts are exhausted, or the
            first non-transient error.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(wait_seconds),
        retry=retry_if_exception(is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        sleep=sleep,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await client.get(url, timeout=timeout)
    raise AssertionError("unreachable")  # pragma: no cover


async def fetch_text(client: httpx.AsyncClient, url: str, *, timeout: float) -> str:
    """GET a URL and return its body, raising on non-2xx status."""
    resp = await client.get(url, timeout=timeout)
    resp.raise_for_status()
    return resp.text
