"""Cache warming: batched GETs, cache-status checks and conditional purges."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterator, List, Optional, Sequence, Union

import httpx

from .config import Settings
from .http_client import retryable_get
from .models import DomainTarget, FetchFailure, FetchSuccess
from .purge import PurgeClient
from .run_log import RunLogger

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

CF_CACHE_HEADER = "cf-cache-status"
LS_CACHE_HEADER = "x-litespeed-cache"
CF_RAY_HEADER = "cf-ray"

FetchOutcome = Union[FetchSuccess, FetchFailure]


def chunked(items: Sequence[str], size: int) -> Iterator[List[str]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("batch size must be >= 1")
    for i in range(0, len(items), size):
        yield list(items[i:i + size])


def parse_edge_location(cf_ray: Optional[str]) -> str:
    """Extract the edge location from a ray id like ``8f1c2d3e4a5b6c7d-SIN``."""
    if not cf_ray or "-" not in cf_ray:
        return NOT_AVAILABLE
    return cf_ray.split("-")[1] or NOT_AVAILABLE


def needs_purge(ls_cache: str) -> bool:
    """A URL that missed the LiteSpeed cache gets its edge copy purged."""
    return ls_cache.lower() != "hit"


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


async def warm_url(
    client: httpx.AsyncClient,
    url: str,
    target: DomainTarget,
    run_log: RunLogger,
    purger: PurgeClient,
    settings: Settings,
) -> FetchOutcome:
    """Warm one URL and log the result. Never raises for network failures."""
    t0 = time.perf_counter()
    try:
        resp = await retryable_get(
            client,
            url,
            timeout=settings.warm_timeout,
            max_attempts=settings.max_attempts,
            wait_seconds=settings.retry_wait_seconds,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        dt = _elapsed_ms(t0)
        message = str(exc) or "request failed"
        logger.warning("[%s] Failed to warm %s: %s", target.key, url, message)
        # No response, so no observed edge: keep the configured identity.
        run_log.log(
            country=target.key,
            url=url,
            response_ms=dt,
            error=True,
            message=message,
        )
        return FetchFailure(url=url, elapsed_ms=dt, message=message)

    dt = _elapsed_ms(t0)
    cf_cache = resp.headers.get(CF_CACHE_HEADER) or NOT_AVAILABLE
    ls_cache = resp.headers.get(LS_CACHE_HEADER) or NOT_AVAILABLE
    cf_ray = resp.headers.get(CF_RAY_HEADER) or NOT_AVAILABLE
    edge = parse_edge_location(cf_ray)

    logger.info(
        "[%s] %d cf=%s ls=%s edge=%s - %s",
        target.key, resp.status_code, cf_cache, ls_cache, edge, url,
    )
    run_log.log(
        country=edge,
        url=url,
        status=resp.status_code,
        cf_cache=cf_cache,
        ls_cache=ls_cache,
        cf_ray=cf_ray,
        response_ms=dt,
    )

    if needs_purge(ls_cache):
        await purger.purge(url)

    return FetchSuccess(
        url=url,
        status=resp.status_code,
        elapsed_ms=dt,
        cf_cache=cf_cache,
        ls_cache=ls_cache,
        cf_ray=cf_ray,
        edge=edge,
    )


async def warm_urls(
    client: httpx.AsyncClient,
    urls: Sequence[str],
    target: DomainTarget,
    run_log: RunLogger,
    purger: PurgeClient,
    settings: Settings,
    *,
    batch_size: Optional[int] = None,
    delay_seconds: Optional[float] = None,
) -> List[FetchOutcome]:
    """Warm URLs in sequential batches of concurrent requests.

    Each batch finishes completely before a fixed pause and the next batch.

    Args:
        batch_size: URLs per batch. Defaults to ``settings.batch_size``.
        delay_seconds: Pause between batches. Defaults to
            ``settings.batch_delay_seconds``.

    Returns:
        One outcome per URL, in input order.
    """
    size = settings.batch_size if batch_size is None else batch_size
    delay = settings.batch_delay_seconds if delay_seconds is None else delay_seconds

    batches = list(chunked(urls, size))
    outcomes: List[FetchOutcome] = []
    for i, batch in enumerate(batches):
        if i:
            await asyncio.sleep(delay)
        logger.debug(
            "[%s] Batch %d/%d (%d URL(s))", target.key, i + 1, len(batches), len(batch)
        )
        results = await asyncio.gather(
            *(warm_url(client, url, target, run_log, purger, settings) for url in batch)
        )
        outcomes.extend(results)

    failed = sum(1 for o in outcomes if isinstance(o, FetchFailure))
    logger.info("[%s] Warmed %d URL(s), %d failed", target.key, len(outcomes), failed)
    return outcomes
