"""Run entry point: resolve and warm every domain, then flush the run log."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

import httpx

from .config import Settings, get_settings
from .http_client import build_client
from .models import DomainTarget
from .purge import PurgeClient
from .run_log import RunLogger
from .sitemap import resolve_urls
from .warmer import warm_urls

logger = logging.getLogger(__name__)


def select_targets(
    settings: Settings, keys: Optional[Iterable[str]] = None
) -> Dict[str, DomainTarget]:
    """Return the configured targets, optionally restricted to ``keys``.

    Raises:
        KeyError: If a requested key is not configured.
    """
    targets = settings.domain_targets()
    if keys is None:
        return targets
    selected: Dict[str, DomainTarget] = {}
    for key in keys:
        if key not in targets:
            raise KeyError(f"Unknown domain key: {key}")
        selected[key] = targets[key]
    return selected


async def warm_domain(
    target: DomainTarget,
    settings: Settings,
    run_log: RunLogger,
    purger: PurgeClient,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> None:
    """Resolve one domain's sitemap URLs and warm them."""
    async with build_client(target, settings, transport=transport) as client:
        urls = await resolve_urls(client, target, settings)

        logger.info("[%s] Found %d URLs", target.key, len(urls))
        run_log.log(
            country=target.key, message=f"Found {len(urls)} URLs for {target.key}"
        )

        await warm_urls(client, urls, target, run_log, purger, settings)


async def resolve_all(
    settings: Settings,
    keys: Optional[Iterable[str]] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, List[str]]:
    """Resolve sitemap URLs for the selected domains without warming them."""
    targets = select_targets(settings, keys)

    async def _one(target: DomainTarget) -> List[str]:
        async with build_client(target, settings, transport=transport) as client:
            return await resolve_urls(client, target, settings)

    results = await asyncio.gather(*(_one(t) for t in targets.values()))
    return dict(zip(targets.keys(), results))


async def run(
    settings: Optional[Settings] = None,
    keys: Optional[Iterable[str]] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> RunLogger:
    """Warm all selected domains concurrently.

    The run log is finalized and flushed exactly once, whatever happens to
    the individual domains.
    """
    s = settings or get_settings()
    targets = select_targets(s, keys)
    run_log = RunLogger(
        s.apps_script_url,
        timeout=s.sink_timeout,
        utc_offset_hours=s.sheet_utc_offset_hours,
        zone_label=s.sheet_zone_label,
    )
    logger.info(
        "Run %s started: %s (%d domain(s))",
        run_log.run_id, run_log.started_at, len(targets),
    )

    api_client = httpx.AsyncClient(
        timeout=s.sink_timeout, follow_redirects=True, transport=transport
    )
    async with api_client:
        purger = PurgeClient(
            s.cloudflare_zone_id,
            s.cloudflare_api_token,
            client=api_client,
            timeout=s.purge_timeout,
        )
        if not purger.enabled:
            logger.info("Cloudflare credentials not set; purging disabled")
        try:
            results = await asyncio.gather(
                *(
                    warm_domain(t, s, run_log, purger, transport=transport)
                    for t in targets.values()
                ),
                return_exceptions=True,
            )
            for key, result in zip(targets.keys(), results):
                if isinstance(result, BaseException):
                    logger.error(
                        "[%s] Domain run failed: %r", key, result, exc_info=result
                    )
        finally:
            run_log.finalize()
            await run_log.flush(api_client)

    logger.info("Run %s finished: %s", run_log.run_id, run_log.finished_at)
    return run_log
