"""Cloudflare single-URL cache purge. Best effort: failures are only logged."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"


class PurgeClient:
    """Purges individual URLs from a Cloudflare zone."""

    def __init__(
        self,
        zone_id: Optional[str],
        api_token: Optional[str],
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ) -> None:
        self.zone_id = zone_id
        self.api_token = api_token
        self.timeout = timeout
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.zone_id and self.api_token)

    @property
    def endpoint(self) -> str:
        return f"{CLOUDFLARE_API_BASE}/zones/{self.zone_id}/purge_cache"

    async def purge(self, url: str) -> bool:
        """Purge one URL. Returns True only when Cloudflare reports success."""
        if not self.enabled:
            return False

        headers = {
            "authorization": f"Bearer {self.api_token}",
            "content-type": "application/json",
        }
        payload = {"files": [url]}
        try:
            if self._client is not None:
                resp = await self._client.post(
                    self.endpoint, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(self.endpoint, json=payload, headers=headers)
            body = resp.json()
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.warning("Error purging Cloudflare: %s (%s)", url, exc)
            return False

        if not (isinstance(body, dict) and body.get("success") is True):
            logger.warning(
                "Failed to purge Cloudflare: %s (HTTP %d)", url, resp.status_code
            )
            return False

        logger.debug("Purged Cloudflare: %s", url)
        return True
