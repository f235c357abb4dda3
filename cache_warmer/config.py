"""Configuration for the cache warmer using pydantic-settings.

Secrets and tuning knobs come from environment variables (or a local .env).
The set of domains to warm is static data in ``DOMAINS``; proxies for each
domain are looked up from the ``BRD_PROXY_<KEY>`` variables.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import DomainTarget

logger = logging.getLogger(__name__)

# key -> (base URL, user agent)
DOMAINS: Dict[str, Tuple[str, str]] = {
    "id": (
        "https://divemasterlembongan.com",
        "DiveMasterLembongan-CacheWarmer-ID/1.0",
    ),
}


class Settings(BaseSettings):
    """Warmer configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    apps_script_url: Optional[str] = None

    brd_proxy_id: Optional[str] = None

    cloudflare_zone_id: Optional[str] = None
    cloudflare_api_token: Optional[str] = None

    request_timeout: float = 30.0
    sitemap_timeout: float = 15.0
    warm_timeout: float = 15.0
    sink_timeout: float = 20.0
    purge_timeout: float = 30.0

    max_attempts: int = Field(default=3, ge=1)
    retry_wait_seconds: float = Field(default=2.0, ge=0)

    batch_size: int = Field(default=1, ge=1)
    batch_delay_seconds: float = Field(default=2.0, ge=0)

    sheet_utc_offset_hours: int = 8
    sheet_zone_label: str = "WITA"

    def proxy_for(self, key: str) -> Optional[str]:
        """Return the proxy URL configured for a domain key, if any."""
        return getattr(self, f"brd_proxy_{key}", None) or None

    def domain_targets(self) -> Dict[str, DomainTarget]:
        """Build the immutable per-domain identities for this run."""
        targets: Dict[str, DomainTarget] = {}
        for key, (base_url, user_agent) in DOMAINS.items():
            proxy = self.proxy_for(key)
            if not proxy:
                logger.debug("No proxy configured for %s; connecting directly", key)
            targets[key] = DomainTarget(
                key=key,
                base_url=base_url,
                proxy=proxy,
                user_agent=user_agent,
            )
        return targets


def get_settings() -> Settings:
    """Load settings from the environment."""
    return Settings()
