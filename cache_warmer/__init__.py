"""Cache Warmer — sitemap-driven CDN cache warming with conditional purge."""

from .config import Settings, get_settings
from .http_client import is_transient_error, retryable_get
from .models import DomainTarget, FetchFailure, FetchSuccess, LogRow
from .purge import PurgeClient
from .run_log import RunLogger
from .runner import run, warm_domain
from .sitemap import resolve_urls
from .warmer import warm_urls

__all__ = [
    "Settings",
    "get_settings",
    "DomainTarget",
    "FetchSuccess",
    "FetchFailure",
    "LogRow",
    "is_transient_error",
    "retryable_get",
    "resolve_urls",
    "warm_urls",
    "PurgeClient",
    "RunLogger",
    "run",
    "warm_domain",
]
