"""Models shared across the warmer."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class DomainTarget(BaseModel):
    """One site to warm and the network identity used to reach it."""

    model_config = ConfigDict(frozen=True)

    key: str
    base_url: str
    proxy: Optional[str] = None
    user_agent: str

    @property
    def sitemap_index_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/sitemap_index.xml"


@dataclass(frozen=True)
class FetchSuccess:
    """A warmed URL and the cache diagnostics read from its response."""

    url: str
    status: int
    elapsed_ms: int
    cf_cache: str
    ls_cache: str
    cf_ray: str
    edge: str


@dataclass(frozen=True)
class FetchFailure:
    """A URL that could not be fetched after retries."""

    url: str
    elapsed_ms: int
    message: str


class LogRow(BaseModel):
    """One row of the run's audit trail, as sent to the logging sink."""

    run_id: str
    started_at: str
    finished_at: Optional[str] = None
    country: str = ""
    url: str = ""
    status: Optional[int] = None
    cf_cache: str = ""
    ls_cache: str = ""
    cf_ray: str = ""
    response_ms: Optional[int] = None
    error: bool = False
    message: str = ""

    def to_row(self) -> List[Any]:
        """Serialize to the sink's fixed column order."""
        return [
            self.run_id,
            self.started_at,
            self.finished_at,
            self.country,
            self.url,
            "" if self.status is None else self.status,
            self.cf_cache,
            self.ls_cache,
            self.cf_ray,
            "" if self.response_ms is None else self.response_ms,
            1 if self.error else 0,
            self.message,
        ]
