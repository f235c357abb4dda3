"""In-memory run log, flushed once to the Apps Script logging sink."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, List, Optional

import httpx

from .models import LogRow

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime) -> str:
    ts = dt.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return ts.replace("+00:00", "Z")


def sheet_name_for_run(
    started: datetime, *, utc_offset_hours: int = 8, zone_label: str = "WITA"
) -> str:
    """Name the sheet after the run's local start time, e.g. 2026-01-02_08-00-00_WITA."""
    local = started.astimezone(timezone(timedelta(hours=utc_offset_hours)))
    return f"{local.strftime('%Y-%m-%d_%H-%M-%S')}_{zone_label}"


class RunLogger:
    """Accumulates LogRows for one run.

    Rows are appended from many concurrent tasks on the same event loop, so
    appends are already serialized.
    """

    def __init__(
        self,
        sink_url: Optional[str] = None,
        *,
        timeout: float = 20.0,
        utc_offset_hours: int = 8,
        zone_label: str = "WITA",
    ) -> None:
        self.sink_url = sink_url
        self.timeout = timeout
        self.run_id = uuid.uuid4().hex
        self.started = _utc_now()
        self.started_at = _iso(self.started)
        self.finished_at: Optional[str] = None
        self.sheet_name = sheet_name_for_run(
            self.started, utc_offset_hours=utc_offset_hours, zone_label=zone_label
        )
        self.rows: List[LogRow] = []

    def log(self, **fields: Any) -> LogRow:
        """Append one row. Unset fields default to empty values."""
        row = LogRow(
            run_id=self.run_id,
            started_at=self.started_at,
            finished_at=self.finished_at,
            **fields,
        )
        self.rows.append(row)
        return row

    def finalize(self) -> None:
        """Stamp the finish time onto the run and every row logged so far."""
        self.finished_at = _iso(_utc_now())
        self.rows = [
            r.model_copy(update={"finished_at": self.finished_at}) for r in self.rows
        ]

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.rows if r.error)

    def payload(self) -> dict:
        return {"sheetName": self.sheet_name, "rows": [r.to_row() for r in self.rows]}

    async def flush(self, client: Optional[httpx.AsyncClient] = None) -> bool:
        """Send all rows to the sink in one request.

        Returns True on a 2xx response. Never raises: a failed flush is only
        logged.
        """
        if not self.sink_url or not self.rows:
            logger.debug(
                "Nothing to flush (sink configured=%s, rows=%d)",
                bool(self.sink_url), len(self.rows),
            )
            return False

        headers = {"content-type": "application/json"}
        try:
            if client is not None:
                resp = await client.post(
                    self.sink_url, json=self.payload(), headers=headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient(
                    timeout=self.timeout, follow_redirects=True
                ) as c:
                    resp = await c.post(self.sink_url, json=self.payload(), headers=headers)
            resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Apps Script logging error: %s", exc)
            return False

        logger.info("Flushed %d row(s) to sheet %s", len(self.rows), self.sheet_name)
        return True
