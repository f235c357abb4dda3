"""Command-line interface for the cache warmer."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from .config import DOMAINS, get_settings
from .runner import resolve_all, run

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    p = argparse.ArgumentParser(
        prog="cache-warmer",
        description="Warm CDN caches for every sitemap URL of the configured domains.",
    )
    p.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    # --- run ---
    run_p = sub.add_parser("run", help="Resolve sitemaps, warm URLs, purge cold ones")
    run_p.add_argument(
        "--domain",
        action="append",
        choices=sorted(DOMAINS),
        default=None,
        help="Domain key to warm (repeatable; default: all)",
    )
    run_p.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="URLs fetched concurrently per batch",
    )
    run_p.add_argument(
        "--delay", type=float, default=None, help="Seconds to pause between batches"
    )

    # --- sitemap ---
    sm = sub.add_parser("sitemap", help="Only list the URLs found in the sitemaps")
    sm.add_argument(
        "--domain",
        action="append",
        choices=sorted(DOMAINS),
        default=None,
        help="Domain key to resolve (repeatable; default: all)",
    )

    return p


def _configure_logging(verbose: bool) -> None:
    """Set up root logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    settings = get_settings()

    if args.cmd == "run":
        overrides = {}
        if args.batch_size is not None:
            if args.batch_size < 1:
                parser.error("--batch-size must be >= 1")
            overrides["batch_size"] = args.batch_size
        if args.delay is not None:
            if args.delay < 0:
                parser.error("--delay must be >= 0")
            overrides["batch_delay_seconds"] = args.delay
        if overrides:
            settings = settings.model_copy(update=overrides)

        run_log = asyncio.run(run(settings, args.domain))
        print(
            json.dumps(
                {
                    "run_id": run_log.run_id,
                    "sheet_name": run_log.sheet_name,
                    "rows": len(run_log.rows),
                    "errors": run_log.error_count,
                },
                indent=2,
            )
        )
        return 0

    if args.cmd == "sitemap":
        found = asyncio.run(resolve_all(settings, args.domain))
        print(json.dumps(found, indent=2))
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
