# scripts/fetch_url.py
"""
Quick manual fetcher for the paced scheduler.

Usage:

  python scripts/fetch_url.py --url "https://example.com/about" --verbose
  python scripts/fetch_url.py -u "https://example.com/" -u "https://example.com/a" --delay 1
  python scripts/fetch_url.py -u "https://example.com/" --redis-url redis://127.0.0.1:6379/0 --print-body

Notes:
- Designed to work from repo root without installing the package (adds project root to sys.path).
- Prints a final single-line RESULT per URL that scripts can parse.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

# --- make pacefetch/ importable when running from repo root -----------------------------------------
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from pacefetch import FetchError, RequestScheduler, SchedulerConfig  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser(description="Fetch URLs one at a time with pacing and caching.")
    ap.add_argument(
        "-u", "--url", action="append", required=True, help="URL to fetch (repeatable)"
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Verbose (DEBUG) logging")
    ap.add_argument("--parse", action="store_true", help="Parse the body as HTML")
    ap.add_argument("--delay", type=float, help="Seconds between dispatches")
    ap.add_argument("--redis-url", help="Cache pages in this Redis instance")
    ap.add_argument(
        "--print-body", action="store_true", help="Write response text to stdout after RESULT"
    )
    args = ap.parse_args()

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

    store = None
    if args.redis_url:
        from redis import Redis

        store = Redis.from_url(args.redis_url)

    config = SchedulerConfig.from_options(delay_s=args.delay, store=store)

    failures = 0
    with RequestScheduler(config) as scheduler:
        for url in args.url:
            start = time.monotonic()
            try:
                page = scheduler.get(url, parse=args.parse)
            except FetchError as e:
                failures += 1
                elapsed = time.monotonic() - start
                print(f"RESULT url={url} ok=False error={e!s} elapsed_s={elapsed:.3f}")
                continue

            elapsed = time.monotonic() - start
            title = ""
            if page.document is not None and page.document.title is not None:
                title = (page.document.title.string or "").strip()
            print(
                "RESULT "
                f"url={url} "
                f"ok=True "
                f"content_type={page.content_type or '-'} "
                f"chars={len(page.text)} "
                f"parse_error={page.error is not None} "
                f"elapsed_s={elapsed:.3f}"
                + (f" title={title!r}" if title else "")
            )
            if args.print_body and page.text:
                sys.stdout.write(page.text)
                if not page.text.endswith("\n"):
                    sys.stdout.write("\n")

    # Exit code policy: 1 if any URL failed, else 0
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
