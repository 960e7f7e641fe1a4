# pacefetch/fetch/__init__.py
"""
Fetch building blocks: redis-backed page cache, redirect-following fetcher,
response adapter and the pacing clock.

Public entry points:
  - CacheGateway, cache_key
  - RedirectFetcher, HttpxTransport, Transport, TransportResponse, FetchResponse
  - adapt, parse_html, to_text
  - PacingClock
"""

from .adapter import (
    adapt,
    parse_html,
    to_text,
)
from .cache import (
    CACHE_KEY_PREFIX,
    CacheGateway,
    CacheStore,
    cache_key,
)
from .client import (
    FetchResponse,
    HttpxTransport,
    RedirectFetcher,
    Transport,
    TransportResponse,
    header_get,
)
from .throttle import PacingClock

__all__ = [
    # cache
    "CACHE_KEY_PREFIX",
    "CacheGateway",
    "CacheStore",
    "cache_key",
    # client
    "FetchResponse",
    "HttpxTransport",
    "RedirectFetcher",
    "Transport",
    "TransportResponse",
    "header_get",
    # adapter
    "adapt",
    "parse_html",
    "to_text",
    # throttle
    "PacingClock",
]
