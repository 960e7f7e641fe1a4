# pacefetch/__init__.py
"""
Single-lane, rate-limited page fetch scheduler.

Crawler-facing API:
  - RequestScheduler(config).submit(request, callback)
  - RequestScheduler.get(url) -> PageResult
  - make_requester(**options) -> submit function
"""

from .config import (
    DEFAULT_CACHE_CONTENT_TYPES,
    DEFAULT_CACHE_TTL_S,
    DEFAULT_DELAY_S,
    DEFAULT_HEADERS,
    DEFAULT_MAX_REDIRECT,
    DEFAULT_TIMEOUT_S,
    SchedulerConfig,
)
from .exceptions import (
    CacheReadError,
    CacheWriteError,
    FetchError,
    ParameterError,
    ParseError,
    SchedulerClosed,
    TransportError,
)
from .scheduler import (
    FetchRequest,
    PageResult,
    RequestScheduler,
    make_requester,
)

__all__ = [
    # scheduler
    "RequestScheduler",
    "FetchRequest",
    "PageResult",
    "make_requester",
    # config
    "SchedulerConfig",
    "DEFAULT_HEADERS",
    "DEFAULT_TIMEOUT_S",
    "DEFAULT_DELAY_S",
    "DEFAULT_MAX_REDIRECT",
    "DEFAULT_CACHE_TTL_S",
    "DEFAULT_CACHE_CONTENT_TYPES",
    # errors
    "FetchError",
    "ParameterError",
    "TransportError",
    "CacheReadError",
    "CacheWriteError",
    "ParseError",
    "SchedulerClosed",
]

__version__ = "0.1.0"
