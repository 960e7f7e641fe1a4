# pacefetch/exceptions.py
"""
Shared exception classes for the fetch pipeline.

Every error a caller can see is a FetchError. Errors are delivered through the
request callback (or synchronously for parameter errors) and never escape the
scheduler's worker thread.
"""

from __future__ import annotations


class FetchError(Exception):
    """Base class for everything the scheduler reports to a callback."""


class ParameterError(FetchError, TypeError):
    """
    Raised when a request is malformed before it is queued.

    Examples:
        - missing or empty `url`
    """


class TransportError(FetchError):
    """
    Raised when a fetch fails on the network side.

    Covers connection/timeout failures, non-200 final statuses and
    redirect chains that exceed the configured limit.
    """

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


class CacheReadError(FetchError):
    """Raised when the cache store fails on a lookup."""


class CacheWriteError(FetchError):
    """Raised when the cache store fails while saving a fetched page."""


class ParseError(FetchError):
    """Raised when a body cannot be parsed into a document."""


class SchedulerClosed(FetchError):
    """Raised when a request is submitted to a scheduler that has been closed."""


__all__ = [
    "FetchError",
    "ParameterError",
    "TransportError",
    "CacheReadError",
    "CacheWriteError",
    "ParseError",
    "SchedulerClosed",
]
