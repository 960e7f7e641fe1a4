# pacefetch/fetch/cache.py
from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable
from typing import Any, Protocol

from ..exceptions import CacheReadError, CacheWriteError

log = logging.getLogger(__name__)

# --------------------------------------------------------------------------------------
# Keys / wire format
# --------------------------------------------------------------------------------------

CACHE_KEY_PREFIX = "cache:html:"
# content type and body are joined by the first newline
DELIMITER = "\n"


class CacheStore(Protocol):
    """The subset of the redis-py client the gateway relies on."""

    def get(self, name: str) -> Any: ...

    def setex(self, name: str, time: int, value: str) -> Any: ...


def normalize_url(url: str) -> str:
    return url.strip()


def cache_key(url: str) -> str:
    digest = hashlib.md5(normalize_url(url).encode("utf-8")).hexdigest()
    return f"{CACHE_KEY_PREFIX}{digest}"


def encode_entry(content_type: str, body: str) -> str:
    return f"{content_type}{DELIMITER}{body}"


def decode_entry(data: Any) -> tuple[str, str] | None:
    """
    Split a stored value into (content_type, body). Returns None for absent or
    delimiter-free values so callers treat them as misses.
    """
    if data is None:
        return None
    if isinstance(data, (bytes, bytearray)):
        data = bytes(data).decode("utf-8", "replace")
    i = data.find(DELIMITER)
    if i == -1:
        return None
    return data[:i], data[i + 1 :]


# --------------------------------------------------------------------------------------
# Gateway
# --------------------------------------------------------------------------------------


class CacheGateway:
    """
    Translate URLs to cache keys and (content_type, body) tuples to flat strings.

    With no store configured every lookup misses and every store is a no-op.
    """

    def __init__(
        self,
        store: CacheStore | None = None,
        *,
        ttl_s: int,
        content_types: Iterable[str],
    ) -> None:
        self.store = store
        self.ttl_s = int(ttl_s)
        self.content_types = tuple(t.lower() for t in content_types)

    @property
    def enabled(self) -> bool:
        return self.store is not None

    def lookup(self, url: str) -> tuple[str, str] | None:
        if self.store is None:
            return None
        key = cache_key(url)
        try:
            data = self.store.get(key)
        except Exception as exc:
            raise CacheReadError(f"cache read failed for {url}: {exc}") from exc
        entry = decode_entry(data)
        if data is not None and entry is None:
            log.warning("ignoring malformed cache value under %s", key)
        return entry

    def save(self, url: str, content_type: str, body: str) -> None:
        if self.store is None:
            return
        key = cache_key(url)
        try:
            self.store.setex(key, self.ttl_s, encode_entry(content_type, body))
        except Exception as exc:
            raise CacheWriteError(f"cache write failed for {url}: {exc}") from exc
        log.debug("save cache: [content_type=%s, length=%s] %s", content_type, len(body), url)

    def is_cacheable(self, content_type: str | None) -> bool:
        if not content_type:
            return False
        ct = content_type.lower()
        return any(t in ct for t in self.content_types)


__all__ = [
    "CACHE_KEY_PREFIX",
    "CacheGateway",
    "CacheStore",
    "cache_key",
    "decode_entry",
    "encode_entry",
    "normalize_url",
]
