from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dotenv import load_dotenv


def _getenv_float(name: str, default: float) -> float:
    v = os.getenv(name, str(default)).strip()
    try:
        return float(v)
    except ValueError as err:
        raise ValueError(f"Environment variable {name} must be a number; got {v!r}") from err


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name, str(default)).strip()
    try:
        return int(v)
    except ValueError as err:
        raise ValueError(f"Environment variable {name} must be an integer; got {v!r}") from err


def _getenv_str(name: str, default: str) -> str:
    return os.getenv(name, default).strip()


def _getenv_list_str(name: str, default_csv: str) -> list[str]:
    raw = os.getenv(name, default_csv).strip()
    out: list[str] = []
    for tok in (t.strip() for t in raw.split(",")):
        if tok:
            out.append(tok)
    return out


# Load .env from project root if present
ROOT = Path(__file__).resolve().parents[1]
load_dotenv(ROOT / ".env", override=False)

# --------------------------------------------------------------------------------------
# Defaults (env-overridable)
# --------------------------------------------------------------------------------------

FETCH_USER_AGENT = _getenv_str(
    "FETCH_USER_AGENT",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_10_5) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/45.0.2454.101 Safari/537.36",
)

DEFAULT_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.8,en;q=0.6,fr;q=0.4,sk;q=0.2,zh-TW;q=0.2,ja;q=0.2",
    "Cache-Control": "max-age=0",
    "User-Agent": FETCH_USER_AGENT,
}

# Per-request transport timeout
DEFAULT_TIMEOUT_S = _getenv_float("FETCH_TIMEOUT_S", 10.0)
# Minimum gap between two dispatched requests
DEFAULT_DELAY_S = _getenv_float("FETCH_DELAY_S", 2.0)
DEFAULT_MAX_REDIRECT = _getenv_int("FETCH_MAX_REDIRECTS", 5)
# Only used when a cache store is configured (7 days)
DEFAULT_CACHE_TTL_S = _getenv_int("FETCH_CACHE_TTL_SEC", 3600 * 24 * 7)
# Substring allowlist; "text/html" also matches "text/html; charset=utf-8"
DEFAULT_CACHE_CONTENT_TYPES: tuple[str, ...] = tuple(
    _getenv_list_str("FETCH_CACHE_CONTENT_TYPES", "text/html")
)
FETCH_CACHE_REDIS_URL = _getenv_str("FETCH_CACHE_REDIS_URL", "")


def merge_headers(base: Mapping[str, str], override: Mapping[str, str] | None) -> dict[str, str]:
    """
    Merge `override` over `base`. Header names compare case-insensitively and the
    override's spelling wins, so "user-agent" replaces "User-Agent".
    """
    out = dict(base)
    if not override:
        return out
    for name, value in override.items():
        for existing in [k for k in out if k.lower() == name.lower()]:
            del out[existing]
        out[name] = value
    return out


@dataclass(frozen=True)
class SchedulerConfig:
    headers: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    timeout_s: float = DEFAULT_TIMEOUT_S
    delay_s: float = DEFAULT_DELAY_S
    max_redirect: int = DEFAULT_MAX_REDIRECT
    cache_ttl_s: int = DEFAULT_CACHE_TTL_S
    cache_content_types: tuple[str, ...] = DEFAULT_CACHE_CONTENT_TYPES
    # redis-py compatible: get(name) / setex(name, time, value). None disables caching.
    store: Any = None

    def __post_init__(self) -> None:
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "headers", merge_headers(DEFAULT_HEADERS, self.headers))
        object.__setattr__(
            self,
            "cache_content_types",
            tuple(t.lower() for t in self.cache_content_types),
        )
        if self.max_redirect < 0:
            raise ValueError(f"max_redirect must be >= 0; got {self.max_redirect}")
        if self.delay_s < 0:
            raise ValueError(f"delay_s must be >= 0; got {self.delay_s}")

    @classmethod
    def from_options(
        cls,
        *,
        headers: Mapping[str, str] | None = None,
        timeout_s: float | None = None,
        delay_s: float | None = None,
        max_redirect: int | None = None,
        cache_ttl_s: int | None = None,
        cache_content_types: Iterable[str] | None = None,
        store: Any = None,
    ) -> SchedulerConfig:
        """Build a config where every `None` falls back to the module default."""
        return cls(
            headers=dict(headers or {}),
            timeout_s=DEFAULT_TIMEOUT_S if timeout_s is None else float(timeout_s),
            delay_s=DEFAULT_DELAY_S if delay_s is None else float(delay_s),
            max_redirect=DEFAULT_MAX_REDIRECT if max_redirect is None else int(max_redirect),
            cache_ttl_s=DEFAULT_CACHE_TTL_S if cache_ttl_s is None else int(cache_ttl_s),
            cache_content_types=(
                DEFAULT_CACHE_CONTENT_TYPES
                if cache_content_types is None
                else tuple(cache_content_types)
            ),
            store=store,
        )

    @classmethod
    def from_env(cls) -> SchedulerConfig:
        """
        Defaults from the environment. A Redis store is attached only when
        FETCH_CACHE_REDIS_URL is set.
        """
        store = None
        url = _getenv_str("FETCH_CACHE_REDIS_URL", FETCH_CACHE_REDIS_URL)
        if url:
            from redis import Redis

            store = Redis.from_url(url)
        return cls.from_options(store=store)
