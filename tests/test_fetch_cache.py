# tests/test_fetch_cache.py
from __future__ import annotations

import hashlib

import pytest

from pacefetch.exceptions import CacheReadError, CacheWriteError
from pacefetch.fetch.cache import CacheGateway, cache_key, decode_entry


def _gateway(store=None, types=("text/html",), ttl=604800):
    return CacheGateway(store, ttl_s=ttl, content_types=types)


class _BrokenStore:
    def get(self, name):
        raise ConnectionError("redis down")

    def setex(self, name, time, value):
        raise ConnectionError("redis down")


# ------------------------------ keys / wire format ------------------------------------


def test_cache_key_is_namespaced_md5_of_url():
    url = "http://example.com/a"
    assert cache_key(url) == "cache:html:" + hashlib.md5(url.encode()).hexdigest()
    assert cache_key(url) != cache_key("http://example.com/b")


def test_decode_splits_at_first_newline_only():
    assert decode_entry("text/html\nline1\nline2") == ("text/html", "line1\nline2")
    assert decode_entry(b"text/html\n") == ("text/html", "")
    assert decode_entry("no-delimiter-here") is None
    assert decode_entry(None) is None


# ------------------------------ no store configured ------------------------------------


def test_without_store_lookup_misses_and_save_is_noop():
    gw = _gateway(None)
    assert gw.enabled is False
    assert gw.lookup("http://example.com/a") is None
    gw.save("http://example.com/a", "text/html", "hi")  # no error
    assert gw.lookup("http://example.com/a") is None


# ------------------------------ round trip ---------------------------------------------


def test_save_then_lookup_round_trips(store):
    gw = _gateway(store)
    url = "http://example.com/a"
    gw.save(url, "text/html; charset=utf-8", "<p>hi</p>\nmore")

    assert store.get(cache_key(url)) == b"text/html; charset=utf-8\n<p>hi</p>\nmore"
    assert gw.lookup(url) == ("text/html; charset=utf-8", "<p>hi</p>\nmore")
    # repeated lookups are stable
    assert gw.lookup(url) == gw.lookup(url)


def test_save_applies_configured_ttl(store):
    gw = _gateway(store, ttl=120)
    gw.save("http://example.com/ttl", "text/html", "x")
    ttl = store.ttl(cache_key("http://example.com/ttl"))
    assert 0 < ttl <= 120


def test_malformed_value_is_a_miss(store):
    gw = _gateway(store)
    url = "http://example.com/bad"
    store.set(cache_key(url), "garbage-without-delimiter")
    assert gw.lookup(url) is None


# ------------------------------ store failures -----------------------------------------


def test_store_errors_are_wrapped():
    gw = _gateway(_BrokenStore())
    with pytest.raises(CacheReadError) as ei:
        gw.lookup("http://example.com/a")
    assert isinstance(ei.value.__cause__, ConnectionError)

    with pytest.raises(CacheWriteError):
        gw.save("http://example.com/a", "text/html", "hi")


# ------------------------------ content-type allowlist ---------------------------------


@pytest.mark.parametrize(
    "content_type, expected",
    [
        ("text/html", True),
        ("text/html; charset=UTF-8", True),
        ("TEXT/HTML", True),
        ("application/xhtml+xml", False),
        ("application/json", False),
        ("", False),
        (None, False),
    ],
)
def test_is_cacheable_substring_case_insensitive(content_type, expected):
    assert _gateway(None).is_cacheable(content_type) is expected


def test_allowlist_entries_are_lowercased():
    gw = _gateway(None, types=("Application/JSON", "text/HTML"))
    assert gw.is_cacheable("application/json; charset=utf-8")
    assert gw.is_cacheable("text/html")
    assert not gw.is_cacheable("image/png")
