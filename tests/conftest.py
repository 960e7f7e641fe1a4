# tests/conftest.py
from __future__ import annotations

import contextlib
import sys
import threading
import time
import types
from collections.abc import Iterator
from pathlib import Path

import fakeredis
import pytest

# Ensure project root importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pacefetch.fetch.client import TransportResponse  # noqa: E402


class FakeTransport:
    """
    In-memory transport. `routes` maps URL → response, exception, or a list of those
    (consumed one per call, last one sticks). Records every call with its monotonic time.
    """

    def __init__(self, routes: dict | None = None, *, latency_s: float = 0.0):
        self.routes = dict(routes or {})
        self.latency_s = latency_s
        self.calls: list[types.SimpleNamespace] = []
        self._lock = threading.Lock()
        self._in_flight = 0
        self.max_in_flight = 0

    def fetch(self, url, headers, timeout):
        with self._lock:
            self.calls.append(
                types.SimpleNamespace(
                    url=url, headers=dict(headers), timeout=timeout, at=time.monotonic()
                )
            )
            self._in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self._in_flight)
            route = self.routes.get(url)
            if isinstance(route, list):
                outcome = route.pop(0) if len(route) > 1 else route[0]
            else:
                outcome = route
        try:
            if self.latency_s:
                time.sleep(self.latency_s)
            if outcome is None:
                return TransportResponse(404, {"Content-Type": "text/plain"}, "not found")
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            with self._lock:
                self._in_flight -= 1

    @property
    def urls(self) -> list[str]:
        return [c.url for c in self.calls]

    def close(self) -> None:
        pass


def html(body: str, status: int = 200, content_type: str = "text/html") -> TransportResponse:
    return TransportResponse(status, {"Content-Type": content_type}, body)


def redirect(location: str, status: int = 302) -> TransportResponse:
    return TransportResponse(status, {"Location": location}, "")


class Recorder:
    """Callback that records (error, content_type, text, document) and lets tests wait."""

    def __init__(self):
        self.results: list[tuple] = []
        self._cond = threading.Condition()

    def __call__(self, *args):
        with self._cond:
            self.results.append(args)
            self._cond.notify_all()

    def wait(self, n: int = 1, timeout: float = 5.0) -> list[tuple]:
        with self._cond:
            ok = self._cond.wait_for(lambda: len(self.results) >= n, timeout)
        assert ok, f"expected {n} callbacks, got {len(self.results)}"
        return self.results


@pytest.fixture
def store():
    return fakeredis.FakeRedis()


@pytest.fixture
def recorder():
    return Recorder()


@contextlib.contextmanager
def fake_clock(monkeypatch) -> Iterator[types.SimpleNamespace]:
    """
    Freeze time.monotonic() and make time.sleep(dt) advance it by dt.

    Exposes:
      now() -> float            current monotonic time
      advance(dt)               manually advance without calling sleep()
      slept() -> float          total seconds 'slept'
      reset_slept()             zero the sleep accumulator
    """
    t = {"now": 1_000_000.0, "slept": 0.0}

    def monotonic():
        return t["now"]

    def sleep(dt):
        dt = float(dt)
        if dt <= 0:
            return
        t["slept"] += dt
        t["now"] += dt

    monkeypatch.setattr("time.monotonic", monotonic)
    monkeypatch.setattr("time.sleep", sleep)

    yield types.SimpleNamespace(
        now=lambda: t["now"],
        advance=lambda dt: t.__setitem__("now", t["now"] + float(dt)),
        slept=lambda: t["slept"],
        reset_slept=lambda: t.__setitem__("slept", 0.0),
    )
