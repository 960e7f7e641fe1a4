# pacefetch/scheduler.py
from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .config import SchedulerConfig, merge_headers
from .exceptions import (
    CacheReadError,
    CacheWriteError,
    FetchError,
    ParameterError,
    ParseError,
    SchedulerClosed,
    TransportError,
)
from .fetch.adapter import Callback, Parser, adapt, parse_html, to_text
from .fetch.cache import CacheGateway
from .fetch.client import HttpxTransport, RedirectFetcher, Transport
from .fetch import throttle
from .fetch.throttle import PacingClock

log = logging.getLogger(__name__)

# --------------------------------------------------------------------------------------------------
# Requests / tasks
# --------------------------------------------------------------------------------------------------


@dataclass
class FetchRequest:
    url: str | None
    headers: Mapping[str, str] | None = None
    parse: bool = False

    @classmethod
    def coerce(cls, request: FetchRequest | Mapping[str, Any] | None) -> FetchRequest:
        if isinstance(request, FetchRequest):
            return request
        request = request or {}
        parse = request.get("parse", request.get("want_parsed_document", False))
        return cls(url=request.get("url"), headers=request.get("headers"), parse=parse)


@dataclass
class Task:
    url: str
    headers: dict[str, str]
    parse: bool
    callback: Callback
    number: int = 0
    done: bool = False


@dataclass
class PageResult:
    url: str
    content_type: str | None
    text: str
    document: Any = None
    error: ParseError | None = None


@dataclass
class _Waiter:
    event: threading.Event = field(default_factory=threading.Event)
    args: tuple = ()

    def __call__(self, *args) -> None:
        self.args = args
        self.event.set()


# --------------------------------------------------------------------------------------------------
# Scheduler
# --------------------------------------------------------------------------------------------------


class RequestScheduler:
    """
    Single-lane fetch scheduler.

    Flow:
      1) submit() validates, merges headers and checks the cache
      2) cache hit → adapter → callback on the caller's thread
      3) cache miss → FIFO queue; a worker thread drains it one task at a time,
         at least `delay_s` apart (dispatch to dispatch)
      4) fetched pages are cached when their content type is allowlisted,
         then handed to the adapter on the worker thread

    Every accepted request gets exactly one callback.
    """

    def __init__(
        self,
        config: SchedulerConfig | None = None,
        *,
        transport: Transport | None = None,
        parser: Parser = parse_html,
    ) -> None:
        self.config = config or SchedulerConfig()
        self._owns_transport = transport is None
        self.transport = transport or HttpxTransport()
        self.parser = parser
        self.fetcher = RedirectFetcher(self.transport, max_redirect=self.config.max_redirect)
        self.cache = CacheGateway(
            self.config.store,
            ttl_s=self.config.cache_ttl_s,
            content_types=self.config.cache_content_types,
        )

        self._tasks: deque[Task] = deque()
        self._cond = threading.Condition(threading.Lock())
        self._pacer = PacingClock(self.config.delay_s)
        self._counter = itertools.count()
        self._closed = False
        self._worker = threading.Thread(target=self._drain, name="pacefetch-drain", daemon=True)
        self._worker.start()

    # ---- public API ------------------------------------------------------------------------------

    def submit(
        self,
        request: FetchRequest | Mapping[str, Any] | None,
        callback: Callback,
    ) -> None:
        req = FetchRequest.coerce(request)
        if not req.url:
            callback(ParameterError("missing parameter `url`"), None, None, None)
            return

        headers = merge_headers(self.config.headers, req.headers)
        parse = bool(req.parse)
        url = req.url
        log.debug(
            "request[timeout=%s, delay=%s]: url=%s, headers=%s, parse=%s",
            self.config.timeout_s,
            self.config.delay_s,
            url,
            headers,
            parse,
        )

        with self._cond:
            closed = self._closed
        if closed:
            callback(SchedulerClosed("scheduler is closed"), None, None, None)
            return

        try:
            hit = self.cache.lookup(url)
        except CacheReadError as exc:
            log.warning("cache lookup failed for %s: %s", url, exc)
            callback(exc, None, None, None)
            return

        if hit is not None:
            content_type, body = hit
            log.debug("get from cache: [content_type=%s, length=%s] %s", content_type, len(body), url)
            adapt(callback, parse, content_type, body, parser=self.parser)
            return

        task = Task(url=url, headers=headers, parse=parse, callback=callback)
        with self._cond:
            if self._closed:
                closed = True
            else:
                closed = False
                task.number = next(self._counter)
                self._tasks.append(task)
                log.debug("add to task list[#%s, depth=%s]: %s", task.number, len(self._tasks), url)
                self._cond.notify()
        if closed:
            callback(SchedulerClosed("scheduler is closed"), None, None, None)

    def get(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        parse: bool = False,
        timeout: float | None = None,
    ) -> PageResult:
        """
        Blocking convenience around submit(). Raises the delivered error, except
        ParseError, which is returned on PageResult.error next to the raw text.
        """
        if threading.current_thread() is self._worker:
            raise RuntimeError("get() called from a result callback would block the drain worker")
        waiter = _Waiter()
        self.submit(FetchRequest(url=url, headers=headers, parse=parse), waiter)
        if not waiter.event.wait(timeout):
            raise TimeoutError(f"no result for {url} within {timeout}s")
        err, content_type, text, document = waiter.args
        if err is not None and not isinstance(err, ParseError):
            raise err
        return PageResult(
            url=url, content_type=content_type, text=text or "", document=document, error=err
        )

    @property
    def pending(self) -> int:
        with self._cond:
            return len(self._tasks)

    def close(self, timeout: float | None = None) -> None:
        """Stop accepting work, drain what is queued and join the worker."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        self._worker.join(timeout)
        if self._owns_transport and not self._worker.is_alive():
            self.transport.close()

    def __call__(
        self,
        request: FetchRequest | Mapping[str, Any] | None,
        callback: Callback,
    ) -> None:
        self.submit(request, callback)

    def __enter__(self) -> RequestScheduler:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---- worker ----------------------------------------------------------------------------------

    def _next_task(self) -> Task | None:
        """Block until a task may be dispatched; None once closed and drained."""
        while True:
            with self._cond:
                while not self._tasks and not self._closed:
                    self._cond.wait()
                if not self._tasks:
                    return None
                wait = self._pacer.remaining()
                if wait <= 0:
                    task = self._tasks.popleft()
                    self._pacer.mark_dispatch()
                    return task
            # sleep outside the lock so submit() is never blocked by pacing
            throttle.sleep(wait)

    def _drain(self) -> None:
        while True:
            task = self._next_task()
            if task is None:
                return
            try:
                self._run(task)
            except Exception as exc:
                if task.done:
                    log.exception("callback for task #%s (%s) raised", task.number, task.url)
                else:
                    log.exception("task #%s (%s) failed unexpectedly", task.number, task.url)
                    err = FetchError(f"{type(exc).__name__}: {exc}")
                    err.__cause__ = exc
                    self._finish(task, err, None, None, None)

    def _finish(self, task: Task, *args) -> None:
        task.done = True
        task.callback(*args)

    def _run(self, task: Task) -> None:
        log.debug("process request[#%s]: %s", task.number, task.url)
        t = time.monotonic()
        try:
            resp = self.fetcher.fetch(task.url, task.headers, self.config.timeout_s)
        except TransportError as exc:
            log.warning("request[#%s] failed: %s (%s)", task.number, exc, task.url)
            self._finish(task, exc, None, None, None)
            return
        log.debug("request callback[#%s]: spent=%.3fs", task.number, time.monotonic() - t)

        content_type = resp.content_type
        text = to_text(resp.body)
        if self.cache.enabled and self.cache.is_cacheable(content_type):
            try:
                self.cache.save(task.url, content_type, text)
            except CacheWriteError as exc:
                log.warning("request[#%s] cache write failed: %s", task.number, exc)
                self._finish(task, exc, None, None, None)
                return

        def deliver(*args) -> None:
            self._finish(task, *args)

        adapt(deliver, task.parse, content_type, text, parser=self.parser)


# --------------------------------------------------------------------------------------------------
# Factory
# --------------------------------------------------------------------------------------------------


def make_requester(
    *,
    transport: Transport | None = None,
    parser: Parser = parse_html,
    **options: Any,
) -> RequestScheduler:
    """
    Build a scheduler from keyword options. The scheduler is callable like
    submit(), and close() stops its worker and transport.

    Usage:
        request = make_requester(delay_s=1.0, store=Redis())
        request({"url": "https://example.com/", "parse": True}, on_page)
        ...
        request.close()
    """
    scheduler = RequestScheduler(
        SchedulerConfig.from_options(**options), transport=transport, parser=parser
    )
    return scheduler


__all__ = [
    "FetchRequest",
    "PageResult",
    "RequestScheduler",
    "Task",
    "make_requester",
]
