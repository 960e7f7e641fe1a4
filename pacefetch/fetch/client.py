# pacefetch/fetch/client.py
from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urljoin

import httpx

from ..exceptions import TransportError

log = logging.getLogger(__name__)

# --------------------------------------------------------------------------------------------------
# Results / transport contract
# --------------------------------------------------------------------------------------------------


@dataclass
class TransportResponse:
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | str = b""


@dataclass
class FetchResponse:
    url: str  # URL originally requested
    effective_url: str  # URL of the final 200 after redirects
    status: int
    headers: Mapping[str, str]
    body: bytes | str
    redirects: int = 0

    @property
    def content_type(self) -> str | None:
        return header_get(self.headers, "Content-Type")


class Transport(Protocol):
    def fetch(
        self, url: str, headers: Mapping[str, str], timeout: float
    ) -> TransportResponse: ...


# --------------------------------------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------------------------------------


def header_get(headers: Mapping[str, str] | None, name: str) -> str | None:
    """Case-insensitive header getter that tolerates plain dicts or httpx.Headers."""
    if not headers:
        return None
    v = headers.get(name)
    if v is not None:
        return v
    for k, v in headers.items():
        if isinstance(k, str) and k.lower() == name.lower():
            return v
    return None


def _now() -> float:
    return time.monotonic()


# --------------------------------------------------------------------------------------------------
# Default transport
# --------------------------------------------------------------------------------------------------


class HttpxTransport:
    """
    One GET per call over a shared httpx.Client. Redirects are NOT followed here;
    RedirectFetcher walks them so it can bound the hop count itself.
    """

    def __init__(self, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=False)

    def fetch(self, url: str, headers: Mapping[str, str], timeout: float) -> TransportResponse:
        try:
            resp = self._client.get(url, headers=dict(headers), timeout=timeout)
        except httpx.RequestError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}", url=url) from exc
        return TransportResponse(status=int(resp.status_code), headers=resp.headers, body=resp.text)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# --------------------------------------------------------------------------------------------------
# Redirect-following fetcher
# --------------------------------------------------------------------------------------------------


class RedirectFetcher:
    """
    Resolve a URL through redirects into a final 200 response.

    Flow per hop:
      1) transport.fetch(url) → TransportError propagates
      2) Location header present → follow (bounded by max_redirect)
      3) status == 200 → FetchResponse
      4) anything else → TransportError("invalid status code N")
    """

    def __init__(self, transport: Transport, *, max_redirect: int) -> None:
        self.transport = transport
        self.max_redirect = int(max_redirect)

    def fetch(self, url: str, headers: Mapping[str, str], timeout: float) -> FetchResponse:
        current = url
        hops = 0
        t = _now()
        while True:
            log.debug("fetch(hop=%s) request: %s", hops, current)
            resp = self.transport.fetch(current, headers, timeout)

            location = header_get(resp.headers, "Location")
            if location:
                log.debug("fetch(hop=%s) redirect: %s => %s", hops, current, location)
                if hops >= self.max_redirect:
                    raise TransportError("max redirect", url=url, status=resp.status)
                hops += 1
                current = urljoin(current, location)
                continue

            if resp.status != 200:
                log.debug("fetch(spent=%.3fs): status=%s %s", _now() - t, resp.status, current)
                raise TransportError(
                    f"invalid status code {resp.status}", url=url, status=resp.status
                )

            log.debug("fetch(spent=%.3fs) done: %s", _now() - t, current)
            return FetchResponse(
                url=url,
                effective_url=current,
                status=resp.status,
                headers=resp.headers,
                body=resp.body,
                redirects=hops,
            )


__all__ = [
    "FetchResponse",
    "HttpxTransport",
    "RedirectFetcher",
    "Transport",
    "TransportResponse",
    "header_get",
]
