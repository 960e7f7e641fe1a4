# pacefetch/fetch/adapter.py
"""Turn a raw body into the (error, content_type, text, document) callback arguments."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from bs4 import BeautifulSoup

from ..exceptions import ParseError

# (error, content_type, body_text, document_or_None)
Callback = Callable[[Exception | None, str | None, str | None, Any], None]
Parser = Callable[[str], Any]


def to_text(body: bytes | str | None) -> str:
    if body is None:
        return ""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode("utf-8", "replace")
    return str(body)


def parse_html(text: str) -> BeautifulSoup:
    return BeautifulSoup(text, "html.parser")


def adapt(
    callback: Callback,
    want_document: bool,
    content_type: str | None,
    body: bytes | str | None,
    *,
    parser: Parser = parse_html,
) -> None:
    """
    Deliver a response to `callback`.

    A parse failure is reported as a ParseError with the raw text still attached;
    it is never treated as a failed fetch.
    """
    text = to_text(body)
    if not want_document:
        callback(None, content_type, text, None)
        return
    try:
        document = parser(text)
    except Exception as exc:
        err = exc if isinstance(exc, ParseError) else ParseError(str(exc) or type(exc).__name__)
        if err is not exc:
            err.__cause__ = exc
        callback(err, content_type, text, None)
        return
    callback(None, content_type, text, document)


__all__ = ["Callback", "Parser", "adapt", "parse_html", "to_text"]
