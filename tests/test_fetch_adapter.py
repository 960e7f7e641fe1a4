# tests/test_fetch_adapter.py
from __future__ import annotations

from bs4 import BeautifulSoup

from pacefetch.exceptions import ParseError
from pacefetch.fetch.adapter import adapt, to_text


def test_to_text_decodes_bytes_and_passes_str():
    assert to_text(b"caf\xc3\xa9") == "café"
    assert to_text("plain") == "plain"
    assert to_text(None) == ""


def test_without_document_request_returns_text_and_none(recorder):
    adapt(recorder, False, "text/html", b"hi")
    assert recorder.results == [(None, "text/html", "hi", None)]


def test_document_request_parses_with_beautifulsoup(recorder):
    adapt(recorder, True, "text/html", "<html><title>T</title><p class='x'>hi</p></html>")
    err, ct, text, doc = recorder.results[0]
    assert err is None
    assert ct == "text/html"
    assert text.startswith("<html>")
    assert isinstance(doc, BeautifulSoup)
    assert doc.title.string == "T"
    assert doc.select_one("p.x").get_text() == "hi"


def test_parse_failure_delivers_error_alongside_text(recorder):
    def broken_parser(text):
        raise ValueError("unparseable")

    adapt(recorder, True, "text/html", "<<<", parser=broken_parser)
    err, ct, text, doc = recorder.results[0]
    assert isinstance(err, ParseError)
    assert isinstance(err.__cause__, ValueError)
    assert ct == "text/html"
    assert text == "<<<"
    assert doc is None


def test_parser_not_invoked_when_document_not_requested(recorder):
    calls = []
    adapt(recorder, False, "text/html", "x", parser=lambda t: calls.append(t))
    assert calls == []
