# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import json

import httpx
import pytest

from httpbridge.cli import main as cli
from httpbridge.cli.main import _truncate_text_bytes, build_parser, main, parse_header_args
from httpbridge.http.console import ConsoleClient


def test_build_parser_and_header_args():
    parser = build_parser()
    args = parser.parse_args(["http://example.com", "-X", "POST", "-H", "A: 1", "-H", "a: 2", "--json", "--no-redirects"])
    assert args.url == "http://example.com"
    assert args.method == "POST"
    assert args.json is True
    assert args.no_redirects is True

    headers = parse_header_args(args.header)
    assert headers["A"] == ["1", "2"]
    with pytest.raises(ValueError):
        parse_header_args(["no-colon"])


def test_truncate_text_bytes():
    assert _truncate_text_bytes("short", 100) == "short"
    truncated = _truncate_text_bytes("x" * 100, 30)
    assert truncated.endswith("...[truncated]")
    assert len(truncated.encode("utf-8")) <= 30


@pytest.fixture
def mock_engine(monkeypatch):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/down":
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path == "/moved":
            return httpx.Response(301, headers={"Location": "/"})
        return httpx.Response(200, headers={"Content-Type": "text/plain"}, content=b"hello world")

    transport = httpx.MockTransport(handler)

    def fake_console(options=None, *, settings=None):
        return ConsoleClient(options, settings=settings, transport_factory=lambda route: transport)  # noqa: ARG005

    monkeypatch.setattr(cli, "ConsoleClient", fake_console)
    return seen


def test_main_prints_body(mock_engine, capsys):
    assert main(["http://example.test/", "-d", "payload", "-X", "POST"]) == 0
    assert capsys.readouterr().out == "hello world"
    assert mock_engine[0].content == b"payload"
    assert mock_engine[0].method == "POST"


def test_main_include_prints_head(mock_engine, capsys):  # noqa: ARG001
    assert main(["http://example.test/", "-i"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("HTTP 200 OK\n")
    assert "content-type: text/plain" in out
    assert out.endswith("\n\nhello world")


def test_main_json_summary_with_redirects(mock_engine, capsys):  # noqa: ARG001
    assert main(["http://example.test/moved", "--json", "-H", "X-Test: 1"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["status_code"] == 200
    assert summary["body"] == "hello world"
    assert summary["redirects"] == [{"status_code": 301, "method": "GET", "location": "http://example.test/"}]
    assert summary["request_address"] is None


def test_main_reports_categorized_errors(mock_engine, capsys):  # noqa: ARG001
    assert main(["http://example.test/down"]) == 1
    err = capsys.readouterr().err
    assert "Network connectivity issue" in err
    assert "connection refused" in err


def test_main_rejects_invalid_header(mock_engine, capsys):  # noqa: ARG001
    assert main(["http://example.test/", "-H", "broken"]) == 1
    assert "Invalid request" in capsys.readouterr().err
