# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpbridge CLI."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from ..config import HttpSettings, load_http_settings
from ..errors import categorize_exception, error_category_to_reason
from ..http import ClientOptions, ConsoleClient, Headers, Request, Response
from ..log import setup_logging

logger = logging.getLogger(__name__)

CLI_TEXT_TRUNCATION_BYTES = 4096


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send a single HTTP request through httpbridge")
    parser.add_argument("url", help="Target URL")
    parser.add_argument("-X", "--method", default="GET", help="HTTP method (default: GET)")
    parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        metavar="NAME: VALUE",
        help="Request header; may be repeated",
    )
    body = parser.add_mutually_exclusive_group()
    body.add_argument("-d", "--data", help="Request body sent as UTF-8 text")
    body.add_argument("--data-file", type=Path, help="Stream the request body from a file")
    parser.add_argument("--timeout", type=float, default=None, help="Overall timeout in seconds (<=0 disables)")
    parser.add_argument("--proxy", default=None, help='Proxy URL or directives, e.g. "PROXY host:3128; DIRECT"')
    parser.add_argument("--user-agent", default=None, help="User-Agent header (empty string disables it)")
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip TLS verification (useful for lab/self-signed targets)",
    )
    parser.add_argument("--no-redirects", action="store_true", help="Do not follow redirects")
    parser.add_argument("--max-redirects", type=int, default=None, help="Maximum redirects to follow")
    parser.add_argument("-i", "--include", action="store_true", help="Print the status line and response headers")
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output a JSON summary instead of the raw body",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: HTTPBRIDGE_LOG_LEVEL or WARNING)")
    return parser


def parse_header_args(values: list[str]) -> Headers:
    headers = Headers()
    for raw in values:
        name, sep, value = raw.partition(":")
        if not sep or not name.strip():
            raise ValueError(f"Invalid header (expected 'Name: value'): {raw!r}")
        headers.add(name.strip(), value.strip())
    return headers


def _truncate_text_bytes(text: str, max_bytes: int) -> str:
    raw = text.encode("utf-8")
    if len(raw) <= max_bytes:
        return text
    suffix = "...[truncated]"
    suffix_bytes = suffix.encode("utf-8")
    keep = max_bytes - len(suffix_bytes)
    if keep <= 0:
        return suffix_bytes[:max_bytes].decode("utf-8", errors="ignore")
    prefix = raw[:keep].decode("utf-8", errors="ignore")
    return prefix + suffix


async def _summarize(response: Response) -> dict[str, Any]:
    text = await response.text()
    return {
        "status_code": response.status_code,
        "reason_phrase": response.reason_phrase,
        "headers": {name: values for name, values in response.headers.items()},
        "redirects": [
            {"status_code": hop.status_code, "method": hop.method, "location": hop.location} for hop in response.redirects
        ],
        "request_address": response.request_address,
        "response_address": response.response_address,
        "body": _truncate_text_bytes(text, CLI_TEXT_TRUNCATION_BYTES),
    }


def _print_head(response: Response) -> None:
    print(f"HTTP {response.status_code} {response.reason_phrase}".rstrip())
    for name, value in response.headers.multi_items():
        print(f"{name}: {value}")
    print()


async def _run(args: argparse.Namespace, client: ConsoleClient) -> int:
    body: Any = None
    if args.data is not None:
        body = args.data
    elif args.data_file is not None:
        body = args.data_file

    request = Request(
        args.method,
        args.url,
        headers=parse_header_args(args.header),
        body=body,
        timeout=args.timeout,
        follow_redirects=False if args.no_redirects else None,
        max_redirects=args.max_redirects,
    )

    async with client:
        response = await client.send(request)
        async with response:
            if args.json:
                json.dump(await _summarize(response), sys.stdout, indent=2, sort_keys=True)
                sys.stdout.write("\n")
                return 0
            if args.include:
                _print_head(response)
            sys.stdout.flush()
            async for chunk in response.body:
                sys.stdout.buffer.write(chunk)
            sys.stdout.buffer.flush()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    settings: HttpSettings = load_http_settings()
    options = ClientOptions(
        proxy=args.proxy,
        user_agent=args.user_agent,
        ignore_bad_certificates=args.insecure or None,
    )

    try:
        return asyncio.run(_run(args, ConsoleClient(options, settings=settings)))
    except Exception as exc:  # noqa: BLE001
        category = categorize_exception(exc)
        logger.debug("Request failed", exc_info=True)
        print(f"httpbridge: {error_category_to_reason(category)}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
