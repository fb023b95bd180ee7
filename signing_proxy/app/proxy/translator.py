"""
Translate inbound requests into requests for the upstream host.
"""

from typing import List, Tuple

import httpx
from fastapi import Request

from signing_proxy.app.errors import TranslationError

# The outbound Host comes from the upstream URL
EXCLUDED_REQUEST_HEADERS = {b"host"}


def build_upstream_url(upstream_base: str, path: str, query: str) -> str:
    """
    Build the upstream target URL.

    The "?" separator is always present, even when the query is empty.
    """
    return f"{upstream_base}{path}?{query}"


def copy_request_headers(request: Request) -> List[Tuple[bytes, bytes]]:
    """
    Copy inbound headers into a new list, keeping repeated values.

    Signing headers supplied by the caller are kept as-is.
    """
    return [
        (key, value) for key, value in request.headers.raw
        if key.lower() not in EXCLUDED_REQUEST_HEADERS
    ]


def has_body(request: Request) -> bool:
    return "content-length" in request.headers or "transfer-encoding" in request.headers


def build_upstream_request(request: Request, upstream_base: str) -> httpx.Request:
    """
    Build the outbound request for an inbound request.

    The inbound body stream is handed to the outbound request unread, so
    bodies are forwarded without buffering.

    Args:
        request: Inbound request
        upstream_base: Upstream base URL without trailing slash

    Returns:
        httpx.Request targeting the upstream host

    Raises:
        TranslationError: If the method, URL or headers are malformed
    """
    url = build_upstream_url(upstream_base, request.url.path, request.url.query)
    content = request.stream() if has_body(request) else None

    try:
        return httpx.Request(
            request.method,
            url,
            headers=copy_request_headers(request),
            content=content,
        )
    except (httpx.InvalidURL, ValueError, TypeError) as e:
        raise TranslationError(f"Error creating remote request: {e}") from e
