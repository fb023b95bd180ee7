"""
Proxy Routes - Signed Request Forwarding
========================================

This module implements the catch-all endpoint that forwards every inbound
request to the upstream host after signing it.

Flow:
-----
1. Translate the inbound request into an upstream request
2. Add timestamp, user id and signature headers
3. Send to the upstream host (no retries)
4. Relay the upstream status code and body back to the caller

Error Mapping:
--------------
- Outbound request cannot be built      -> 500, empty body
- Upstream unreachable / timeout        -> 502, empty body
- Upstream body fails after status sent -> logged, response ends early

Upstream response headers are not relayed; only status and body are.
"""

import asyncio
import logging
from typing import AsyncIterator

import httpx
from fastapi import Request, Response, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ..errors import RelayError, TranslationError, UpstreamTransportError
from .translator import build_upstream_request
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)

# Matches every path; registered without a method list so every method forwards
PROXY_PATH = "/{path:path}"


# ============================================================================
# Response Relay
# ============================================================================

async def relay_body(
    upstream_client: UpstreamClient,
    upstream_response: httpx.Response,
) -> AsyncIterator[bytes]:
    """
    Stream the upstream body to the caller.

    The status line has already been sent when this runs, so a failure can
    only be logged. The upstream response is released on every exit.
    """
    try:
        async for chunk in upstream_client.iter_body(upstream_response):
            yield chunk
    except RelayError as e:
        logger.error(str(e))
    except (asyncio.CancelledError, GeneratorExit):
        logger.warning("Client disconnected before the upstream body was fully relayed")
        raise
    finally:
        await upstream_client.close_response(upstream_response)


# ============================================================================
# Proxy Endpoint
# ============================================================================

async def proxy_request(request: Request) -> Response:
    """
    Forward any request to the upstream host with a signed envelope.

    Args:
        request: Inbound request (body is streamed, never buffered)

    Returns:
        Streaming response with the upstream status code and body
    """
    logger.info(f"{request.method} {request.url.path} {request.url.query}")

    app_state = request.app.state.app_state
    upstream_client: UpstreamClient = app_state.upstream_client
    if upstream_client is None:
        logger.error("Upstream client not initialized")
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    try:
        upstream_request = build_upstream_request(request, app_state.settings.remote_host_str)
    except TranslationError as e:
        logger.error(str(e))
        return Response(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    app_state.signer.sign(upstream_request.headers)

    try:
        upstream_response = await upstream_client.send(upstream_request)
    except UpstreamTransportError as e:
        logger.error(str(e))
        return Response(status_code=status.HTTP_502_BAD_GATEWAY)

    return StreamingResponse(
        relay_body(upstream_client, upstream_response),
        status_code=upstream_response.status_code,
        # Also runs when the body generator is never started
        background=BackgroundTask(upstream_client.close_response, upstream_response),
    )
