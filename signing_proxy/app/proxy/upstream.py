"""
HTTP client for the upstream host.

Wraps a pooled httpx.AsyncClient behind the small interface the proxy
route needs, and maps httpx failures onto the proxy's error types.
"""

import logging
from typing import AsyncIterator, Optional

import httpx

from signing_proxy.app.config import Settings
from signing_proxy.app.errors import RelayError, UpstreamTransportError

logger = logging.getLogger(__name__)


class UpstreamClient:
    """
    Sends signed requests to the upstream host.

    Requests are sent exactly as built; no client default headers are merged
    in. Responses are streamed and must be released with close_response().
    """

    def __init__(self, client: httpx.AsyncClient, timeout: Optional[httpx.Timeout] = None):
        self._client = client
        self._timeout = timeout or httpx.Timeout(None)

    async def send(self, request: httpx.Request) -> httpx.Response:
        """
        Send a request and return as soon as the response headers arrive.

        Raises:
            UpstreamTransportError: If the upstream is unreachable, times out,
                or the connection fails before the response headers
        """
        # Requests built outside the client carry no timeout of their own
        request.extensions.setdefault("timeout", self._timeout.as_dict())
        try:
            return await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise UpstreamTransportError(f"Error talking to remote host: {e!r}") from e

    async def iter_body(self, response: httpx.Response) -> AsyncIterator[bytes]:
        """
        Yield the upstream response body chunk by chunk, exactly as sent.

        Content-Encoding is not undone; the bytes are relayed verbatim.

        Raises:
            RelayError: If reading the body fails partway
        """
        try:
            async for chunk in response.aiter_raw():
                yield chunk
        except httpx.HTTPError as e:
            raise RelayError(f"Error copying data from remote: {e!r}") from e

    async def close_response(self, response: httpx.Response) -> None:
        # Safe to call more than once
        await response.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()


def create_upstream_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> UpstreamClient:
    """
    Create the shared upstream client.

    Args:
        settings: Application settings
        transport: Optional transport override (e.g. httpx.MockTransport in tests)

    Returns:
        Configured UpstreamClient
    """
    timeout = httpx.Timeout(
        settings.UPSTREAM_TIMEOUT_SECONDS,
        connect=settings.UPSTREAM_CONNECT_TIMEOUT_SECONDS,
    )
    client = httpx.AsyncClient(timeout=timeout, transport=transport)
    logger.info(f"Created upstream client for {settings.remote_host_str}")
    return UpstreamClient(client, timeout=timeout)
