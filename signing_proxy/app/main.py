"""
FastAPI Signing Proxy Application Factory
=========================================

This is the main entry point for the proxy that sits between callers that
know nothing about request signing and an upstream that requires it.

Architecture:
    Caller → Signing Proxy (this service) → Upstream host

Every path and method is forwarded; there are no local endpoints.

Environment Variables Required:
    - PORT: Local port to listen on
    - REMOTE_HOST: Upstream base URL (e.g., "https://api.example.com")
    - K_USER_ID: User ID sent with every request
    - K_PRIVATE_KEY: Shared secret for the HMAC signature
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    signing-proxy
    python -m signing_proxy.app.main
    uvicorn --factory signing_proxy.app.main:create_app --port 8080
"""

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import Callable, Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response

from signing_proxy.app import __version__
from signing_proxy.app.config import Settings, get_settings, load_settings
from signing_proxy.app.errors import ConfigurationError
from signing_proxy.app.proxy.routes import PROXY_PATH, proxy_request
from signing_proxy.app.proxy.upstream import UpstreamClient, create_upstream_client
from signing_proxy.app.signing.signer import EnvelopeSigner


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the process.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


class AppState:
    """
    Application state container.

    Holds the read-only settings and signer, and the pooled upstream client.
    """
    def __init__(self, settings: Settings, signer: EnvelopeSigner):
        self.settings = settings
        self.signer = signer
        self.upstream_client: Optional[UpstreamClient] = None


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Optional[Callable[[], int]] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        settings: Validated settings (loaded from the environment if omitted)
        transport: Optional upstream transport override, used by tests
        clock: Optional nanosecond clock for the signer, used by tests

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()
    signer = EnvelopeSigner(settings.identity, clock or time.time_ns)
    app_state = AppState(settings, signer)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Create the upstream client on startup and close it on shutdown.
        """
        logger = logging.getLogger("signing_proxy.main")
        app_state.upstream_client = create_upstream_client(settings, transport=transport)
        logger.info(
            "Signing proxy started",
            extra={
                "remote_host": settings.remote_host_str,
                "user_id": settings.K_USER_ID,
                "version": __version__,
            }
        )

        yield

        logger.info("Shutting down signing proxy")
        await app_state.upstream_client.aclose()
        app_state.upstream_client = None

    # Local docs routes would shadow upstream paths
    app = FastAPI(
        title="Signing Proxy",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.app_state = app_state

    # No method list: every method is forwarded
    app.add_route(PROXY_PATH, proxy_request)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> Response:
        """
        Log unhandled errors and answer 500 with no body.
        """
        logger = logging.getLogger("signing_proxy.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )
        return Response(status_code=500)

    return app


def main() -> None:
    """
    Process entry point.

    Exits with status 1 before binding any socket if configuration is
    incomplete. uvicorn exits the process if the port cannot be bound.
    """
    logger = logging.getLogger("signing_proxy.main")

    try:
        settings = load_settings()
    except ConfigurationError as e:
        setup_logging()
        logger.critical(f"Missing parameters: {e}")
        sys.exit(1)

    setup_logging(settings.LOG_LEVEL)
    logger.info(f"Listening on `{settings.HOST}:{settings.PORT}`")

    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
