"""
Proxy Package
=============

This package forwards every inbound request to the single upstream host,
signed with the process identity, and relays the upstream response.

Main Components:
----------------
- routes.py: Catch-all proxy endpoint and response relay
- translator.py: Builds the outbound request from the inbound one
- upstream.py: HTTP client for the upstream host

Usage:
------
    from signing_proxy.app.proxy import PROXY_PATH, proxy_request
    app.add_route(PROXY_PATH, proxy_request)
"""

from .routes import PROXY_PATH, proxy_request

__all__ = ["PROXY_PATH", "proxy_request"]
