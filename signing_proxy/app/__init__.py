"""
Signing Proxy Application
=========================

Transparent forwarding proxy that signs every request sent to a fixed
upstream host with an HMAC-SHA512 envelope.

Subpackages:
    - proxy:   catch-all forwarding route, request translation, upstream client
    - signing: process identity and envelope signer
"""

__version__ = "1.0.0"
