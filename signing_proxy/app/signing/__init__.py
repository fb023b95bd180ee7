"""
Signing Package
===============

HMAC envelope signing for requests forwarded to the upstream host.

Main Components:
----------------
- signer.py: ProcessIdentity, envelope/signature helpers and EnvelopeSigner

Usage:
------
    from signing_proxy.app.signing import EnvelopeSigner, ProcessIdentity
    signer = EnvelopeSigner(ProcessIdentity(user_id="abc", private_key="secret"))
    signer.sign(outbound_request.headers)
"""

from .signer import (
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    HEADER_USER_ID,
    EnvelopeSigner,
    ProcessIdentity,
    build_envelope,
    compute_signature,
)

__all__ = [
    "HEADER_SIGNATURE",
    "HEADER_TIMESTAMP",
    "HEADER_USER_ID",
    "EnvelopeSigner",
    "ProcessIdentity",
    "build_envelope",
    "compute_signature",
]
