"""
Envelope signing for outbound requests.

Every request forwarded upstream carries three headers:

    Third-Party-Timestamp   nanoseconds since the Unix epoch
    Third-Party-User-Id     the identity of this proxy process
    Third-Party-Signature   urlsafe base64 of HMAC-SHA512(private key, envelope)

where the envelope is the string "{user id}-{timestamp}". The upstream
recomputes the same HMAC from the two plain headers and its copy of the key.

Headers already present on the request are left untouched, so a caller can
pre-supply part or all of the envelope.
"""

import base64
import hashlib
import hmac
import logging
import time
from typing import Callable

import httpx
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

HEADER_TIMESTAMP = "Third-Party-Timestamp"
HEADER_USER_ID = "Third-Party-User-Id"
HEADER_SIGNATURE = "Third-Party-Signature"


class ProcessIdentity(BaseModel):
    """
    Identity and shared secret of this proxy process.

    Attributes:
        user_id: Value sent in the user id header
        private_key: HMAC key shared with the upstream
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    private_key: str = Field(..., min_length=1, repr=False)


def build_envelope(user_id: str, timestamp: str) -> str:
    return f"{user_id}-{timestamp}"


def compute_signature(private_key: str, envelope: str) -> str:
    """
    Compute the request signature for an envelope.

    Args:
        private_key: Shared secret used as HMAC key
        envelope: String produced by build_envelope

    Returns:
        URL-safe base64 (padded) encoding of HMAC-SHA512 over the envelope
    """
    digest = hmac.new(
        private_key.encode("utf-8"),
        envelope.encode("utf-8"),
        hashlib.sha512,
    ).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii")


def first_header_value(headers: httpx.Headers, name: str) -> str:
    """
    Return the first value of a header, or "" when it is absent.

    Repeated headers are not comma-joined; only the first value counts.
    """
    values = headers.get_list(name)
    return values[0] if values else ""


class EnvelopeSigner:
    """
    Adds timestamp, identity and signature headers to outbound requests.

    The signer only holds immutable data and a clock, so one instance is
    shared by all concurrent requests.
    """

    def __init__(
        self,
        identity: ProcessIdentity,
        clock: Callable[[], int] = time.time_ns,
    ):
        """
        Args:
            identity: Process identity loaded at startup
            clock: Returns the current time in nanoseconds since the epoch
        """
        self._identity = identity
        self._clock = clock

    def sign(self, headers: httpx.Headers) -> None:
        """
        Sign a request by mutating its headers in place.

        Each header is set only when absent or empty. The signature is
        computed last because its envelope reads the final values of the
        timestamp and user id headers.
        """
        if not first_header_value(headers, HEADER_TIMESTAMP):
            headers[HEADER_TIMESTAMP] = str(self._clock())
            logger.debug(f"Signing {HEADER_TIMESTAMP}: {headers[HEADER_TIMESTAMP]}")

        if not first_header_value(headers, HEADER_USER_ID):
            headers[HEADER_USER_ID] = self._identity.user_id
            logger.debug(f"Signing {HEADER_USER_ID}: {headers[HEADER_USER_ID]}")

        if not first_header_value(headers, HEADER_SIGNATURE):
            envelope = build_envelope(
                first_header_value(headers, HEADER_USER_ID),
                first_header_value(headers, HEADER_TIMESTAMP),
            )
            headers[HEADER_SIGNATURE] = compute_signature(self._identity.private_key, envelope)
            logger.debug(f"Signing {HEADER_SIGNATURE}: {headers[HEADER_SIGNATURE]}")
