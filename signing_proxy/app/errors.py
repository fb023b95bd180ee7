"""
Error types for the signing proxy.

Only ConfigurationError is fatal to the process. The others are raised and
handled inside a single request and map to a status code (or to a log line
once the response has started).
"""


class ProxyError(Exception):
    """Base class for all proxy errors"""


class ConfigurationError(ProxyError):
    """Required settings are missing or invalid at startup"""


class TranslationError(ProxyError):
    """Outbound request could not be built from the inbound request (500)"""


class UpstreamTransportError(ProxyError):
    """Upstream could not be reached or did not answer (502)"""


class RelayError(ProxyError):
    """Upstream body failed after the status line was already sent"""
