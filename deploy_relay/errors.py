"""
Error Types

Exception hierarchy shared by the relay components. The webhook route maps
these onto HTTP responses; an unresolved repository or PR is not an error
and is reported through TargetResolution instead.
"""

from typing import Dict, Optional


class RelayError(Exception):
    """Base exception for deployment relay failures."""
    pass


class ConfigurationError(RelayError):
    """Raised when a required secret or token is not configured."""

    def __init__(self, message: str, missing: Optional[Dict[str, bool]] = None):
        super().__init__(message)
        self.missing = missing or {}


class AuthenticationError(RelayError):
    """Raised when a webhook signature is missing or does not match."""
    pass


class UpstreamFetchError(RelayError):
    """Raised when an upstream API answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
        self.url = url


class NetworkError(RelayError):
    """Raised when an upstream API cannot be reached at all."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url
