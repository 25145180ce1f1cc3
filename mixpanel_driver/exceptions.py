"""
Mixpanel Driver Exception Hierarchy

Structured exceptions for clear error handling by callers.
Each exception carries a message plus a details dict for programmatic handling.
"""

from typing import Dict, Any, Optional


class DriverError(Exception):
    """Base exception for all driver errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        return f"{self.__class__.__name__}: {self.message}"


class AuthenticationError(DriverError):
    """
    Missing or rejected credentials.

    Raised at construction when the API key or secret is empty, and for
    401/403 responses when status checking is enabled.

    Caller should:
    - Check MIXPANEL_API_KEY and MIXPANEL_SECRET are set
    - Verify the secret matches the project
    """
    pass


class ConnectionError(DriverError):
    """
    Cannot reach API (network issue, DNS failure, API down).

    Also raised for 5xx responses when status checking is enabled.
    """
    pass


class TimeoutError(DriverError):
    """
    Request timed out.

    Caller should:
    - Increase the timeout parameter
    - Narrow the date range of the query
    """
    pass


class DecodeError(DriverError):
    """
    Response body is not the JSON the endpoint is expected to return.

    The raw body (truncated) is available in details["body"].
    """
    pass


class ValidationError(DriverError):
    """API rejected the request parameters (HTTP 400, status checking only)."""
    pass


class RateLimitError(DriverError):
    """
    API rate limit exceeded (HTTP 429, status checking only).

    No retry is attempted. details["retry_after"] holds the server hint
    when one is sent.
    """
    pass
