"""
Mixpanel Query API Python Driver

Signed, read-only access to the Mixpanel data query API.

Example:
    Basic usage:

    >>> from mixpanel_driver import MixpanelDriver
    >>>
    >>> # Create driver from environment
    >>> client = MixpanelDriver.from_env()
    >>>
    >>> # Top events today
    >>> top = client.top_events({"type": "general"})
    >>> print([e.event for e in top.events])
    >>>
    >>> # Raw export
    >>> records = client.export_query({
    ...     "from_date": "2024-01-01",
    ...     "to_date": "2024-01-02",
    ...     "event": "signup,login",
    ... })
    >>> print(f"Exported {len(records)} events")
    >>>
    >>> # Profile of one user
    >>> props = client.user_info("user-42")
    >>>
    >>> client.close()

Authentication:
    Set environment variables:
    - MIXPANEL_API_KEY: Project API key
    - MIXPANEL_SECRET: Project API secret
    - MIXPANEL_FORMAT: Response format (default: "json")
    - MIXPANEL_TIMEOUT: Request timeout in seconds (default: none)
    - MIXPANEL_CHECK_STATUS: "true" to raise on non-2xx (default: "false")
    - MIXPANEL_DEBUG: "true" or "false" (default: "false")
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .client import MixpanelDriver

from .signing import (
    Credentials,
    RequestSigner,
    canonical_string,
    expire_in_days,
    expire_in_hours,
    DEFAULT_EXPIRE_IN_DAYS,
)

from .models import (
    Host,
    EventQueryResult,
    ExportRecord,
    SegmentationQueryResult,
    TopEvent,
    TopEventsResult,
    CommonEventsResult,
    PeopleRecord,
    PeopleQueryResult,
    RawResult,
)

from .exceptions import (
    DriverError,
    AuthenticationError,
    ConnectionError,
    TimeoutError,
    DecodeError,
    ValidationError,
    RateLimitError,
)

__all__ = [
    # Driver
    "MixpanelDriver",
    # Signing
    "Credentials",
    "RequestSigner",
    "canonical_string",
    "expire_in_days",
    "expire_in_hours",
    "DEFAULT_EXPIRE_IN_DAYS",
    # Result shapes
    "Host",
    "EventQueryResult",
    "ExportRecord",
    "SegmentationQueryResult",
    "TopEvent",
    "TopEventsResult",
    "CommonEventsResult",
    "PeopleRecord",
    "PeopleQueryResult",
    "RawResult",
    # Exceptions
    "DriverError",
    "AuthenticationError",
    "ConnectionError",
    "TimeoutError",
    "DecodeError",
    "ValidationError",
    "RateLimitError",
]
