"""
Mixpanel request signing.

Every query API request carries four authentication parameters:
api_key, format, expire and sig. The signature is computed as:

1. Sort all parameter keys (sig excluded) in ascending order
2. Concatenate "key=value" for each key, no separators
3. Append the shared secret
4. MD5 the UTF-8 bytes, lowercase hex

The server repeats the same computation, so values are used exactly as
they will be sent (before URL encoding) and the key order must match.
"""

import hashlib
import time
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .exceptions import AuthenticationError


DEFAULT_EXPIRE_IN_DAYS = 5
DEFAULT_FORMAT = "json"

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


def expire_in_days(days: int, now: Optional[float] = None) -> int:
    """
    Unix timestamp `days` days from now, truncated to whole seconds.

    Args:
        days: Number of days until expiry
        now: Reference time in seconds since epoch (default: time.time())
    """
    if now is None:
        now = time.time()
    return int(now + days * SECONDS_PER_DAY)


def expire_in_hours(hours: int, now: Optional[float] = None) -> int:
    """Unix timestamp `hours` hours from now, truncated to whole seconds."""
    if now is None:
        now = time.time()
    return int(now + hours * SECONDS_PER_HOUR)


def canonical_string(params: Mapping[str, str], secret: str) -> str:
    """
    Build the signing input for a parameter set.

    Example:
        >>> canonical_string({"format": "json", "api_key": "k"}, "s")
        'api_key=kformat=jsons'
    """
    pairs = "".join(f"{key}={params[key]}" for key in sorted(params))
    return pairs + secret


@dataclass(frozen=True)
class Credentials:
    """
    Mixpanel API key and shared secret.

    Raises:
        AuthenticationError: If either value is empty
    """
    api_key: str
    secret: str

    def __post_init__(self):
        if not self.api_key or not self.secret:
            raise AuthenticationError(
                "Mixpanel API credentials not found.",
                details={
                    "api_key_set": bool(self.api_key),
                    "secret_set": bool(self.secret),
                    "env_vars": ["MIXPANEL_API_KEY", "MIXPANEL_SECRET"],
                }
            )

    def __repr__(self):
        return f"Credentials(api_key={self.api_key[:4]}..., secret=***)"


class RequestSigner:
    """
    Stamps expiry and signature parameters onto a parameter set.

    Both operations return a new dict and leave the input untouched, so one
    base parameter mapping can be reused across calls safely.

    Example:
        >>> signer = RequestSigner(Credentials("k", "s"))
        >>> signed = signer.sign({"expire": "100"})
        >>> signed["sig"] == hashlib.md5(b"api_key=kexpire=100format=jsons").hexdigest()
        True
    """

    def __init__(self, credentials: Credentials, format: str = DEFAULT_FORMAT):
        self.credentials = credentials
        self.format = format

    @staticmethod
    def ensure_expiry(
        params: Mapping[str, str],
        default_days: int = DEFAULT_EXPIRE_IN_DAYS
    ) -> Dict[str, str]:
        """
        Return a copy of params with `expire` set, unless it is already non-empty.

        Args:
            params: Request parameters
            default_days: Days until expiry when none is given (default: 5)

        Returns:
            New parameter dict
        """
        stamped = dict(params)
        if not stamped.get("expire"):
            stamped["expire"] = str(expire_in_days(default_days))
        return stamped

    def sign(self, params: Mapping[str, str], format: Optional[str] = None) -> Dict[str, str]:
        """
        Return a signed copy of params.

        Any existing `sig` is discarded, `api_key` and `format` are set (overwriting
        caller values), and `sig` is computed over every remaining pair.

        Args:
            params: Request parameters (values must be strings)
            format: Response format; defaults to the signer's format

        Returns:
            New parameter dict including api_key, format and sig
        """
        signed = {key: value for key, value in params.items() if key != "sig"}
        signed["api_key"] = self.credentials.api_key
        signed["format"] = format or self.format

        digest = hashlib.md5(
            canonical_string(signed, self.credentials.secret).encode("utf-8")
        )
        signed["sig"] = digest.hexdigest()
        return signed
