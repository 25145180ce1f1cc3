"""
Mixpanel Query API Driver

A Python driver for the Mixpanel data query API (api/2.0).

Supports:
- Event property breakdowns (events/properties)
- Segmentation (segmentation)
- Top events and event names (events/top, events/names)
- People profiles (engage)
- Raw event export (export, served from the data host)

Every request is signed: the driver adds api_key, format and expire,
then an MD5 signature over the sorted parameters plus the shared secret.
See signing.py for the exact algorithm.
"""

import os
import json
import logging
from typing import List, Dict, Any, Optional, Mapping

import requests
from dotenv import load_dotenv

from .exceptions import (
    DriverError,
    AuthenticationError,
    ConnectionError,
    DecodeError,
    RateLimitError,
    ValidationError,
    TimeoutError,
)
from .models import (
    Host,
    EventQueryResult,
    ExportRecord,
    SegmentationQueryResult,
    TopEventsResult,
    CommonEventsResult,
    PeopleResponse,
    RawResult,
    parse_common_events,
    parse_people_response,
)
from .signing import Credentials, RequestSigner, DEFAULT_FORMAT


FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# HTML-safe escapes for the JSON-encoded event list
HTML_SAFE_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


class MixpanelDriver:
    """
    Mixpanel query API driver.

    Each endpoint method performs exactly one blocking GET and decodes the
    body into a result shape. There are no retries.

    The driver points `base_url` at the main or export host before each call,
    so a single instance must not be shared between threads. Use one driver
    per thread instead.

    Example:
        client = MixpanelDriver.from_env()
        top = client.top_events({"type": "general", "limit": "10"})
        for item in top.events:
            print(item.event, item.amount)
        client.close()
    """

    def __init__(
        self,
        api_key: str,
        secret: str,
        format: str = DEFAULT_FORMAT,
        timeout: Optional[float] = None,
        check_status: bool = False,
        debug: bool = False,
    ):
        """
        Initialize Mixpanel driver.

        Credentials are validated before anything else, so a missing key
        or secret fails without touching the network.

        Args:
            api_key: Mixpanel project API key
            secret: Mixpanel project API secret (used only for signing)
            format: Response format requested from the API (default: "json")
            timeout: Request timeout in seconds (default: None, wait indefinitely)
            check_status: Raise on non-2xx responses (default: False)
            debug: Enable debug logging (default: False)

        Raises:
            AuthenticationError: If api_key or secret is empty
        """
        self.driver_name = "MixpanelDriver"
        self.credentials = Credentials(api_key=api_key, secret=secret)
        self.signer = RequestSigner(self.credentials, format=format)

        self.logger = logging.getLogger(__name__)
        if debug:
            self.logger.setLevel(logging.DEBUG)
        else:
            self.logger.setLevel(logging.WARNING)

        self.base_url = Host.MAIN.value
        self.timeout = timeout
        self.check_status = check_status
        self.debug = debug

        self.session = self._create_session()

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **kwargs) -> "MixpanelDriver":
        """
        Create driver instance from environment variables.

        Environment variables:
            MIXPANEL_API_KEY: API key (required)
            MIXPANEL_SECRET: API secret (required)
            MIXPANEL_FORMAT: Response format (default: "json")
            MIXPANEL_TIMEOUT: Request timeout in seconds (default: none)
            MIXPANEL_CHECK_STATUS: Raise on non-2xx responses (default: False)
            MIXPANEL_DEBUG: Enable debug logging (default: False)

        Args:
            dotenv_path: Optional .env file loaded before reading the environment.
                Variables already set in the process take precedence.
            **kwargs: Overrides for constructor arguments

        Raises:
            AuthenticationError: If MIXPANEL_API_KEY or MIXPANEL_SECRET is not set
        """
        if dotenv_path:
            load_dotenv(dotenv_path=dotenv_path)

        api_key = os.getenv("MIXPANEL_API_KEY")
        secret = os.getenv("MIXPANEL_SECRET")

        if not api_key or not secret:
            raise AuthenticationError(
                "Missing Mixpanel credentials. Set MIXPANEL_API_KEY and MIXPANEL_SECRET.",
                details={
                    "env_vars": ["MIXPANEL_API_KEY", "MIXPANEL_SECRET"],
                    "api_key_set": bool(api_key),
                    "secret_set": bool(secret),
                }
            )

        timeout = os.getenv("MIXPANEL_TIMEOUT")
        kwargs.setdefault("format", os.getenv("MIXPANEL_FORMAT", DEFAULT_FORMAT))
        kwargs.setdefault("timeout", float(timeout) if timeout else None)
        kwargs.setdefault(
            "check_status",
            os.getenv("MIXPANEL_CHECK_STATUS", "false").lower() == "true"
        )
        kwargs.setdefault("debug", os.getenv("MIXPANEL_DEBUG", "false").lower() == "true")

        return cls(api_key=api_key, secret=secret, **kwargs)

    # ========================================================================
    # Query Endpoints
    # ========================================================================

    def event_query(self, params: Optional[Mapping[str, str]] = None) -> EventQueryResult:
        """
        Property value breakdown for an event (events/properties).

        Args:
            params: Query parameters, e.g. event, name, type, unit, interval

        Example:
            result = client.event_query({
                "event": "signup", "name": "plan", "type": "general",
                "unit": "day", "interval": "7",
            })
            print(result.values["premium"])
        """
        self.base_url = Host.MAIN.value
        body = self.make_request("events/properties", params)
        return EventQueryResult.from_dict(self._decode_json(body, "events/properties"))

    def export_query(self, params: Optional[Mapping[str, str]] = None) -> List[ExportRecord]:
        """
        Export raw events (export, data host).

        The response is newline-delimited JSON. Blank lines are ignored and
        malformed lines are logged and skipped, so a partially corrupt
        stream still returns every readable event.

        Args:
            params: Query parameters, e.g. from_date, to_date, event, where

        Returns:
            List of ExportRecord in stream order
        """
        self.base_url = Host.EXPORT.value
        body = self.make_request("export", params)

        records = []
        for line in body.decode("utf-8", errors="replace").split("\n"):
            if not line.strip():
                continue
            try:
                records.append(ExportRecord.from_dict(json.loads(line)))
            except (ValueError, DecodeError) as e:
                self.logger.warning(f"Skipping malformed export line: {e} -- {line!r}")

        if self.debug:
            self.logger.debug(f"[Export API] Parsed {len(records)} events")
        return records

    def people_query(self, params: Optional[Mapping[str, str]] = None) -> PeopleResponse:
        """
        Query people profiles (engage).

        Returns:
            PeopleQueryResult when the body carries a results list,
            otherwise RawResult wrapping the decoded JSON
        """
        self.base_url = Host.MAIN.value
        body = self.make_request("engage", params)
        return parse_people_response(self._decode_json(body, "engage"))

    def user_info(self, distinct_id: str) -> Dict[str, Any]:
        """
        Profile properties of one user.

        Args:
            distinct_id: The user's distinct_id

        Returns:
            The `$properties` mapping of the first match, or {} if none

        Raises:
            DecodeError: If engage returned no results list
        """
        response = self.people_query({"distinct_id": distinct_id})
        if isinstance(response, RawResult):
            raise DecodeError(
                "engage response has no results list",
                details={"distinct_id": distinct_id, "response": response.data}
            )
        if not response.results:
            return {}
        return response.results[0].properties

    def segmentation_query(
        self,
        params: Optional[Mapping[str, str]] = None
    ) -> SegmentationQueryResult:
        """Segmented event counts (segmentation)"""
        self.base_url = Host.MAIN.value
        body = self.make_request("segmentation", params)
        return SegmentationQueryResult.from_dict(self._decode_json(body, "segmentation"))

    def top_events(self, params: Optional[Mapping[str, str]] = None) -> TopEventsResult:
        """Today's top events with their change against yesterday (events/top)"""
        self.base_url = Host.MAIN.value
        body = self.make_request("events/top", params)
        return TopEventsResult.from_dict(self._decode_json(body, "events/top"))

    def most_common_events_last_31_days(
        self,
        params: Optional[Mapping[str, str]] = None
    ) -> CommonEventsResult:
        """Names of the most common events over the last 31 days (events/names)"""
        self.base_url = Host.MAIN.value
        body = self.make_request("events/names", params)
        return parse_common_events(self._decode_json(body, "events/names"))

    # ========================================================================
    # Request Helper
    # ========================================================================

    def make_request(self, path: str, params: Optional[Mapping[str, str]] = None) -> bytes:
        """
        Sign and send a GET request to `base_url/path`.

        The caller's mapping is copied, never modified. A comma-separated
        `event` value is sent as a JSON array, as the API expects.

        Args:
            path: Endpoint path relative to base_url (e.g. "events/top")
            params: Query parameters

        Returns:
            Raw response body

        Raises:
            TimeoutError: If the request timed out
            ConnectionError: On any other transport failure
        """
        request_params = self._expand_events(params or {})
        request_params = self.signer.ensure_expiry(request_params)
        request_params = self.signer.sign(request_params)

        url = f"{self.base_url}/{path}"
        if self.debug:
            self.logger.debug(
                f"[{path}] GET {url} params={sorted(k for k in request_params if k != 'sig')}"
            )

        try:
            response = self.session.get(
                url,
                params=request_params,
                headers={"Content-Type": FORM_CONTENT_TYPE},
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise TimeoutError(
                f"Request to {path} timed out",
                details={"url": url, "timeout": self.timeout}
            ) from e
        except requests.exceptions.RequestException as e:
            raise ConnectionError(
                f"Cannot reach Mixpanel API: {e}",
                details={"url": url}
            ) from e

        if self.debug:
            self.logger.debug(f"[{path}] HTTP {response.status_code}, {len(response.content)} bytes")

        if self.check_status:
            self._check_status(response, context=path)

        return response.content

    def close(self):
        """Close the HTTP session"""
        if self.session:
            self.session.close()
            if self.debug:
                self.logger.debug("Session closed")

    # ========================================================================
    # Internal Methods
    # ========================================================================

    def _create_session(self) -> requests.Session:
        """
        Create the HTTP session.

        Content-Type is set per request, not here. No retry adapter is
        mounted: every call is a single attempt.
        """
        session = requests.Session()
        session.headers.update({
            "Accept": "application/json",
            "User-Agent": f"{self.driver_name}-Python-Driver/1.0.0",
        })
        return session

    @staticmethod
    def _expand_events(params: Mapping[str, str]) -> Dict[str, str]:
        """Copy params as strings, turning "a,b" in `event` into '["a","b"]'."""
        expanded = {key: str(value) for key, value in params.items()}
        event = expanded.pop("event", "")
        if event:
            encoded = json.dumps(event.split(","), separators=(",", ":"), ensure_ascii=False)
            for char, escape in HTML_SAFE_ESCAPES:
                encoded = encoded.replace(char, escape)
            expanded["event"] = encoded
        return expanded

    def _decode_json(self, body: bytes, context: str) -> Any:
        try:
            return json.loads(body)
        except ValueError as e:
            raise DecodeError(
                f"{context} returned invalid JSON: {e}",
                details={"context": context, "body": body[:500].decode("utf-8", errors="replace")}
            ) from e

    def _check_status(self, response: requests.Response, context: str = "") -> None:
        """
        Convert a non-2xx response to a structured driver exception.

        Only called when check_status is enabled.

        Raises:
            Appropriate DriverError subclass
        """
        status_code = response.status_code
        if 200 <= status_code < 300:
            return

        try:
            error_data = response.json()
            error_msg = error_data.get("error", "Unknown error")
        except (ValueError, AttributeError):
            error_msg = response.text[:500]

        details = {
            "status_code": status_code,
            "context": context,
            "api_response": error_msg
        }

        if status_code in (401, 403):
            raise AuthenticationError(f"Authentication failed: {error_msg}", details=details)

        elif status_code == 400:
            raise ValidationError(f"Request rejected: {error_msg}", details=details)

        elif status_code == 429:
            retry_after = response.headers.get("Retry-After")
            details["retry_after"] = int(retry_after) if retry_after and retry_after.isdigit() else None
            raise RateLimitError(f"API rate limit exceeded: {error_msg}", details=details)

        elif status_code >= 500:
            raise ConnectionError(f"API server error: {error_msg}", details=details)

        else:
            raise DriverError(f"API request failed: {error_msg}", details=details)
