"""
Pytest configuration and shared fixtures for Mixpanel driver tests.

Provides:
- Mock session and client fixtures
- Mock response factory
- Sample API payloads
"""

import json
import pytest
from unittest.mock import Mock, MagicMock, patch
from typing import Dict, Any


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set up mock environment variables."""
    monkeypatch.setenv("MIXPANEL_API_KEY", "test_api_key_12345")
    monkeypatch.setenv("MIXPANEL_SECRET", "test_secret_67890")
    monkeypatch.setenv("MIXPANEL_DEBUG", "false")
    monkeypatch.delenv("MIXPANEL_TIMEOUT", raising=False)
    monkeypatch.delenv("MIXPANEL_FORMAT", raising=False)
    monkeypatch.delenv("MIXPANEL_CHECK_STATUS", raising=False)


@pytest.fixture
def mock_session():
    """Create a mock requests session."""
    session = MagicMock()
    session.headers = {}
    session.get = MagicMock()
    return session


@pytest.fixture
def mixpanel_client(mock_session):
    """Create a test Mixpanel driver instance with mocked session."""
    from mixpanel_driver import MixpanelDriver

    with patch.object(MixpanelDriver, '_create_session', return_value=mock_session):
        client = MixpanelDriver(
            api_key="test_api_key_12345",
            secret="test_secret_67890",
        )
    return client


@pytest.fixture
def make_response():
    """Factory for mock HTTP responses."""
    def _make(body, status_code: int = 200, headers: Dict[str, str] = None):
        response = Mock()
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        response.content = body
        response.text = body.decode("utf-8", errors="replace")
        response.status_code = status_code
        response.headers = headers or {}
        response.json.side_effect = lambda: json.loads(body)
        return response
    return _make


@pytest.fixture
def event_query_response() -> Dict[str, Any]:
    """Mock response from events/properties."""
    return {
        "legend_size": 2,
        "data": {
            "series": ["2024-01-01", "2024-01-02"],
            "values": {
                "premium": {"2024-01-01": 12, "2024-01-02": 7},
                "free": {"2024-01-01": 40, "2024-01-02": 38}
            }
        }
    }


@pytest.fixture
def top_events_response() -> Dict[str, Any]:
    """Mock response from events/top."""
    return {
        "type": "general",
        "events": [
            {"amount": 2000, "event": "page_view", "percent_change": 0.25},
            {"amount": 150, "event": "signup", "percent_change": -0.1}
        ]
    }


@pytest.fixture
def people_response() -> Dict[str, Any]:
    """Mock response from engage for one user."""
    return {
        "page": 0,
        "page_size": 1000,
        "session_id": "1234567890-EXAMPL",
        "status": "ok",
        "total": 1,
        "results": [
            {
                "$distinct_id": "user_123",
                "$properties": {
                    "$email": "user@example.com",
                    "plan": "premium"
                }
            }
        ]
    }


@pytest.fixture
def export_body() -> bytes:
    """Mock export stream with a blank and a malformed line."""
    return (
        b'{"event":"a","properties":{}}\n'
        b'\n'
        b'invalid\n'
        b'{"event":"b","properties":{"x":1}}'
    )
