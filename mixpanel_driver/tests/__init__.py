"""
Test suite for Mixpanel driver.

Tests are organized into:
- test_signing.py - Credentials, expiry and signature computation
- test_client.py - Driver initialization, request helper and endpoints
- test_models.py - Result shape decoding
- test_exceptions.py - Exception hierarchy
- test_integration.py - Multi-call workflows
- conftest.py - Pytest fixtures and configuration

Run tests with:
    pytest mixpanel_driver/tests/
    pytest mixpanel_driver/tests/ -v
"""
