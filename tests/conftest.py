"""
Pytest configuration and fixtures.
"""

import pytest
import os
from unittest.mock import AsyncMock, patch

HOST_URL = "https://bakery.ngrok.io"


@pytest.fixture(autouse=True)
def mock_env_vars():
    """Mock environment variables for tests."""
    env_vars = {
        "HOST_URL": HOST_URL,
        "PORT": "3000",
        "LOG_LEVEL": "DEBUG",
        "ACCOUNT_ID": "ACtest123456789",
        "API_KEY": "test_api_key",
        "FREECLIMB_API_URL": "https://freeclimb.test/apiserver",
    }

    with patch.dict(os.environ, env_vars):
        # Clear config cache
        from src.ivr.config import get_config
        get_config.cache_clear()
        yield
        get_config.cache_clear()


@pytest.fixture
def host_url():
    return HOST_URL


@pytest.fixture
def messenger():
    """Stand-in for the FreeClimb SMS sender."""
    fake = AsyncMock()
    fake.send_sms.return_value = {"messageId": "SM123"}
    return fake


@pytest.fixture
def client(messenger):
    """Test client with fresh retry state and a fake messenger."""
    from fastapi.testclient import TestClient
    from server.app import app, get_messenger, retry_store

    retry_store.clear()
    app.dependency_overrides[get_messenger] = lambda: messenger
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
        retry_store.clear()


@pytest.fixture
def incoming_call_body():
    """Sample FreeClimb inbound call webhook."""
    return {
        "requestType": "inboundCall",
        "callId": "CA789012",
        "accountId": "ACtest123456789",
        "from": "+15551230000",
        "to": "+15559870000",
        "callStatus": "ringing",
        "direction": "inbound",
    }


@pytest.fixture
def get_digits_body():
    """Factory for FreeClimb GetDigits result webhooks."""
    def _make(digits=None, call_id="CA789012"):
        body = {
            "requestType": "getDigits",
            "callId": call_id,
            "accountId": "ACtest123456789",
            "reason": "finishKey",
        }
        if digits is not None:
            body["digits"] = digits
        return body
    return _make
