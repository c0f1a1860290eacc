"""
Tests for the FreeClimb SMS adapter.
"""

import base64
import json

import httpx
import pytest

from src.ivr.config import get_config
from src.ivr.messaging import FreeClimbMessenger, MessagingError


def _messenger(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FreeClimbMessenger(get_config(), client=client), client


@pytest.mark.asyncio
async def test_send_sms_posts_to_account_messages():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(202, json={"messageId": "SM123", "status": "new"})

    messenger, client = _messenger(handler)
    try:
        result = await messenger.send_sms("+15559870000", "+15551230000", "hi there")
    finally:
        await client.aclose()

    assert seen["url"] == "https://freeclimb.test/apiserver/Accounts/ACtest123456789/Messages"
    expected = base64.b64encode(b"ACtest123456789:test_api_key").decode()
    assert seen["auth"] == f"Basic {expected}"
    assert seen["body"] == {"from": "+15559870000", "to": "+15551230000", "text": "hi there"}
    assert result["messageId"] == "SM123"


@pytest.mark.asyncio
async def test_send_sms_raises_on_error_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "unauthorized"})

    messenger, client = _messenger(handler)
    try:
        with pytest.raises(MessagingError) as excinfo:
            await messenger.send_sms("+1", "+2", "hi")
    finally:
        await client.aclose()

    assert excinfo.value.status_code == 401


@pytest.mark.asyncio
async def test_send_sms_wraps_transport_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    messenger, client = _messenger(handler)
    try:
        with pytest.raises(MessagingError):
            await messenger.send_sms("+1", "+2", "hi")
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    messenger = FreeClimbMessenger(get_config(), client=client)

    await messenger.close()

    assert not client.is_closed
    await client.aclose()
