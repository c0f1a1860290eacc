"""
Outbound SMS through the FreeClimb REST API.

The webhook router only needs to send a text, so the vendor API is hidden
behind `Messenger.send_sms`. `FreeClimbMessenger` talks to
POST {api}/Accounts/{accountId}/Messages with HTTP basic auth
(account id / API key).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
import structlog

from src.ivr.config import Config, get_config

logger = structlog.get_logger(__name__)


class MessagingError(Exception):
    """Raised when the platform rejects or cannot receive an SMS request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class Messenger(ABC):
    @abstractmethod
    async def send_sms(self, from_number: str, to_number: str, text: str) -> dict[str, Any]:
        """Send `text` from one platform number to another and return the platform response."""
        raise NotImplementedError

    async def close(self) -> None:
        return None


class FreeClimbMessenger(Messenger):
    """
    SMS sender backed by the FreeClimb messages endpoint.

    A client can be injected for tests (e.g. one built on `httpx.MockTransport`).
    """

    def __init__(self, config: Optional[Config] = None, client: Optional[httpx.AsyncClient] = None):
        self.config = config or get_config()
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.api_timeout_seconds),
            )
        return self._client

    async def send_sms(self, from_number: str, to_number: str, text: str) -> dict[str, Any]:
        url = self.config.messages_url
        payload = {"from": from_number, "to": to_number, "text": text}

        try:
            resp = await self._get_client().post(
                url,
                json=payload,
                auth=(self.config.account_id, self.config.api_key),
            )
        except httpx.RequestError as e:
            logger.error("Failed to reach FreeClimb messages API", url=url, error=str(e))
            raise MessagingError(f"FreeClimb request failed: {e}") from e

        if resp.is_error:
            logger.error(
                "FreeClimb rejected SMS",
                status_code=resp.status_code,
                response=resp.text[:200],
            )
            raise MessagingError(
                f"FreeClimb returned status {resp.status_code}",
                status_code=resp.status_code,
            )

        logger.info("SMS sent", to=to_number, status_code=resp.status_code)
        if not resp.content:
            return {}
        return resp.json()

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
