"""
Expo push notification adapter.

Posts one message per recipient token to the Expo push API. Delivery is
fire-and-forget: an accepted HTTP request is treated as success and no
receipt is polled.
"""

import logging
from typing import Any

import httpx

from core.errors import RecipientDispatchFailure
from core.interfaces.services import PushMessage, PushService

logger = logging.getLogger(__name__)


class ExpoPushAdapter(PushService):
    """Push delivery over the Expo HTTP/2 push endpoint."""

    def __init__(
        self,
        api_url: str | None = None,
        timeout: int | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize Expo push adapter.

        Args:
            api_url: Push send endpoint (defaults to the ``push_api_url`` setting)
            timeout: Request timeout in seconds (defaults to ``push_timeout``)
            client: Pre-built HTTP client, mainly for tests
        """
        if api_url is None or timeout is None:
            from infrastructure.config import get_settings

            settings = get_settings()
            api_url = api_url or settings.push_api_url
            timeout = timeout or settings.push_timeout
        self.api_url = api_url
        self.timeout = timeout
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Accept": "application/json",
                    "Accept-Encoding": "gzip, deflate",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        return self._client

    async def close(self):
        """Close the HTTP client connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def send(self, message: PushMessage) -> None:
        """
        Send a single push message.

        Raises:
            RecipientDispatchFailure: On transport errors, non-2xx responses,
                or an error ticket returned by the push service
        """
        try:
            response = await self._get_client().post(self.api_url, json=message.to_dict())
        except httpx.HTTPError as e:
            raise RecipientDispatchFailure(message.token, f"transport error: {e}") from e

        if response.status_code >= 400:
            raise RecipientDispatchFailure(
                message.token, f"HTTP {response.status_code}: {response.text[:200]}"
            )

        ticket = self._parse_ticket(response)
        if ticket.get("status") == "error":
            raise RecipientDispatchFailure(
                message.token, ticket.get("message") or "push service rejected the message"
            )

        logger.debug("Push accepted by %s", self.api_url)

    @staticmethod
    def _parse_ticket(response: httpx.Response) -> dict[str, Any]:
        """Extract the push ticket from the response body, if any."""
        try:
            body = response.json()
        except ValueError:
            return {}
        data = body.get("data") if isinstance(body, dict) else None
        if isinstance(data, list):
            data = data[0] if data else None
        return data if isinstance(data, dict) else {}
