"""Client that hands proactive requests to a trigger endpoint.

In a real deployment a backend service plays this role. The demo bot uses it
to POST to its own ``/api/proactive`` endpoint. It is a one-way message
boundary: the outcome of the POST is never reported back.
"""

from __future__ import annotations

import httpx

from config.logging import get_logger
from relay_core.models import ProactiveRequest

logger = get_logger("adapters.botframework.trigger")


class TriggerClient:
    """Fire-and-forget sender of proactive requests."""

    def __init__(
        self,
        trigger_url: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the trigger client.

        Args:
            trigger_url: URL of the proactive trigger endpoint
            timeout: Request timeout in seconds
            client: Optional shared HTTP client (a new one is opened per send otherwise)
        """
        self.trigger_url = trigger_url
        self.timeout = timeout
        self._client = client

    async def send(self, request: ProactiveRequest) -> None:
        """POST ``request`` to the trigger endpoint, ignoring any failure."""
        content = request.to_json().encode("utf-8")
        headers = {"Content-Type": "application/json"}

        try:
            if self._client is not None:
                response = await self._client.post(self.trigger_url, content=content, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                    response = await client.post(self.trigger_url, content=content, headers=headers)
        except httpx.HTTPError as e:
            logger.debug(f"Proactive trigger POST to {self.trigger_url} failed: {e}")
            return

        logger.debug(
            f"Proactive trigger POST to {self.trigger_url} returned {response.status_code}",
            extra={"status_code": response.status_code},
        )

    async def close(self) -> None:
        """Close the shared HTTP client, if one was supplied."""
        if self._client is not None:
            await self._client.aclose()
