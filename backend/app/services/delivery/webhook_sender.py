"""Outbound webhook client for the automation channel."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ...errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryResponse:
    status_code: int
    body: Any


class WebhookSender:
    """POSTs JSON records to a single webhook URL.

    One attempt per record: a timeout, transport error or non-2xx status
    raises UpstreamError and is not retried.

    Usage:
        sender = WebhookSender(url=settings.webhook_url, timeout=settings.webhook_timeout_seconds)
        response = sender.deliver(package.to_dict())
    """

    def __init__(
        self,
        url: str,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize webhook sender.

        Args:
            url: Webhook endpoint
            timeout: Request timeout in seconds (default: 15.0)
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.url = url
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    def _get_client(self) -> httpx.Client:
        """Get HTTP client instance with configured timeout."""
        return httpx.Client(timeout=self.timeout, transport=self.transport)

    def deliver(self, payload: Dict[str, Any]) -> DeliveryResponse:
        """Send one record.

        Returns:
            DeliveryResponse with status code and parsed body (JSON, else text)

        Raises:
            UpstreamError: on timeout, connection failure or non-2xx status
        """
        if not self.url:
            raise UpstreamError("deliver", "No webhook URL configured")

        try:
            with self._get_client() as client:
                response = client.post(self.url, json=payload, headers=self._headers())
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise UpstreamError("deliver", f"Webhook timed out after {self.timeout}s", {"url": self.url}) from e
        except httpx.HTTPStatusError as e:
            raise UpstreamError(
                "deliver",
                f"Webhook returned {e.response.status_code}",
                {"url": self.url, "status_code": e.response.status_code, "body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError("deliver", f"Webhook request failed: {e}", {"url": self.url}) from e

        try:
            body = response.json()
        except ValueError:
            body = response.text

        logger.info(f"Webhook delivered to {self.url} with status {response.status_code}")
        return DeliveryResponse(status_code=response.status_code, body=body)
