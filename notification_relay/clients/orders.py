"""Order service client.

Transitions order state and reads order metadata over HTTP using the
static bearer credential from configuration.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from notification_relay.config import RelayConfig
from notification_relay.core.logger import get_logger, log_context
from notification_relay.models.results import OrderLookupResult, OrderStatusUpdateResult

logger = get_logger(__name__)

# Keys checked, in order, for the buyer address in order metadata
ORDER_EMAIL_KEYS = ("userEmail", "email", "customerEmail")


def _response_detail(response: httpx.Response) -> Any:
    """Response body as JSON when parseable, else text."""
    try:
        return response.json()
    except ValueError:
        return response.text


class OrderStatusClient:
    """Client for the order service API.

    Every call carries the configured deadline. Non-2xx responses and
    transport errors are returned as failed results, never raised.

    Attributes:
        base_url: Order service base URL without trailing slash.
        timeout: Per-request deadline in seconds.
    """

    def __init__(
        self,
        config: RelayConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Relay configuration (URL, token, timeout).
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.base_url = config.ORDERS_SERVICE_URL.rstrip("/")
        self.timeout = config.ORDERS_SERVICE_TIMEOUT_SECONDS
        self._token = config.JWT_TOKEN
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _order_url(self, order_id: str) -> str:
        return f"{self.base_url}/api/v1/orders/{quote(str(order_id), safe='')}"

    def _log_unauthorized(self, order_id: str) -> None:
        logger.warning(
            f"Order service rejected the credential for order {order_id} (401). "
            "JWT_TOKEN is invalid or expired: generate a new token from the user "
            "service and update JWT_TOKEN."
        )

    async def update_order_status(self, order_id: str, status: str) -> OrderStatusUpdateResult:
        """Transition an order to a new state.

        Args:
            order_id: Order identifier.
            status: Target state (e.g. "paid").

        Returns:
            OrderStatusUpdateResult; success for any 2xx response.
        """
        url = f"{self._order_url(order_id)}/state/{quote(status, safe='')}"
        ctx = log_context("order_status", order_id=order_id, status=status)
        logger.debug(f"{ctx} PUT {url}")

        try:
            response = await self.client.put(url, json={}, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"{ctx} Order service unreachable: {type(e).__name__}: {e}")
            return OrderStatusUpdateResult(
                success=False, error=str(e) or type(e).__name__
            )

        if response.is_success:
            logger.info(f"{ctx} Order updated (HTTP {response.status_code})")
            data = _response_detail(response) if response.content else None
            return OrderStatusUpdateResult(
                success=True, data=data, status_code=response.status_code
            )

        if response.status_code == 401:
            self._log_unauthorized(order_id)

        result = OrderStatusUpdateResult(
            success=False,
            error=_response_detail(response),
            status_code=response.status_code,
        )
        logger.error(
            f"{ctx} Order update failed (HTTP {response.status_code}): {result.error_detail}"
        )
        return result

    async def get_order(self, order_id: str) -> OrderLookupResult:
        """Fetch order metadata."""
        url = self._order_url(order_id)
        try:
            response = await self.client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Order lookup for {order_id} failed: {type(e).__name__}: {e}")
            return OrderLookupResult(success=False, error=str(e) or type(e).__name__)

        if not response.is_success:
            if response.status_code == 401:
                self._log_unauthorized(order_id)
            result = OrderLookupResult(
                success=False,
                error=_response_detail(response),
                status_code=response.status_code,
            )
            logger.warning(
                f"Order lookup for {order_id} failed (HTTP {response.status_code}): "
                f"{result.error_detail}"
            )
            return result

        order = _response_detail(response)
        if not isinstance(order, dict):
            return OrderLookupResult(
                success=False,
                error="Order service returned a non-object body",
                status_code=response.status_code,
            )
        return OrderLookupResult(success=True, order=order, status_code=response.status_code)

    async def get_order_email(self, order_id: str) -> str | None:
        """Return the buyer address recorded on the order, if any."""
        result = await self.get_order(order_id)
        if not result.success or not result.order:
            return None

        # Some deployments wrap the order in {"data": {...}}
        order = result.order.get("data", result.order)
        if not isinstance(order, dict):
            return None

        for key in ORDER_EMAIL_KEYS:
            value = order.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
        return None

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
