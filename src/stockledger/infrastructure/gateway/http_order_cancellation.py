"""Order cancellation through the order service's internal HTTP endpoint."""

from __future__ import annotations

import logging

import httpx

from stockledger.domain.gateway.order_cancellation import OrderCancellationGateway

logger = logging.getLogger(__name__)


class HttpOrderCancellationGateway(OrderCancellationGateway):
    """POSTs to ``{base_url}/api/internal/orders/{id}/auto-cancel``.

    Any failure (missing configuration, transport error, non-2xx answer)
    is logged and reported as False so the sweeper can fall back.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport

    async def cancel_order(self, order_id: int, reason: str) -> bool:
        if not self._base_url or not self._token:
            logger.debug("Order service endpoint not configured")
            return False

        url = f"{self._base_url}/api/internal/orders/{order_id}/auto-cancel"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json={"reason": reason},
                    headers={"x-internal-token": self._token},
                )
        except httpx.HTTPError as exc:
            logger.error("Order service auto-cancel request for #%s failed: %s", order_id, exc)
            return False

        if response.is_success:
            return True

        logger.error(
            "Order service refused auto-cancel of #%s with status %s: %s",
            order_id,
            response.status_code,
            response.text,
        )
        return False
