"""Order cancellation by calling the auto-cancel use case in-process."""

from __future__ import annotations

import logging

from stockledger.application.auto_cancel_order import AutoCancelOrderHandler
from stockledger.domain.exceptions import DomainException
from stockledger.domain.gateway.order_cancellation import OrderCancellationGateway

logger = logging.getLogger(__name__)


class LocalOrderCancellationGateway(OrderCancellationGateway):

    def __init__(self, handler: AutoCancelOrderHandler) -> None:
        self._handler = handler

    async def cancel_order(self, order_id: int, reason: str) -> bool:
        try:
            await self._handler.handle(order_id, reason)
        except DomainException as exc:
            logger.warning("Auto-cancel of order #%s refused: %s", order_id, exc)
            return False
        return True
