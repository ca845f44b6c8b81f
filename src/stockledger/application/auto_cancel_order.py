"""Application service: Auto-Cancel Order use case.

The order service's own cancellation path for orders whose payment
window lapsed. The expiry sweeper reaches it through an
``OrderCancellationGateway``.
"""

from __future__ import annotations

import logging

from stockledger.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    ValidationError,
)
from stockledger.domain.repository.order_repository import OrderRepository
from stockledger.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class AutoCancelOrderHandler:

    def __init__(self, order_repo: OrderRepository, ledger: StockLedgerService) -> None:
        self._order_repo = order_repo
        self._ledger = ledger

    async def handle(self, order_id: int, reason: str) -> None:
        order = await self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        if not order.is_pending:
            raise ValidationError(
                f"Cannot auto-cancel order #{order_id}: current status is "
                f"{order.status.value}, expected pending"
            )

        order.cancel(reason, auto=True)
        if not await self._order_repo.compare_and_save(order):
            raise ConcurrentModificationError(
                f"Order #{order_id} changed while being auto-cancelled",
                {"order_id": order_id},
            )

        # Stock release is best effort and never undoes the cancellation.
        await self._ledger.release(order.items)
        logger.info("Order #%s auto-cancelled: %s", order_id, reason)
