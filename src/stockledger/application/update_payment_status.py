"""Application service: Update Payment Status use case.

Called when the payment gateway reports on an order. When the report
moves the payment into a failed, cancelled or expired state for the first
time, the order's stock is released.

The status change is written with a compare-and-swap on the order row,
and stock is only released by the writer whose change won. A concurrent
expiry sweep or a repeated gateway report therefore cannot hand the same
stock back twice.
"""

from __future__ import annotations

import logging

from stockledger.application.dto import OrderDTO
from stockledger.domain.exceptions import ConcurrentModificationError, EntityNotFoundError
from stockledger.domain.model.order import Order
from stockledger.domain.repository.order_repository import OrderRepository
from stockledger.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


class UpdatePaymentStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        ledger: StockLedgerService,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._order_repo = order_repo
        self._ledger = ledger
        self._max_attempts = max_attempts

    async def handle(self, order_id: int, gateway_status: str) -> OrderDTO:
        order, transitioned = await self.record(order_id, gateway_status)

        if transitioned:
            released = await self._ledger.release(order.items)
            logger.info("Order #%s %s: released stock for %s", order_id, gateway_status, released)

        return OrderDTO.from_order(order)

    async def record(self, order_id: int, gateway_status: str) -> tuple[Order, bool]:
        """Store the reported status without touching stock.

        Returns the saved order and whether this call moved it into a
        cancellation status.
        """
        for attempt in range(1, self._max_attempts + 1):
            order = await self._order_repo.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            settled = order.is_terminal
            transitioned = order.apply_payment_status(gateway_status)
            if settled:
                logger.info(
                    "Order #%s is already %s/%s, ignoring payment status %s",
                    order_id,
                    order.status.value,
                    order.payment_status.value,
                    gateway_status,
                )
                return order, False

            if await self._order_repo.compare_and_save(order):
                return order, transitioned

            logger.info(
                "Order #%s changed while recording payment status (attempt %d/%d)",
                order_id,
                attempt,
                self._max_attempts,
            )

        raise ConcurrentModificationError(
            f"Gave up recording payment status for order #{order_id} after "
            f"{self._max_attempts} conflicting attempts",
            {"order_id": order_id, "attempts": self._max_attempts},
        )
