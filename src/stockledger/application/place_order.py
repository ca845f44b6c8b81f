"""Application service: Place Order use case.

Reserves stock for every line, records the order as pending, then hands
it to the payment gateway. A refused payment puts the stock back from
the reservation snapshots and marks the order failed.
"""

from __future__ import annotations

import logging

from stockledger.application.dto import OrderDTO
from stockledger.application.update_payment_status import UpdatePaymentStatusHandler
from stockledger.domain.gateway.payment_gateway import PaymentGateway
from stockledger.domain.model.order import Order, OrderItem
from stockledger.domain.repository.order_repository import OrderRepository
from stockledger.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)


class PlaceOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        ledger: StockLedgerService,
        payments: PaymentGateway,
    ) -> None:
        self._order_repo = order_repo
        self._ledger = ledger
        self._payments = payments
        self._payment_updates = UpdatePaymentStatusHandler(order_repo, ledger)

    async def handle(
        self,
        customer_name: str,
        items: list[OrderItem],
        payment_method: str = "pix",
    ) -> OrderDTO:
        """Place an order.

        Stock errors propagate unchanged and nothing is persisted; the
        order never reaches the payment gateway. If the order cannot be
        recorded, the reservation is put back before the error propagates.
        """
        order = Order.create(customer_name, items, payment_method)

        reservation = await self._ledger.reserve(order.items)
        order.snapshots = reservation.snapshots
        try:
            await self._order_repo.save(order)
        except Exception:
            logger.warning("Could not record new order, putting reserved stock back")
            await self._ledger.restore_from_snapshots(reservation.snapshots)
            raise
        logger.info("Order #%s placed, stock reserved for %s", order.id, reservation.touched_product_ids)

        try:
            charged = await self._payments.charge(order)
        except Exception:
            await self._roll_back(order)
            raise

        if not charged:
            logger.warning("Payment refused for order #%s", order.id)
            order = await self._roll_back(order)

        return OrderDTO.from_order(order)

    async def _roll_back(self, order: Order) -> Order:
        order_id = order.id
        if order_id is None:
            raise ValueError("Cannot roll back an order that was never saved")

        snapshots = order.snapshots
        settled, transitioned = await self._payment_updates.record(order_id, "rejected")
        if transitioned:
            await self._ledger.restore_from_snapshots(snapshots)
        else:
            # Whoever settled the order first also settled its stock.
            logger.warning("Order #%s was settled concurrently, leaving its stock alone", order_id)
        return settled
