"""Application service: Expire Orders use case (the expiry sweeper).

Runs on a timer, not per request. Finds pending orders whose payment
window has lapsed and cancels each one, preferably through the order
service. When the order service cannot be reached the sweeper cancels
the order itself: it marks the order cancelled with a compare-and-swap
on the order row, then releases its stock through the same ledger
service (and therefore the same matching rules and compare-and-swap
writes) used by request handling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from stockledger.domain.exceptions import DomainException
from stockledger.domain.gateway.order_cancellation import OrderCancellationGateway
from stockledger.domain.repository.order_repository import OrderRepository
from stockledger.domain.service.stock_ledger_service import StockLedgerService

logger = logging.getLogger(__name__)

DEFAULT_EXPIRATION_MINUTES = 30
DEFAULT_AUTO_CANCEL_REASON = "PIX expired"
DEFAULT_PAYMENT_METHOD = "pix"


@dataclass
class SweepTotals:
    cutoff: datetime
    checked: int = 0
    cancelled: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "cutoff": self.cutoff.isoformat(),
            "checked": self.checked,
            "cancelled": self.cancelled,
            "skipped": self.skipped,
            "failed": self.failed,
        }


class ExpireOrdersHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        ledger: StockLedgerService,
        cancellation: OrderCancellationGateway,
        expiration_minutes: int = DEFAULT_EXPIRATION_MINUTES,
        reason: str = DEFAULT_AUTO_CANCEL_REASON,
        payment_method: str = DEFAULT_PAYMENT_METHOD,
    ) -> None:
        if expiration_minutes <= 0:
            raise ValueError("expiration_minutes must be positive")
        self._order_repo = order_repo
        self._ledger = ledger
        self._cancellation = cancellation
        self._expiration = timedelta(minutes=expiration_minutes)
        self._reason = reason
        self._payment_method = payment_method

    async def handle(self, now: datetime | None = None) -> SweepTotals:
        now = now or datetime.now(timezone.utc)
        totals = SweepTotals(cutoff=now - self._expiration)

        expired = await self._order_repo.list_expired_pending(totals.cutoff, self._payment_method)
        totals.checked = len(expired)

        for order in expired:
            order_id = order.id
            if order_id is None:
                totals.skipped += 1
                continue
            if await self._cancel_through_service(order_id):
                totals.cancelled += 1
                continue

            logger.warning("Order service auto-cancel failed for #%s, cancelling directly", order_id)
            outcome = await self._cancel_directly(order_id)
            if outcome is None:
                totals.skipped += 1
            elif outcome:
                totals.cancelled += 1
            else:
                totals.failed += 1

        logger.info(
            "Expiry sweep done: checked=%d cancelled=%d skipped=%d failed=%d",
            totals.checked,
            totals.cancelled,
            totals.skipped,
            totals.failed,
        )
        return totals

    async def _cancel_through_service(self, order_id: int) -> bool:
        try:
            return await self._cancellation.cancel_order(order_id, self._reason)
        except Exception:
            logger.exception("Order cancellation service raised for order #%s", order_id)
            return False

    async def _cancel_directly(self, order_id: int) -> bool | None:
        """Cancel, then release stock. None when the order is no longer pending.

        The cancellation is a compare-and-swap on the order row, so a payment
        report landing at the same time either wins (and settles the stock
        itself) or sees the order already cancelled.
        """
        try:
            order = await self._order_repo.get_by_id(order_id)
            if order is None:
                logger.error("Expired order #%s disappeared before direct cancellation", order_id)
                return False
            if not order.is_pending:
                # Someone (payment webhook, the order service) already settled it.
                logger.info("Order #%s is %s, nothing to cancel", order_id, order.status.value)
                return None

            order.cancel(self._reason, auto=True)
            if not await self._order_repo.compare_and_save(order):
                logger.info("Order #%s changed while being cancelled, leaving it as is", order_id)
                return None

            items = await self._order_repo.load_order_items(order_id)
            if items:
                await self._ledger.release(items)
            else:
                logger.warning("No order items found for stock release on order #%s", order_id)
        except DomainException:
            logger.exception("Direct cancellation failed for order #%s", order_id)
            return False

        logger.info("Order #%s cancelled directly: %s", order_id, self._reason)
        return True
