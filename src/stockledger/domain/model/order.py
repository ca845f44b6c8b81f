"""Order aggregate.

Only the parts of an order the stock ledger cares about: the line items
that reserved stock, the payment lifecycle that decides whether that stock
stays reserved, and the auto-cancel bookkeeping written by the expiry
sweeper.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from stockledger.domain.exceptions import ValidationError
from stockledger.domain.model.stock import Snapshot


class OrderStatus(Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


CANCELLATION_PAYMENT_STATUSES = frozenset(
    {PaymentStatus.FAILED, PaymentStatus.CANCELLED, PaymentStatus.EXPIRED}
)

# Gateway status -> (order status, payment status)
_GATEWAY_STATUS_MAP: dict[str, tuple[OrderStatus | None, PaymentStatus]] = {
    "approved": (OrderStatus.PROCESSING, PaymentStatus.PAID),
    "rejected": (OrderStatus.CANCELLED, PaymentStatus.FAILED),
    "cancelled": (OrderStatus.CANCELLED, PaymentStatus.CANCELLED),
    "expired": (OrderStatus.CANCELLED, PaymentStatus.EXPIRED),
    "pending": (None, PaymentStatus.PENDING),
    "in_process": (None, PaymentStatus.PENDING),
}

MAX_LINE_ITEMS = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OrderItem:
    """One line of an order as submitted by the caller.

    Values are kept raw; the item aggregator is the only place that
    validates and normalizes them.
    """

    product_id: Any
    quantity: Any
    variant_size: Any
    variant_color: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "variant_size": self.variant_size,
            "variant_color": self.variant_color,
        }


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.create()`` for new orders. The plain constructor lets the
    repository rebuild persisted orders without re-validating them.
    ``snapshots`` is the rollback token of the reservation; it lives in
    memory only and is dropped once the order reaches a terminal state.
    ``version`` counts stored writes (0 until first saved) and guards
    ``OrderRepository.compare_and_save``.
    """

    id: int | None
    customer_name: str
    items: list[OrderItem]
    payment_method: str = "pix"
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime | None = None
    auto_cancelled_at: datetime | None = None
    auto_cancel_reason: str | None = None
    version: int = 0
    snapshots: list[Snapshot] = field(default_factory=list, repr=False)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_name: str,
        items: list[OrderItem],
        payment_method: str = "pix",
    ) -> Order:
        if not customer_name or not customer_name.strip():
            raise ValidationError("Customer name is required")
        if not items:
            raise ValidationError("Order must contain at least one item")
        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")
        if not payment_method or not payment_method.strip():
            raise ValidationError("Payment method is required")

        return Order(
            id=None,
            customer_name=customer_name.strip(),
            items=list(items),
            payment_method=payment_method.strip().lower(),
        )

    # --- State transitions ----------------------------------------------------

    def apply_payment_status(self, gateway_status: str) -> bool:
        """Apply a status reported by the payment gateway.

        Returns True when this call moved the payment into a cancellation
        status it was not in before, i.e. when reserved stock must be
        handed back. Reports for a cancelled or paid order change nothing
        and return False: its stock has already been settled.
        """
        key = (gateway_status or "").strip().lower()
        if key not in _GATEWAY_STATUS_MAP:
            raise ValidationError(f"Unknown payment status '{gateway_status}'")
        if self.is_terminal:
            return False

        order_status, payment_status = _GATEWAY_STATUS_MAP[key]
        previous = self.payment_status

        if order_status is not None:
            self.status = order_status
        self.payment_status = payment_status
        self.updated_at = _utcnow()

        if self.is_terminal:
            self.snapshots = []

        return (
            previous not in CANCELLATION_PAYMENT_STATUSES
            and payment_status in CANCELLATION_PAYMENT_STATUSES
        )

    def cancel(self, reason: str, auto: bool = False) -> None:
        """Transition PENDING -> CANCELLED.

        Stock release must be done by the caller before saving.
        """
        if self.status == OrderStatus.CANCELLED:
            raise ValidationError(f"Order #{self.id} is already cancelled")
        if self.payment_status == PaymentStatus.PAID:
            raise ValidationError(f"Cannot cancel paid order #{self.id}")

        now = _utcnow()
        self.status = OrderStatus.CANCELLED
        if self.payment_status not in CANCELLATION_PAYMENT_STATUSES:
            self.payment_status = PaymentStatus.CANCELLED
        self.updated_at = now
        if auto:
            self.auto_cancelled_at = now
            self.auto_cancel_reason = reason
        self.snapshots = []

    # --- Queries --------------------------------------------------------------

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status == OrderStatus.CANCELLED or self.payment_status == PaymentStatus.PAID

    def is_expired(self, cutoff: datetime, payment_method: str) -> bool:
        return (
            self.is_pending
            and self.payment_method == payment_method
            and self.created_at < cutoff
        )
