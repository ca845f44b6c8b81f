"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockledger.domain.model.order import Order


@dataclass(frozen=True)
class OrderItemDTO:
    product_id: str
    quantity: int
    variant_size: str | None
    variant_color: str | None


@dataclass(frozen=True)
class OrderDTO:
    """Output: an order as displayed to the user."""

    id: int
    customer_name: str
    payment_method: str
    status: str
    payment_status: str
    items: list[OrderItemDTO]
    created_at: str
    auto_cancel_reason: str | None = None

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            customer_name=order.customer_name,
            payment_method=order.payment_method,
            status=order.status.value,
            payment_status=order.payment_status.value,
            items=[
                OrderItemDTO(
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    variant_size=item.variant_size,
                    variant_color=item.variant_color,
                )
                for item in order.items
            ],
            created_at=order.created_at.strftime("%Y-%m-%d %H:%M UTC"),
            auto_cancel_reason=order.auto_cancel_reason,
        )
