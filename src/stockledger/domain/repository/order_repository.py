"""Abstract repository for the Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from stockledger.domain.model.order import Order, OrderItem


class OrderRepository(ABC):

    @abstractmethod
    async def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    async def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    async def save(self, order: Order) -> None:
        """Persist a new or updated order and bump its ``version``."""

    @abstractmethod
    async def compare_and_save(self, order: Order) -> bool:
        """Persist *order* only if the stored row is still at ``order.version``.

        Returns False, leaving both the store and *order* untouched, when
        another writer saved the order since it was loaded or the order
        does not exist. On success ``order.version`` is bumped.
        """

    @abstractmethod
    async def list_expired_pending(self, cutoff: datetime, payment_method: str) -> list[Order]:
        """Pending orders paid with *payment_method* created before *cutoff*."""

    @abstractmethod
    async def load_order_items(self, order_id: int) -> list[OrderItem]:
        """Return the line items of an order, or [] if it does not exist."""
