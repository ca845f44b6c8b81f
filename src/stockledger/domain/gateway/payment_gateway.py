"""Port for charging a freshly reserved order."""

from __future__ import annotations

from abc import ABC, abstractmethod

from stockledger.domain.model.order import Order


class PaymentGateway(ABC):

    @abstractmethod
    async def charge(self, order: Order) -> bool:
        """Start payment for *order*.

        False means the payment was refused outright and the order's stock
        must be handed back. Asynchronous methods that settle later
        (e.g. PIX) return True and report through a status update.
        """
