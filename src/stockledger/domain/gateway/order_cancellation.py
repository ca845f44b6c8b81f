"""Port for the primary order service's auto-cancel endpoint.

The expiry sweeper asks the order service to cancel an expired order
first. A False result (or an exception) makes the sweeper fall back to
cancelling the order itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class OrderCancellationGateway(ABC):

    @abstractmethod
    async def cancel_order(self, order_id: int, reason: str) -> bool:
        """Ask the order service to cancel *order_id*. True on success."""
