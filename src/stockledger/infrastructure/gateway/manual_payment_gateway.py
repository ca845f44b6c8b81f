"""Payment gateway used by the CLI: payments settle later via status updates."""

from __future__ import annotations

from stockledger.domain.gateway.payment_gateway import PaymentGateway
from stockledger.domain.model.order import Order


class DeferredPaymentGateway(PaymentGateway):

    async def charge(self, order: Order) -> bool:
        return True
