"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from functools import cached_property

from stockledger.application.auto_cancel_order import AutoCancelOrderHandler
from stockledger.application.expire_orders import ExpireOrdersHandler
from stockledger.domain.gateway.order_cancellation import OrderCancellationGateway
from stockledger.domain.service.stock_ledger_service import StockLedgerService
from stockledger.infrastructure.cache.product_cache import ProductCacheInvalidator
from stockledger.infrastructure.config import Settings, get_settings
from stockledger.infrastructure.gateway.http_order_cancellation import HttpOrderCancellationGateway
from stockledger.infrastructure.gateway.local_order_cancellation import (
    LocalOrderCancellationGateway,
)
from stockledger.infrastructure.persistence.json_order_repository import JsonOrderRepository
from stockledger.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)


class Container:
    """One set of shared collaborators per process.

    Repositories are shared so that every writer in the process goes
    through the same store lock.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @cached_property
    def product_repository(self) -> JsonProductRepository:
        return JsonProductRepository(self.settings.products_file)

    @cached_property
    def order_repository(self) -> JsonOrderRepository:
        return JsonOrderRepository(self.settings.orders_file)

    @cached_property
    def stock_ledger(self) -> StockLedgerService:
        return StockLedgerService(
            self.product_repository,
            cache=ProductCacheInvalidator(),
            max_attempts=self.settings.LEDGER_MAX_ATTEMPTS,
        )

    @cached_property
    def order_cancellation(self) -> OrderCancellationGateway:
        if self.settings.BACKEND_URL:
            return HttpOrderCancellationGateway(
                self.settings.BACKEND_URL,
                self.settings.INTERNAL_API_TOKEN,
                timeout=self.settings.CANCEL_TIMEOUT_SECONDS,
            )
        return LocalOrderCancellationGateway(
            AutoCancelOrderHandler(self.order_repository, self.stock_ledger)
        )

    def expire_orders_handler(self) -> ExpireOrdersHandler:
        return ExpireOrdersHandler(
            self.order_repository,
            self.stock_ledger,
            self.order_cancellation,
            expiration_minutes=self.settings.ORDER_EXPIRATION_MINUTES,
            reason=self.settings.AUTO_CANCEL_REASON,
            payment_method=self.settings.EXPIRABLE_PAYMENT_METHOD,
        )
