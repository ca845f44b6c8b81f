"""Domain service: Stock Ledger.

Reserves, releases and restores per-size stock held inside each product's
``variants`` document.

Every write follows the same two phases:
  Phase 1 - load every affected product and apply all items to working
            copies in memory (``stock_plan``). Any failure here aborts
            before a single write is issued.
  Phase 2 - hand every touched product to the store in one atomic
            compare-and-swap batch. If another writer changed one of them
            since phase 1, the batch is refused as a whole and both phases
            are repeated against fresh data.

This gives all-or-nothing reservations and closes the lost-update race
between concurrent reservations and the expiry sweeper.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from stockledger.domain.exceptions import ConcurrentModificationError
from stockledger.domain.gateway.cache_invalidator import CacheInvalidator, NullCacheInvalidator
from stockledger.domain.model.product import Product
from stockledger.domain.model.stock import AggregatedItem, ReservationResult, Snapshot
from stockledger.domain.repository.product_repository import ProductRepository
from stockledger.domain.service.item_aggregator import AggregationMode, aggregate_items
from stockledger.domain.service.stock_plan import (
    ProductAdjustment,
    StockMovement,
    plan_adjustments,
)
from stockledger.domain.service.variant_index import clone_variants

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5

Planner = Callable[[list[Product]], list[ProductAdjustment]]


def _distinct_product_ids(items: Iterable[AggregatedItem]) -> list[str]:
    return list(dict.fromkeys(item.product_id for item in items))


class StockLedgerService:

    def __init__(
        self,
        product_repo: ProductRepository,
        cache: CacheInvalidator | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._product_repo = product_repo
        self._cache = cache or NullCacheInvalidator()
        self._max_attempts = max_attempts

    # --- Operations -----------------------------------------------------------

    async def reserve(self, items: Sequence[Any]) -> ReservationResult:
        """Take stock for every line of an order, or for none of them.

        Raises a StockLedgerError subclass describing the first line that
        cannot be served. When it raises, no product has been written.
        The returned snapshots are the caller's rollback token for
        ``restore_from_snapshots``.
        """
        if not items:
            return ReservationResult()

        aggregated = aggregate_items(items, AggregationMode.STRICT)

        def planner(products: list[Product]) -> list[ProductAdjustment]:
            return plan_adjustments(products, aggregated, StockMovement.RESERVE, AggregationMode.STRICT)

        adjustments, written = await self._commit(_distinct_product_ids(aggregated), planner)

        versions = {p.id: p.version for p in written}
        snapshots = [
            Snapshot(
                product_id=adj.product_id,
                variants=adj.original_variants,
                version=versions.get(adj.product_id),
            )
            for adj in adjustments
        ]
        logger.info(
            "Reserved %d units across %d product(s)",
            sum(item.quantity for item in aggregated),
            len(snapshots),
        )

        await self._invalidate(s.product_id for s in snapshots)
        return ReservationResult(snapshots=snapshots)

    async def release(self, items: Sequence[Any]) -> list[str]:
        """Hand stock back for the given order lines. Never raises.

        Lines that cannot be matched against the catalog are logged and
        skipped. Returns the ids of the products that were written.
        """
        if not items:
            return []

        try:
            aggregated = aggregate_items(items, AggregationMode.BEST_EFFORT)
            if not aggregated:
                logger.warning("No valid order items to release stock for")
                return []

            def planner(products: list[Product]) -> list[ProductAdjustment]:
                return plan_adjustments(
                    products, aggregated, StockMovement.RELEASE, AggregationMode.BEST_EFFORT
                )

            adjustments, _ = await self._commit(_distinct_product_ids(aggregated), planner)
        except Exception:
            logger.exception("Failed to release stock")
            return []

        touched = [adj.product_id for adj in adjustments]
        await self._invalidate(touched)
        return touched

    async def restore_from_snapshots(self, snapshots: Iterable[Snapshot]) -> list[str]:
        """Put each product's ``variants`` back to its snapshot. Never raises.

        This is a full replace: any change made to the product after the
        reservation is overwritten. That is only safe when each snapshot
        is restored at most once, straight after the reservation it
        belongs to; a warning is logged when an intervening write is
        detected.
        """
        restored: list[str] = []

        for snapshot in snapshots:
            if not snapshot.product_id:
                continue
            try:
                written = await self._restore_one(snapshot)
            except Exception:
                logger.exception("Failed to restore stock for product %s", snapshot.product_id)
                continue
            if written:
                restored.append(snapshot.product_id)
                await self._invalidate([snapshot.product_id])

        return restored

    # --- Internal helpers -----------------------------------------------------

    async def _restore_one(self, snapshot: Snapshot) -> bool:
        def planner(products: list[Product]) -> list[ProductAdjustment]:
            if not products:
                logger.warning("Product %s not found while restoring snapshot", snapshot.product_id)
                return []
            current = products[0]
            if snapshot.version is not None and current.version != snapshot.version:
                logger.warning(
                    "Product %s changed since it was reserved (revision %s, now %s); "
                    "restoring the snapshot overwrites that change",
                    snapshot.product_id,
                    snapshot.version,
                    current.version,
                )
            return [
                ProductAdjustment(
                    product_id=current.id,
                    original_variants=current.copy_variants(),
                    updated_variants=clone_variants(snapshot.variants),
                    expected_version=current.version,
                )
            ]

        adjustments, _ = await self._commit([snapshot.product_id], planner)
        return bool(adjustments)

    async def _commit(
        self,
        product_ids: list[str],
        planner: Planner,
    ) -> tuple[list[ProductAdjustment], list[Product]]:
        """Load, plan and write, retrying when another writer wins the race."""
        for attempt in range(1, self._max_attempts + 1):
            products = await self._product_repo.load_products(product_ids)
            adjustments = planner(products)
            if not adjustments:
                return [], []
            try:
                written = await self._product_repo.save_variants(
                    [adj.to_patch() for adj in adjustments]
                )
            except ConcurrentModificationError as exc:
                logger.info(
                    "Stock write conflict on attempt %d/%d: %s",
                    attempt,
                    self._max_attempts,
                    exc,
                )
                continue
            return adjustments, written

        raise ConcurrentModificationError(
            f"Gave up writing stock after {self._max_attempts} conflicting attempts",
            {"product_ids": product_ids, "attempts": self._max_attempts},
        )

    async def _invalidate(self, product_ids: Iterable[str]) -> None:
        for product_id in product_ids:
            try:
                await self._cache.invalidate(product_id)
            except Exception:
                logger.warning("Cache invalidation failed for product %s", product_id, exc_info=True)
