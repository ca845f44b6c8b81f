"""Compute new ``variants`` documents for a batch of stock movements.

This is the validate-in-memory half of every ledger write. It never does
I/O: it takes products already loaded, applies each aggregated item to a
working copy and reports what would have to be written. Reservations,
releases and the expiry sweeper all go through here so the matching rules
cannot drift apart.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from stockledger.domain.exceptions import (
    InsufficientStock,
    ProductNotFound,
    StockLedgerError,
    VariantColorNotFound,
    VariantSizeNotFound,
)
from stockledger.domain.model.product import Product, VariantPatch
from stockledger.domain.model.stock import AggregatedItem
from stockledger.domain.service.item_aggregator import AggregationMode
from stockledger.domain.service.variant_index import (
    clone_variants,
    find_size_entry,
    find_variant,
    read_stock,
)

logger = logging.getLogger(__name__)


class StockMovement(Enum):
    RESERVE = -1
    RELEASE = 1


@dataclass(frozen=True)
class ProductAdjustment:
    product_id: str
    original_variants: list[dict[str, Any]]
    updated_variants: list[dict[str, Any]]
    expected_version: int

    def to_patch(self) -> VariantPatch:
        return VariantPatch(
            product_id=self.product_id,
            variants=self.updated_variants,
            expected_version=self.expected_version,
        )


class _WorkingCopy:

    def __init__(self, product: Product) -> None:
        self.product = product
        self.original = clone_variants(product.variants)
        self.updated = clone_variants(product.variants)


def _apply(context: _WorkingCopy, item: AggregatedItem, movement: StockMovement) -> None:
    variant = find_variant(context.updated, item.normalized_color)
    if variant is None:
        raise VariantColorNotFound(
            f"Product '{item.product_id}' has no variant with colour '{item.variant_color}'",
            {"product_id": item.product_id, "color": item.variant_color},
        )

    entry = find_size_entry(variant, item.normalized_size)
    if entry is None:
        raise VariantSizeNotFound(
            f"Product '{item.product_id}' has no size '{item.variant_size}' "
            f"for colour '{item.variant_color}'",
            {
                "product_id": item.product_id,
                "color": item.variant_color,
                "size": item.variant_size,
            },
        )

    current = read_stock(entry)

    if movement is StockMovement.RESERVE:
        if current is None or current < item.quantity:
            available = current if current is not None else 0
            raise InsufficientStock(
                f"Insufficient stock for product '{item.product_id}' "
                f"(need {item.quantity}, have {available} available)",
                {
                    "product_id": item.product_id,
                    "color": item.variant_color,
                    "size": item.variant_size,
                    "requested": item.quantity,
                    "available": available,
                },
            )
        entry["stock"] = current - item.quantity
    else:
        entry["stock"] = (current if current is not None else 0) + item.quantity


def plan_adjustments(
    products: Iterable[Product],
    items: Iterable[AggregatedItem],
    movement: StockMovement,
    mode: AggregationMode = AggregationMode.STRICT,
) -> list[ProductAdjustment]:
    """Apply *items* to working copies of *products*.

    In STRICT mode the first unresolvable item raises and nothing is
    returned. In BEST_EFFORT mode such items are logged and skipped.
    Only products that at least one item touched are returned, in the
    order they were first touched.
    """
    contexts: Mapping[str, _WorkingCopy] = {p.id: _WorkingCopy(p) for p in products}
    touched: dict[str, _WorkingCopy] = {}

    for item in items:
        try:
            context = contexts.get(item.product_id)
            if context is None:
                raise ProductNotFound(
                    f"Product '{item.product_id}' not found",
                    {"product_id": item.product_id},
                )
            _apply(context, item, movement)
        except StockLedgerError as exc:
            if mode is AggregationMode.STRICT:
                raise
            logger.warning("Skipping stock %s (%s): %s", movement.name.lower(), exc.code, exc)
            continue
        touched.setdefault(item.product_id, context)

    return [
        ProductAdjustment(
            product_id=product_id,
            original_variants=context.original,
            updated_variants=context.updated,
            expected_version=context.product.version,
        )
        for product_id, context in touched.items()
    ]
