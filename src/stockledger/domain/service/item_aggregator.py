"""Merge raw order lines into one entry per (product, colour, size).

Two lines for the same size must be checked against stock together, so
aggregation always runs before any stock lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from stockledger.domain.exceptions import (
    InvalidProductId,
    InvalidQuantity,
    MissingVariantSize,
    StockLedgerError,
)
from stockledger.domain.model.order import OrderItem
from stockledger.domain.model.stock import AggregatedItem
from stockledger.domain.service.variant_index import color_key, normalize, normalize_comparable

logger = logging.getLogger(__name__)


class AggregationMode(Enum):
    """How invalid lines are handled.

    STRICT raises on the first bad line (reservations). BEST_EFFORT logs
    and drops bad lines (releases run during cleanup and must not raise).
    """

    STRICT = "strict"
    BEST_EFFORT = "best_effort"


_FIELD_ALIASES = {
    "product_id": ("product_id", "productId"),
    "quantity": ("quantity",),
    "variant_size": ("variant_size", "variantSize"),
    "variant_color": ("variant_color", "variantColor"),
}


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, OrderItem):
        return getattr(raw, name)
    if isinstance(raw, Mapping):
        for alias in _FIELD_ALIASES[name]:
            if alias in raw:
                return raw[alias]
        return None
    return getattr(raw, name, None)


def _describe(raw: Any) -> Any:
    return raw.to_dict() if isinstance(raw, OrderItem) else raw


def parse_quantity(value: Any) -> int | None:
    """Positive integer quantity, or None if *value* is not one.

    Integral floats and digit strings (as decoded from JSON payloads) are
    accepted; booleans are not.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        quantity = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        quantity = int(value)
    elif isinstance(value, str):
        digits = value.strip().removeprefix("+")
        # ASCII only: int() rejects digit-like symbols that isdigit() accepts.
        if not (digits.isascii() and digits.isdecimal()):
            return None
        quantity = int(digits)
    else:
        return None
    return quantity if quantity > 0 else None


def _aggregate_one(raw: Any) -> AggregatedItem:
    product_id = normalize(_field(raw, "product_id"))
    if product_id is None:
        raise InvalidProductId(
            "Order item has no product id",
            {"item": _describe(raw)},
        )

    variant_size = normalize(_field(raw, "variant_size"))
    if variant_size is None:
        raise MissingVariantSize(
            f"Order item for product '{product_id}' has no size",
            {"product_id": product_id, "item": _describe(raw)},
        )

    quantity = parse_quantity(_field(raw, "quantity"))
    if quantity is None:
        raise InvalidQuantity(
            f"Order item for product '{product_id}' has an invalid quantity",
            {"product_id": product_id, "item": _describe(raw)},
        )

    variant_color = normalize(_field(raw, "variant_color"))
    return AggregatedItem(
        product_id=product_id,
        quantity=quantity,
        variant_size=variant_size,
        variant_color=variant_color,
        normalized_size=normalize_comparable(variant_size),  # type: ignore[arg-type]
        normalized_color=color_key(variant_color),
    )


def aggregate_items(
    items: Iterable[Any],
    mode: AggregationMode = AggregationMode.STRICT,
) -> list[AggregatedItem]:
    """Validate and merge order lines, keeping first-seen order.

    Lines may be ``OrderItem`` instances or mappings using either
    snake_case or camelCase keys.
    """
    merged: dict[str, AggregatedItem] = {}

    for raw in items:
        try:
            item = _aggregate_one(raw)
        except StockLedgerError as exc:
            if mode is AggregationMode.STRICT:
                raise
            logger.warning("Skipping order item (%s): %s", exc.code, exc)
            continue

        existing = merged.get(item.key)
        if existing is None:
            merged[item.key] = item
        else:
            existing.quantity += item.quantity

    return list(merged.values())
