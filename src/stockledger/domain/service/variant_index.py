"""Lookup helpers for the nested ``variants`` document.

Pure functions only. Colours and sizes are compared trimmed and
case-insensitively. An order line without a colour resolves to ``NO_COLOR``
and only ever matches variants whose colour is null or absent.
"""

from __future__ import annotations

import copy
import math
from typing import Any

NO_COLOR = "__no_color__"


def normalize(value: Any) -> str | None:
    """Trim *value*; ``None`` for missing, empty or whitespace-only input."""
    if value is None:
        return None
    trimmed = str(value).strip()
    return trimmed or None


def normalize_comparable(value: Any) -> str | None:
    normalized = normalize(value)
    return normalized.lower() if normalized else None


def color_key(value: Any) -> str:
    """Comparable colour, with absent colours mapped to ``NO_COLOR``."""
    return normalize_comparable(value) or NO_COLOR


def variant_color_key(variant: dict[str, Any]) -> str:
    """Comparable colour of a stored variant.

    Only a null or absent colour is ``NO_COLOR``. A blank string colour is
    catalog data we cannot address and compares as ``""``, which no lookup
    key ever equals.
    """
    color = variant.get("color")
    if color is None:
        return NO_COLOR
    return normalize_comparable(color) or ""


def find_variant(variants: list[dict[str, Any]], normalized_color: str | None) -> dict[str, Any] | None:
    """Return the first variant whose colour matches, or None.

    *normalized_color* is the output of ``color_key``; a bare ``None`` is
    accepted and treated as ``NO_COLOR``.
    """
    wanted = normalized_color or NO_COLOR
    for variant in variants:
        if not isinstance(variant, dict):
            continue
        if variant_color_key(variant) == wanted:
            return variant
    return None


def find_size_entry(variant: dict[str, Any], normalized_size: str | None) -> dict[str, Any] | None:
    if normalized_size is None:
        return None
    sizes = variant.get("sizes")
    if not isinstance(sizes, list):
        return None
    for entry in sizes:
        if isinstance(entry, dict) and normalize_comparable(entry.get("size")) == normalized_size:
            return entry
    return None


def read_stock(entry: dict[str, Any]) -> int | None:
    """Stored stock as an int, or None when it is missing or not a number."""
    raw = entry.get("stock")
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value):
        return None
    return int(value)


def clone_variants(variants: Any) -> list[dict[str, Any]]:
    if not isinstance(variants, list):
        return []
    return copy.deepcopy(variants)


def sum_variant_stock(variants: Any) -> int:
    """Total sellable units across every variant and size.

    Negative or unreadable stock values count as zero.
    """
    if not isinstance(variants, list):
        return 0
    total = 0
    for variant in variants:
        if not isinstance(variant, dict) or not isinstance(variant.get("sizes"), list):
            continue
        for entry in variant["sizes"]:
            if not isinstance(entry, dict):
                continue
            stock = read_stock(entry)
            if stock is not None and stock >= 0:
                total += stock
    return total
