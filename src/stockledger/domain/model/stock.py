"""Value objects produced and consumed by the stock ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class AggregatedItem:
    """All order lines for one (product, colour, size) merged together.

    ``variant_color`` / ``variant_size`` keep the caller's spelling
    (trimmed) for error messages; the ``normalized_*`` fields are what the
    variant index compares against.
    """

    product_id: str
    quantity: int
    variant_size: str
    variant_color: str | None
    normalized_size: str
    normalized_color: str

    @property
    def key(self) -> str:
        return f"{self.product_id}::{self.normalized_color}::{self.normalized_size}"


@dataclass(frozen=True)
class Snapshot:
    """Pre-reservation copy of a product's ``variants``.

    ``version`` is the revision the reservation wrote; a product whose
    current revision differs has been changed by someone else since.
    """

    product_id: str
    variants: list[dict[str, Any]]
    version: int | None = None


@dataclass(frozen=True)
class ReservationResult:
    snapshots: list[Snapshot] = field(default_factory=list)

    @property
    def touched_product_ids(self) -> list[str]:
        return [s.product_id for s in self.snapshots]
