"""Product aggregate.

Products are owned by catalog management. The ledger only ever touches
their ``variants`` payload: a JSON document of colour variants, each
holding a list of size entries with their own stock count.

    [
      {"color": "Blue", "image": "...", "sizes": [
          {"size": "M", "stock": 5, "price": 100}
      ]}
    ]

The document is kept as plain dicts/lists so unknown keys survive a
read-modify-write untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from stockledger.domain.service.variant_index import clone_variants, sum_variant_stock


@dataclass
class Product:
    """A catalog product as seen by the stock ledger.

    ``version`` is the revision counter the product store bumps on every
    write. Writers pass the version they read back to the store, which
    refuses the write if someone else got there first.
    """

    id: str
    variants: list[dict[str, Any]] = field(default_factory=list)
    version: int = 1
    name: str = ""

    @property
    def total_stock(self) -> int:
        return sum_variant_stock(self.variants)

    def copy_variants(self) -> list[dict[str, Any]]:
        return clone_variants(self.variants)


@dataclass(frozen=True)
class VariantPatch:
    """A pending single-field write of ``variants`` for one product."""

    product_id: str
    variants: list[dict[str, Any]]
    expected_version: int
