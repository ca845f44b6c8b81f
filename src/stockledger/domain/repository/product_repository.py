"""Abstract repository for the Product aggregate.

Defined in the domain layer so the domain never depends on
infrastructure. Every call may suspend on I/O.

Writes are compare-and-swap: each ``VariantPatch`` names the revision it
was computed from, and ``save_variants`` applies a whole batch atomically
or not at all.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence

from stockledger.domain.model.product import Product, VariantPatch


class ProductRepository(ABC):

    @abstractmethod
    async def load_products(self, product_ids: Iterable[str]) -> list[Product]:
        """Return the products that exist among *product_ids*.

        Unknown ids are silently absent from the result. Returned objects
        are copies; mutating them does not touch the store.
        """

    @abstractmethod
    async def get_by_id(self, product_id: str) -> Product | None:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    async def list_all(self) -> list[Product]:
        """Return every product in the catalog."""

    @abstractmethod
    async def add(self, product: Product) -> None:
        """Insert or replace a catalog product (catalog management only)."""

    @abstractmethod
    async def save_variants(self, patches: Sequence[VariantPatch]) -> list[Product]:
        """Replace ``variants`` for every patched product in one atomic step.

        Raises ConcurrentModificationError, writing nothing, if any product
        is missing or its revision differs from ``expected_version``.
        Raises PersistenceFailure, writing nothing, on storage errors.
        Returns the products as written, with their new revisions.
        """
