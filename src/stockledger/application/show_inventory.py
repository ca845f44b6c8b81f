"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from stockledger.domain.repository.product_repository import ProductRepository
from stockledger.domain.service.variant_index import normalize, read_stock


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    product_name: str
    color: str | None
    size: str | None
    stock: int


class ShowInventoryHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    async def handle(self) -> list[InventoryLineDTO]:
        """One line per size entry, in catalog order."""
        lines: list[InventoryLineDTO] = []
        for product in await self._product_repo.list_all():
            for variant in product.variants:
                if not isinstance(variant, dict):
                    continue
                for entry in variant.get("sizes") or []:
                    if not isinstance(entry, dict):
                        continue
                    lines.append(
                        InventoryLineDTO(
                            product_id=product.id,
                            product_name=product.name,
                            color=normalize(variant.get("color")),
                            size=normalize(entry.get("size")),
                            stock=read_stock(entry) or 0,
                        )
                    )
        return lines
