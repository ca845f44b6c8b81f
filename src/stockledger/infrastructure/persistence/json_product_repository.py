"""JSON-file-backed implementation of ProductRepository.

The whole catalog lives in one file, so a batch of variant patches is
written with a single atomic file replace. Revision checks and the write
happen under one lock, which makes ``save_variants`` a true
compare-and-swap within this process.
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

from stockledger.domain.exceptions import ConcurrentModificationError, PersistenceFailure
from stockledger.domain.model.product import Product, VariantPatch
from stockledger.domain.repository.product_repository import ProductRepository
from stockledger.domain.service.variant_index import clone_variants


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = asyncio.Lock()
        self._ensure_file()

    # --- ProductRepository interface ------------------------------------------

    async def load_products(self, product_ids: Iterable[str]) -> list[Product]:
        wanted = set(product_ids)
        if not wanted:
            return []
        records = await self._load_raw()
        return [self._to_domain(raw) for raw in records if raw["id"] in wanted]

    async def get_by_id(self, product_id: str) -> Product | None:
        for raw in await self._load_raw():
            if raw["id"] == product_id:
                return self._to_domain(raw)
        return None

    async def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in await self._load_raw()]

    async def add(self, product: Product) -> None:
        async with self._lock:
            records = await self._load_raw()
            raw = self._to_raw(product)
            for i, existing in enumerate(records):
                if existing["id"] == product.id:
                    records[i] = raw
                    break
            else:
                records.append(raw)
            await self._persist_raw(records)

    async def save_variants(self, patches: Sequence[VariantPatch]) -> list[Product]:
        if not patches:
            return []

        async with self._lock:
            records = await self._load_raw()
            by_id = {raw["id"]: raw for raw in records}

            for patch in patches:
                raw = by_id.get(patch.product_id)
                if raw is None:
                    raise ConcurrentModificationError(
                        f"Product '{patch.product_id}' was removed before it could be written",
                        {"product_id": patch.product_id},
                    )
                current = raw.get("version", 1)
                if current != patch.expected_version:
                    raise ConcurrentModificationError(
                        f"Product '{patch.product_id}' is at revision {current}, "
                        f"expected {patch.expected_version}",
                        {
                            "product_id": patch.product_id,
                            "expected_version": patch.expected_version,
                            "current_version": current,
                        },
                    )

            for patch in patches:
                raw = by_id[patch.product_id]
                raw["variants"] = clone_variants(patch.variants)
                raw["version"] = patch.expected_version + 1

            await self._persist_raw(records)
            return [self._to_domain(by_id[patch.product_id]) for patch in patches]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "version": product.version,
            "variants": clone_variants(product.variants),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw.get("name", ""),
            version=raw.get("version", 1),
            variants=clone_variants(raw.get("variants")),
        )

    # --- File helpers ---------------------------------------------------------

    async def _load_raw(self) -> list[dict]:
        try:
            text = await asyncio.to_thread(self._file_path.read_text, encoding="utf-8")
            return json.loads(text)
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(
                f"Could not read products from {self._file_path}",
                {"path": str(self._file_path), "error": str(exc)},
            ) from exc

    async def _persist_raw(self, records: list[dict]) -> None:
        payload = json.dumps(records, indent=2) + "\n"
        try:
            await asyncio.to_thread(self._replace_file, payload)
        except OSError as exc:
            raise PersistenceFailure(
                f"Could not write products to {self._file_path}",
                {"path": str(self._file_path), "error": str(exc)},
            ) from exc

    def _replace_file(self, payload: str) -> None:
        tmp_path = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
