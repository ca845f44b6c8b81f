"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

import asyncio
import json
import os
from datetime import datetime
from pathlib import Path

from stockledger.domain.exceptions import PersistenceFailure
from stockledger.domain.model.order import Order, OrderItem, OrderStatus, PaymentStatus
from stockledger.domain.repository.order_repository import OrderRepository


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = asyncio.Lock()
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    async def next_id(self) -> int:
        orders = await self._load_raw()
        if not orders:
            return 1
        return max(o["id"] for o in orders) + 1

    async def get_by_id(self, order_id: int) -> Order | None:
        for raw in await self._load_raw():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    async def save(self, order: Order) -> None:
        async with self._lock:
            orders = await self._load_raw()

            if order.id is None:
                order.id = max((o["id"] for o in orders), default=0) + 1

            record = self._to_raw(order)
            record["version"] = order.version + 1

            # Upsert: replace if exists, otherwise append
            for i, raw in enumerate(orders):
                if raw["id"] == order.id:
                    orders[i] = record
                    break
            else:
                orders.append(record)

            await self._persist_raw(orders)
            order.version += 1

    async def compare_and_save(self, order: Order) -> bool:
        async with self._lock:
            orders = await self._load_raw()

            for i, raw in enumerate(orders):
                if raw["id"] == order.id:
                    break
            else:
                return False

            if raw.get("version", 0) != order.version:
                return False

            record = self._to_raw(order)
            record["version"] = order.version + 1
            orders[i] = record
            await self._persist_raw(orders)
            order.version += 1
            return True

    async def list_expired_pending(self, cutoff: datetime, payment_method: str) -> list[Order]:
        orders = [self._to_domain(raw) for raw in await self._load_raw()]
        return [o for o in orders if o.is_expired(cutoff, payment_method)]

    async def load_order_items(self, order_id: int) -> list[OrderItem]:
        order = await self.get_by_id(order_id)
        return list(order.items) if order is not None else []

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        return {
            "id": order.id,
            "customer_name": order.customer_name,
            "payment_method": order.payment_method,
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "created_at": _iso(order.created_at),
            "updated_at": _iso(order.updated_at),
            "auto_cancelled_at": _iso(order.auto_cancelled_at),
            "auto_cancel_reason": order.auto_cancel_reason,
            "version": order.version,
            "items": [item.to_dict() for item in order.items],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        return Order(
            id=raw["id"],
            customer_name=raw["customer_name"],
            items=[
                OrderItem(
                    product_id=i.get("product_id"),
                    quantity=i.get("quantity"),
                    variant_size=i.get("variant_size"),
                    variant_color=i.get("variant_color"),
                )
                for i in raw["items"]
            ],
            payment_method=raw.get("payment_method", "pix"),
            status=OrderStatus(raw["status"]),
            payment_status=PaymentStatus(raw.get("payment_status", "pending")),
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=_parse_dt(raw.get("updated_at")),
            auto_cancelled_at=_parse_dt(raw.get("auto_cancelled_at")),
            auto_cancel_reason=raw.get("auto_cancel_reason"),
            version=raw.get("version", 0),
        )

    # --- File helpers ---------------------------------------------------------

    async def _load_raw(self) -> list[dict]:
        try:
            text = await asyncio.to_thread(self._file_path.read_text, encoding="utf-8")
            return json.loads(text)
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(
                f"Could not read orders from {self._file_path}",
                {"path": str(self._file_path), "error": str(exc)},
            ) from exc

    async def _persist_raw(self, orders: list[dict]) -> None:
        payload = json.dumps(orders, indent=2) + "\n"
        try:
            await asyncio.to_thread(self._replace_file, payload)
        except OSError as exc:
            raise PersistenceFailure(
                f"Could not write orders to {self._file_path}",
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
