"""Tests for the JSON-file-backed repositories."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from stockledger.application.auto_cancel_order import AutoCancelOrderHandler
from stockledger.application.expire_orders import ExpireOrdersHandler
from stockledger.application.update_payment_status import UpdatePaymentStatusHandler
from stockledger.domain.exceptions import ConcurrentModificationError, PersistenceFailure
from stockledger.domain.model.order import Order, OrderItem, OrderStatus, PaymentStatus
from stockledger.domain.model.product import Product, VariantPatch
from stockledger.domain.service.stock_ledger_service import StockLedgerService
from stockledger.infrastructure.gateway.local_order_cancellation import (
    LocalOrderCancellationGateway,
)
from stockledger.infrastructure.persistence.json_order_repository import JsonOrderRepository
from stockledger.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)

VARIANTS = [
    {"color": "Blue", "image": "blue.jpg", "sizes": [{"size": "M", "stock": 5, "price": 100}]},
    {"color": None, "sizes": [{"size": "U", "stock": 1, "price": 50}]},
]


@pytest.fixture
def product_repo(tmp_path):
    return JsonProductRepository(tmp_path / "data" / "products.json")


class TestJsonProductRepository:

    @pytest.mark.asyncio
    async def test_creates_empty_file(self, tmp_path):
        path = tmp_path / "nested" / "products.json"
        repo = JsonProductRepository(path)
        assert path.exists()
        assert await repo.list_all() == []

    @pytest.mark.asyncio
    async def test_load_products_returns_only_known_ids(self, product_repo):
        await product_repo.add(Product(id="P", name="Shirt", variants=VARIANTS))

        products = await product_repo.load_products(["P", "missing"])

        assert [p.id for p in products] == ["P"]
        assert products[0].variants == VARIANTS
        assert products[0].version == 1

    @pytest.mark.asyncio
    async def test_save_variants_bumps_version(self, product_repo):
        await product_repo.add(Product(id="P", variants=VARIANTS))
        updated = json.loads(json.dumps(VARIANTS))
        updated[0]["sizes"][0]["stock"] = 4

        [written] = await product_repo.save_variants([VariantPatch("P", updated, 1)])

        assert written.version == 2
        stored = await product_repo.get_by_id("P")
        assert stored.variants[0]["sizes"][0]["stock"] == 4
        assert stored.variants[0]["image"] == "blue.jpg"

    @pytest.mark.asyncio
    async def test_stale_batch_writes_nothing(self, product_repo):
        await product_repo.add(Product(id="P", variants=VARIANTS))
        await product_repo.add(Product(id="Q", variants=VARIANTS, version=3))

        with pytest.raises(ConcurrentModificationError, match="revision 3"):
            await product_repo.save_variants(
                [VariantPatch("P", [], 1), VariantPatch("Q", [], 2)]
            )

        assert (await product_repo.get_by_id("P")).variants == VARIANTS

    @pytest.mark.asyncio
    async def test_missing_product_is_a_conflict(self, product_repo):
        with pytest.raises(ConcurrentModificationError):
            await product_repo.save_variants([VariantPatch("P", [], 1)])

    @pytest.mark.asyncio
    async def test_corrupt_file_is_a_persistence_failure(self, tmp_path):
        path = tmp_path / "products.json"
        path.write_text("{not json", encoding="utf-8")
        repo = JsonProductRepository(path)

        with pytest.raises(PersistenceFailure):
            await repo.list_all()

    @pytest.mark.asyncio
    async def test_ledger_round_trip_on_disk(self, product_repo):
        await product_repo.add(Product(id="P", variants=VARIANTS))
        ledger = StockLedgerService(product_repo)

        result = await ledger.reserve([{"productId": "P", "quantity": 2, "variantSize": "m", "variantColor": "BLUE"}])
        assert (await product_repo.get_by_id("P")).variants[0]["sizes"][0]["stock"] == 3

        await ledger.restore_from_snapshots(result.snapshots)
        assert (await product_repo.get_by_id("P")).variants == VARIANTS


class TestJsonOrderRepository:

    @pytest.mark.asyncio
    async def test_save_assigns_ids_and_round_trips(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = Order.create("Alice", [OrderItem("P", 2, "M", "Blue"), OrderItem("Q", 1, "U")])

        await repo.save(order)
        await repo.save(Order.create("Bob", [OrderItem("P", 1, "M", "Blue")]))

        assert order.id == 1
        assert await repo.next_id() == 3
        loaded = await repo.get_by_id(1)
        assert loaded.customer_name == "Alice"
        assert loaded.items == order.items
        assert loaded.created_at == order.created_at
        assert loaded.payment_status == PaymentStatus.PENDING

    @pytest.mark.asyncio
    async def test_list_expired_pending(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        now = datetime.now(timezone.utc)
        old = Order.create("Alice", [OrderItem("P", 1, "M")])
        old.created_at = now - timedelta(hours=1)
        fresh = Order.create("Bob", [OrderItem("P", 1, "M")])
        cancelled = Order.create("Carol", [OrderItem("P", 1, "M")])
        cancelled.created_at = now - timedelta(hours=1)
        cancelled.cancel("manual")
        for order in (old, fresh, cancelled):
            await repo.save(order)

        expired = await repo.list_expired_pending(now - timedelta(minutes=30), "pix")

        assert [o.customer_name for o in expired] == ["Alice"]

    @pytest.mark.asyncio
    async def test_auto_cancel_fields_persist(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = Order.create("Alice", [OrderItem("P", 1, "M")])
        await repo.save(order)
        order.cancel("PIX expired", auto=True)
        await repo.save(order)

        loaded = await repo.get_by_id(order.id)

        assert loaded.status == OrderStatus.CANCELLED
        assert loaded.auto_cancel_reason == "PIX expired"
        assert loaded.auto_cancelled_at == order.auto_cancelled_at

    @pytest.mark.asyncio
    async def test_items_of_unknown_order(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        assert await repo.load_order_items(42) == []

    @pytest.mark.asyncio
    async def test_compare_and_save_refuses_stale_copies(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        await repo.save(Order.create("Alice", [OrderItem("P", 1, "M")]))
        first = await repo.get_by_id(1)
        second = await repo.get_by_id(1)

        first.apply_payment_status("approved")
        second.cancel("PIX expired", auto=True)

        assert await repo.compare_and_save(first) is True
        assert first.version == 2
        assert await repo.compare_and_save(second) is False
        assert second.version == 1
        loaded = await repo.get_by_id(1)
        assert loaded.payment_status == PaymentStatus.PAID
        assert loaded.version == 2

    @pytest.mark.asyncio
    async def test_compare_and_save_of_unknown_order(self, tmp_path):
        repo = JsonOrderRepository(tmp_path / "orders.json")
        order = Order.create("Alice", [OrderItem("P", 1, "M")])
        order.id = 5
        assert await repo.compare_and_save(order) is False


class TestSweepAgainstPaymentReportsOnDisk:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("attempt", range(5))
    async def test_stock_is_released_exactly_once(self, tmp_path, product_repo, attempt):
        await product_repo.add(Product(id="P", name="Shirt", variants=VARIANTS))
        order_repo = JsonOrderRepository(tmp_path / "orders.json")
        ledger = StockLedgerService(product_repo)
        order = Order.create("Alice", [OrderItem("P", 2, "M", "Blue")])
        order.created_at = datetime.now(timezone.utc) - timedelta(hours=1)
        await order_repo.save(order)
        await ledger.reserve(order.items)
        cancellation = LocalOrderCancellationGateway(AutoCancelOrderHandler(order_repo, ledger))
        sweeper = ExpireOrdersHandler(order_repo, ledger, cancellation)
        payments = UpdatePaymentStatusHandler(order_repo, ledger)

        await asyncio.gather(sweeper.handle(), payments.handle(order.id, "rejected"))

        (product,) = await product_repo.load_products(["P"])
        assert product.variants[0]["sizes"][0]["stock"] == 5
        assert (await order_repo.get_by_id(order.id)).status == OrderStatus.CANCELLED
