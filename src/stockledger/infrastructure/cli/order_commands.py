"""CLI commands for the Order aggregate."""

from __future__ import annotations

import asyncio

import click

from stockledger.application.dto import OrderDTO
from stockledger.application.place_order import PlaceOrderHandler
from stockledger.application.show_order import ShowOrderHandler
from stockledger.application.update_payment_status import UpdatePaymentStatusHandler
from stockledger.domain.exceptions import DomainException, StockLedgerError
from stockledger.domain.model.order import OrderItem
from stockledger.infrastructure.bootstrap import Container
from stockledger.infrastructure.gateway.manual_payment_gateway import DeferredPaymentGateway


def _parse_items(raw: str) -> list[OrderItem]:
    """Parse 'P1:2:M:Blue,P2:1:L' into OrderItem list (colour optional)."""
    items: list[OrderItem] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        parts = [p.strip() for p in chunk.split(":")]
        if len(parts) not in (3, 4):
            raise click.BadParameter(
                f"Invalid item format '{chunk}'. Expected 'ProductId:Qty:Size[:Color]'."
            )
        product_id, qty_str, size = parts[:3]
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{product_id}'."
            )
        color = parts[3] if len(parts) == 4 else None
        items.append(OrderItem(product_id=product_id, quantity=qty, variant_size=size, variant_color=color))
    return items


def _display_order(dto: OrderDTO) -> None:
    click.echo(f"Order #{dto.id}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"Customer: {dto.customer_name}")
    click.echo(f"Payment:  {dto.payment_method}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.auto_cancel_reason:
        click.echo(f"Auto-cancelled: {dto.auto_cancel_reason}")
    click.echo()
    click.echo(f"  {'Product':<12} {'Color':<10} {'Size':<6} {'Qty':>5}")
    click.echo(f"  {'-'*36}")
    for item in dto.items:
        click.echo(
            f"  {item.product_id:<12} {item.variant_color or '-':<10} "
            f"{item.variant_size or '-':<6} {item.quantity:>5}"
        )


@click.command("place")
@click.option("--customer", required=True, help="Customer name.")
@click.option("--payment-method", default="pix", show_default=True, help="Payment method.")
@click.option("--items", required=True, help="Items as 'ProductId:Qty:Size[:Color],...'.")
def order_place(customer: str, payment_method: str, items: str) -> None:
    """Place an order, reserving stock for every item."""
    order_items = _parse_items(items)

    async def run() -> OrderDTO:
        container = Container()
        handler = PlaceOrderHandler(
            order_repo=container.order_repository,
            ledger=container.stock_ledger,
            payments=DeferredPaymentGateway(),
        )
        return await handler.handle(customer, order_items, payment_method)

    try:
        dto = asyncio.run(run())
    except StockLedgerError as exc:
        raise click.ClickException(f"{exc} [{exc.code}]")
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} placed, stock reserved.")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=Container().order_repository)

    try:
        dto = asyncio.run(handler.handle(order_id))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("payment")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--status",
    required=True,
    type=click.Choice(["approved", "rejected", "cancelled", "expired", "pending", "in_process"]),
    help="Status reported by the payment gateway.",
)
def order_payment(order_id: int, status: str) -> None:
    """Record a payment status (releases stock on failure)."""
    container = Container()
    handler = UpdatePaymentStatusHandler(container.order_repository, container.stock_ledger)

    try:
        dto = asyncio.run(handler.handle(order_id, status))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{order_id} is now {dto.status} (payment={dto.payment_status}).")
