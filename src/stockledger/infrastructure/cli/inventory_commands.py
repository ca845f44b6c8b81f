"""CLI commands for inventory inspection."""

from __future__ import annotations

import asyncio

import click

from stockledger.application.show_inventory import ShowInventoryHandler
from stockledger.domain.exceptions import DomainException
from stockledger.infrastructure.bootstrap import Container


@click.command("show")
def inventory_show() -> None:
    """Show stock per product, colour and size."""
    handler = ShowInventoryHandler(product_repo=Container().product_repository)
    try:
        lines = asyncio.run(handler.handle())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'Product':<12} {'Color':<12} {'Size':<6} {'Stock':>7}")
    click.echo("-" * 40)
    for line in lines:
        click.echo(
            f"{line.product_id:<12} {line.color or '-':<12} {line.size or '-':<6} {line.stock:>7}"
        )
