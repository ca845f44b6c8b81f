"""CLI commands for catalog products."""

from __future__ import annotations

import asyncio
import json

import click

from stockledger.domain.exceptions import DomainException
from stockledger.domain.model.product import Product
from stockledger.infrastructure.bootstrap import Container


@click.command("add")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", default="", help="Product name.")
@click.option(
    "--variants",
    "variants_file",
    required=True,
    type=click.File("r", encoding="utf-8"),
    help="JSON file holding the product's variants list.",
)
def product_add(product_id: str, name: str, variants_file) -> None:
    """Add or replace a catalog product."""
    try:
        variants = json.load(variants_file)
    except ValueError as exc:
        raise click.BadParameter(f"Variants file is not valid JSON: {exc}")
    if not isinstance(variants, list):
        raise click.BadParameter("Variants file must contain a JSON list.")

    repo = Container().product_repository
    try:
        asyncio.run(repo.add(Product(id=product_id, name=name, variants=variants)))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product_id} saved with {len(variants)} variant(s).")


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    repo = Container().product_repository
    try:
        products = asyncio.run(repo.list_all())
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<12} {'Name':<20} {'Stock':>8} {'Rev':>5}")
    click.echo("-" * 48)
    for p in products:
        click.echo(f"{p.id:<12} {p.name:<20} {p.total_stock:>8} {p.version:>5}")
