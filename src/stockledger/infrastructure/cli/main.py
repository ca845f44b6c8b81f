import click

from stockledger.infrastructure.cli.inventory_commands import inventory_show
from stockledger.infrastructure.cli.order_commands import order_payment, order_place, order_show
from stockledger.infrastructure.cli.product_commands import product_add, product_list
from stockledger.infrastructure.cli.sweeper_commands import sweeper_run_once, sweeper_start
from stockledger.infrastructure.config import get_settings
from stockledger.infrastructure.logging_config import configure_logging


@click.group()
def cli() -> None:
    """stockledger: variant stock ledger"""
    configure_logging(get_settings().LOG_LEVEL)


@cli.group()
def order() -> None:
    """Place and inspect orders."""


@cli.group()
def product() -> None:
    """Manage catalog products."""


@cli.group()
def inventory() -> None:
    """Inspect stock levels."""


@cli.group()
def sweeper() -> None:
    """Cancel expired unpaid orders."""


# Register subcommands
order.add_command(order_place)
order.add_command(order_show)
order.add_command(order_payment)
product.add_command(product_add)
product.add_command(product_list)
inventory.add_command(inventory_show)
sweeper.add_command(sweeper_run_once)
sweeper.add_command(sweeper_start)
