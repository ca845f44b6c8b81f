"""CLI commands for the expiry sweeper."""

from __future__ import annotations

import asyncio
import json

import click

from stockledger.infrastructure.bootstrap import Container
from stockledger.infrastructure.scheduler import create_scheduler


@click.command("run-once")
def sweeper_run_once() -> None:
    """Cancel every expired pending order now."""
    handler = Container().expire_orders_handler()
    totals = asyncio.run(handler.handle())
    click.echo(json.dumps(totals.to_dict(), indent=2))


@click.command("start")
@click.option("--interval", type=int, default=None, help="Minutes between sweeps.")
def sweeper_start(interval: int | None) -> None:
    """Run the sweeper on a fixed interval until interrupted."""
    container = Container()
    minutes = interval or container.settings.SWEEP_INTERVAL_MINUTES

    async def run() -> None:
        scheduler = create_scheduler(container.expire_orders_handler(), minutes)
        scheduler.start()
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown(wait=False)

    click.echo(f"Sweeping expired orders every {minutes} minute(s). Ctrl+C to stop.")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        click.echo("Sweeper stopped.")
