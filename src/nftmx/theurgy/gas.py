"""
Theurgy Gas - Show the fee oracle's current gas prices.
"""

from __future__ import annotations

import click

from ..config import load_config
from ..errors import WorkflowError
from ..pneuma.fees import fetch_fee_schedule
from .execute import fail


@click.command("gas-prices")
def gas_prices() -> None:
    """Show current gas prices and which denominations pay fees."""
    try:
        config = load_config()
        fees = fetch_fee_schedule(config.gas_prices_url, timeout=config.timeout)
    except WorkflowError as exc:
        fail(exc)
        return

    click.echo(f"  Oracle: {config.gas_prices_url}")
    for denom, price in fees.items():
        marker = click.style("  (fee)", fg="cyan") if denom in config.fee_denoms else ""
        click.echo(f"  {denom:<8} {price}{marker}")

    missing = [d for d in config.fee_denoms if d not in fees]
    if missing:
        click.secho(f"  WARNING: no price for fee denom(s): {', '.join(missing)}", fg="yellow")
