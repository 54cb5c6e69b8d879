"""
Theurgy Status - Resolve the outcome of a submitted transaction.

After a timeout or dropped connection the broadcast outcome is unknown.
Resolve it here instead of resubmitting:

- by hash: look the transaction up on the LCD
- by sequence: check whether the sender's account moved past the sequence
  the transaction was signed with
"""

from __future__ import annotations

from typing import Optional

import click

from ..config import load_config
from ..errors import ExecutionError, WorkflowError
from ..pneuma.fees import FeeSchedule
from ..pneuma.rpc import LedgerClient
from ..pneuma.tx import classify_response, sequence_consumed
from .execute import fail


@click.command()
@click.option("--tx-hash", default=None, help="Transaction hash to look up")
@click.option("--address", default=None, help="Sender address (with --sequence)")
@click.option("--sequence", default=None, type=int, help="Sequence the transaction was signed with")
def status(tx_hash: Optional[str], address: Optional[str], sequence: Optional[int]) -> None:
    """Look up a transaction by hash, or check whether a sequence was consumed."""
    if not tx_hash and (address is None or sequence is None):
        raise click.UsageError("Give --tx-hash, or both --address and --sequence.")

    click.echo("=== NFTMX Status ===")
    click.echo("")

    try:
        config = load_config()
        # queries only; no fee schedule needed
        client = LedgerClient(config=config, fees=FeeSchedule({}))

        if tx_hash:
            info = client.tx_info(tx_hash)
            if info is None:
                click.secho(f"  {tx_hash}: not found (pending or never accepted)", fg="yellow")
                return
            try:
                result = classify_response(info)
            except ExecutionError as exc:
                click.secho(f"  {tx_hash}: FAILED at height {info.get('height')}", fg="red")
                fail(exc)
            click.secho(f"  {tx_hash}: included at height {result.height}", fg="green")
            if result.raw_log:
                click.echo(f"  Log: {result.raw_log}")
            return

        if sequence_consumed(client, address, sequence):
            click.secho(f"  Sequence {sequence} of {address} has been consumed.", fg="green")
            click.echo("  Do not resubmit; look the transaction up by hash.")
        else:
            click.secho(f"  Sequence {sequence} of {address} is still unused.", fg="yellow")
            click.echo("  The transaction was not included (yet).")
    except WorkflowError as exc:
        fail(exc)
