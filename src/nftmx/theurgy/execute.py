"""
Theurgy Execute - Submit contract messages.

Shared submission flow for every command that sends a transaction:

1. Messages are built and validated (no network)
2. Gas prices are fetched from the fee oracle
3. The ledger client is built
4. The wallet is derived from WALLET_SEEDS
5. The transaction is assembled, signed and broadcast
"""

from __future__ import annotations

import functools
import json
import sys
from typing import Any, Callable, NoReturn, Optional, Sequence

import click

from ..config import BROADCAST_MODES, load_config
from ..errors import ValidationError, WorkflowError
from ..pneuma.fees import fetch_fee_schedule
from ..pneuma.rpc import build_client
from ..pneuma.tx import SignOptions, assemble_and_sign, check_funds, submit
from ..sigil.terra import derive_wallet, load_mnemonic
from ..spec.messages import ContractMessage, parse_coins, parse_message


def submission_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every transaction-sending command."""
    options = [
        click.option("--contract", default=None, help="Target contract (default: CONTRACT_ADDRESS)"),
        click.option("--funds", default=None, help="Coins to attach to a single message, e.g. 550uusd,10uluna"),
        click.option("--gas-limit", default=None, type=int, help="Fixed gas limit (default: estimate)"),
        click.option("--memo", default="", help="Transaction memo"),
        click.option("--mode", type=click.Choice(BROADCAST_MODES), default=None, help="Broadcast mode"),
        click.option("--wait/--no-wait", default=False, help="Wait for block inclusion"),
        click.option("--dry-run", is_flag=True, help="Sign and print the transaction without broadcasting"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def fail(exc: WorkflowError) -> NoReturn:
    """Print a workflow error and exit with its code."""
    click.secho(f"ERROR: {exc}", fg="red")
    sys.exit(exc.exit_code)


def run_submission(
    messages: Sequence[ContractMessage],
    contract: Optional[str],
    funds: Optional[str],
    gas_limit: Optional[int],
    memo: str,
    mode: Optional[str],
    wait: bool,
    dry_run: bool,
) -> None:
    """Fee oracle -> client -> wallet -> sign -> broadcast, with console output."""
    wallet = None
    try:
        coins = parse_coins(funds) if funds else ()
        check_funds(messages, coins)

        config = load_config().with_overrides(broadcast_mode=mode)
        click.echo(f"  Network: {config.endpoint} ({config.chain_id})")

        fees = fetch_fee_schedule(config.gas_prices_url, timeout=config.timeout)
        click.echo("  Gas prices: " + ", ".join(f"{p}{d}" for d, p in fees.items()))

        client = build_client(config, fees)
        wallet = derive_wallet(load_mnemonic())
        target = contract or config.contract_address

        click.echo(f"  Sender: {wallet.address}")
        click.echo(f"  Contract: {target}")
        for message in messages:
            click.echo(f"  Message: {json.dumps(message.to_dict(), sort_keys=True)}")
        if coins:
            click.echo("  Funds: " + ",".join(f"{c.amount}{c.denom}" for c in coins))
        click.echo("")

        options = SignOptions(gas_limit=gas_limit, memo=memo)

        if dry_run:
            signed = assemble_and_sign(client, wallet, messages, contract=target, options=options, funds=coins)
            click.echo(json.dumps(signed.to_std_tx(), indent=2, sort_keys=True))
            click.secho("DRY RUN: transaction signed, not broadcast", fg="yellow")
            return

        signed, result = submit(
            client,
            wallet,
            messages,
            contract=target,
            options=options,
            funds=coins,
            mode=config.broadcast_mode,
            wait=wait,
        )
    except WorkflowError as exc:
        fail(exc)
        return
    finally:
        if wallet is not None:
            wallet.discard_key()

    click.secho("SUCCESS: Transaction accepted!", fg="green")
    click.echo(f"  TX: {result.txhash}")
    click.echo(f"  Sequence: {signed.sequence}")
    if result.height:
        click.echo(f"  Height: {result.height}")
    if result.raw_log:
        click.echo(f"  Log: {result.raw_log}")


def with_submission(func: Callable[..., Sequence[ContractMessage]]) -> Callable[..., None]:
    """Turn a message-building callback into a full submitting command body."""

    @functools.wraps(func)
    def wrapper(contract, funds, gas_limit, memo, mode, wait, dry_run, **kwargs):
        click.echo("=== NFTMX Execute ===")
        click.echo("")
        try:
            messages = func(**kwargs)
        except ValidationError as exc:
            fail(exc)
            return
        run_submission(messages, contract, funds, gas_limit, memo, mode, wait, dry_run)

    return wrapper


@click.command()
@click.option(
    "--msg",
    "msgs",
    multiple=True,
    required=True,
    help='Execute message as JSON, e.g. \'{"buy_nft_on_criteria": {"order_id": 4}}\'. Repeatable.',
)
@submission_options
@with_submission
def execute(msgs: tuple[str, ...]) -> list[ContractMessage]:
    """
    Execute one or more contract messages in a single transaction.

    Messages run in the order given.  Every message is validated before
    anything is sent to the network.
    """
    messages = []
    for index, raw in enumerate(msgs):
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"msg[{index}]", f"invalid JSON: {exc}") from exc
        messages.append(parse_message(payload))
    return messages
