"""
nftmx CLI

Command-line interface for executing NFTMX contract messages on Terra.

Identity = mnemonic-derived secp256k1 wallet (WALLET_SEEDS).  The mnemonic
is never printed; only the derived address is.

Commands:
  execute            - Execute arbitrary contract messages
  buy                - Buy an NFT on a criteria order
  set-buy-criteria   - Register buy criteria
  set-sell-criteria  - Register sell criteria
  status             - Resolve a transaction's outcome
  gas-prices         - Show the fee oracle's gas prices
  whoami             - Show the wallet address
  info               - Show configuration
"""

from __future__ import annotations

import sys

import click

from .config import NFTMX_ENV, load_config, load_env_files
from .errors import WorkflowError
from .sigil.terra import derive_wallet, load_mnemonic


# ============ Constants ============

VERSION = "1.0.0"


# ============ Banner ============


def _print_banner(compact: bool = False) -> None:
    """Print the nftmx CLI banner.

    Args:
        compact: If True, print a single-line banner (for subcommands).
    """
    if compact:
        click.echo(
            click.style("  ◆ ", fg="cyan")
            + click.style("N F T M X", fg="bright_white", bold=True)
            + click.style(f"  v{VERSION}", dim=True)
        )
        click.echo()
        return

    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()
    click.echo(
        click.style("          N F T M X", fg="bright_white", bold=True)
        + click.style(f"          v{VERSION}", dim=True)
    )
    click.secho("        ─── Terra contract executor ───", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="nftmx")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """nftmx — execute NFTMX contract messages on Terra."""
    load_env_files()
    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .theurgy.criteria import buy, set_buy_criteria, set_sell_criteria
from .theurgy.execute import execute
from .theurgy.gas import gas_prices
from .theurgy.status import status

cli.add_command(execute)
cli.add_command(buy)
cli.add_command(set_buy_criteria)
cli.add_command(set_sell_criteria)
cli.add_command(status)
cli.add_command(gas_prices)


# ============ Identity ============


@cli.command()
def whoami() -> None:
    """Show the wallet address derived from WALLET_SEEDS."""
    try:
        wallet = derive_wallet(load_mnemonic())
    except WorkflowError as exc:
        click.echo(f"No wallet: {exc}")
        click.echo(f"Set WALLET_SEEDS in the environment, ./.env or {NFTMX_ENV}.")
        sys.exit(exc.exit_code)
    wallet.discard_key()
    click.echo(f"Address: {wallet.address}")


# ============ Info ============


@cli.command()
def info() -> None:
    """Show configuration and wallet status."""
    _print_banner(compact=True)

    click.secho("  Network ────────────────────────────────", fg="cyan")
    click.echo()

    try:
        config = load_config()
    except WorkflowError as exc:
        click.secho(f"  Invalid configuration: {exc}", fg="red")
        sys.exit(exc.exit_code)

    rows = [
        ("LCD:        ", config.endpoint),
        ("Chain ID:   ", config.chain_id),
        ("Gas prices: ", config.gas_prices_url),
        ("Adjustment: ", str(config.gas_adjustment)),
        ("Fee denoms: ", ",".join(config.fee_denoms)),
        ("Contract:   ", config.contract_address),
        ("Mode:       ", config.broadcast_mode),
    ]
    for label, value in rows:
        click.echo(click.style(f"  {label}", dim=True) + click.style(value, fg="bright_white"))

    try:
        wallet = derive_wallet(load_mnemonic())
        wallet.discard_key()
        click.echo(click.style("  Wallet:     ", dim=True) + click.style(wallet.address, fg="bright_white"))
    except WorkflowError:
        click.echo(
            click.style("  Wallet:     ", dim=True)
            + click.style("not configured", fg="yellow")
            + click.style("  (set WALLET_SEEDS)", dim=True)
        )

    click.echo()

    # ── Commands ──
    click.secho("  Commands ───────────────────────────────", fg="cyan")
    click.echo()

    commands = [
        ("execute          ", "Execute arbitrary contract messages"),
        ("buy              ", "Buy an NFT on a criteria order"),
        ("set-buy-criteria ", "Register buy criteria"),
        ("set-sell-criteria", "Register sell criteria"),
        ("status           ", "Resolve a transaction's outcome"),
        ("gas-prices       ", "Show current gas prices"),
        ("whoami           ", "Show wallet address"),
    ]
    for cmd, desc in commands:
        click.echo(
            click.style("  ", dim=True)
            + click.style(cmd, fg="bright_white", bold=True)
            + click.style("  ◇  ", fg="cyan")
            + click.style(desc, dim=True)
        )

    click.echo()


# ============ Entry Points ============


def main() -> None:
    """nftmx CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: old Python or non-tty
    cli()


if __name__ == "__main__":
    main()
