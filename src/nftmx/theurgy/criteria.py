"""
Theurgy Criteria - Marketplace buy/sell criteria commands.

Typed shortcuts for the NFTMX marketplace actions; each builds one message
and goes through the shared submission flow.
"""

from __future__ import annotations

from typing import Optional

import click

from ..errors import ValidationError
from ..spec.messages import (
    BuyOnCriteria,
    SetBuyCriteria,
    SetSellCriteria,
    build_buy_on_criteria,
    build_set_buy_criteria,
    build_set_sell_criteria,
)
from ..utils import unix_now
from .execute import submission_options, with_submission

ONE_WEEK = 7 * 24 * 3600


@click.command()
@click.option("--order-id", required=True, type=int, help="Order to fill")
@submission_options
@with_submission
def buy(order_id: int) -> list[BuyOnCriteria]:
    """Buy an NFT on an existing criteria order."""
    return [build_buy_on_criteria({"order_id": order_id})]


@click.command("set-buy-criteria")
@click.option("--nft-address", required=True, help="NFT contract address")
@click.option("--token-id", required=True, help="Token ID")
@click.option("--max-price", required=True, help="Maximum price (integer micro units)")
@click.option("--auction-rate", default="0.1", show_default=True, help="Auction rate")
@click.option("--protection-rate", default="0.1", show_default=True, help="Protection rate")
@click.option("--protection-period", default=10, show_default=True, type=int, help="Protection period")
@click.option("--auction/--no-auction", "is_auction", default=False, show_default=True)
@click.option("--loot-box/--no-loot-box", "is_loot_box", default=True, show_default=True)
@submission_options
@with_submission
def set_buy_criteria(
    nft_address: str,
    token_id: str,
    max_price: str,
    auction_rate: str,
    protection_rate: str,
    protection_period: int,
    is_auction: bool,
    is_loot_box: bool,
) -> list[SetBuyCriteria]:
    """Register buy criteria on the marketplace."""
    return [
        build_set_buy_criteria(
            {
                "auction_rate": auction_rate,
                "is_auction": is_auction,
                "is_loot_box": is_loot_box,
                "max_price": max_price,
                "nft_address": nft_address,
                "protection_period": protection_period,
                "protection_rate": protection_rate,
                "token_id": token_id,
            }
        )
    ]


@click.command("set-sell-criteria")
@click.option("--amount", required=True, help="MFT amount (integer micro units)")
@click.option("--above-price-rate", default="0.1", show_default=True, help="Above-price rate")
@click.option("--protection-rate", default="0.1", show_default=True, help="Protection rate")
@click.option(
    "--expires-in",
    default=ONE_WEEK,
    show_default=True,
    type=int,
    help="Seconds from now used for offer and selling time",
)
@click.option("--offer-time", default=None, type=int, help="Explicit offer time (Unix seconds)")
@click.option("--selling-time", default=None, type=int, help="Explicit selling time (Unix seconds)")
@click.option("--auction/--no-auction", "is_auction", default=False, show_default=True)
@click.option("--loot-box/--no-loot-box", "is_loot_box", default=True, show_default=True)
@submission_options
@with_submission
def set_sell_criteria(
    amount: str,
    above_price_rate: str,
    protection_rate: str,
    expires_in: int,
    offer_time: Optional[int],
    selling_time: Optional[int],
    is_auction: bool,
    is_loot_box: bool,
) -> list[SetSellCriteria]:
    """Register sell criteria on the marketplace.

    Offer and selling time default to now + --expires-in.
    """
    if expires_in <= 0:
        raise ValidationError("expires_in", f"must be positive, got {expires_in}")
    now = unix_now()
    default_expiry = now + expires_in
    return [
        build_set_sell_criteria(
            {
                "above_price_rate": above_price_rate,
                "amount": amount,
                "is_auction": is_auction,
                "is_loot_box": is_loot_box,
                "offer_time": offer_time if offer_time is not None else default_expiry,
                "protection_rate": protection_rate,
                "selling_time": selling_time if selling_time is not None else default_expiry,
            },
            now=now,
        )
    ]
