"""
Fee Oracle - gas prices per denomination.

The oracle answers a plain GET with ``{"uluna": "0.15", "uusd": "0.15", ...}``.
A schedule is either complete or not built at all: any transport failure or
malformed entry aborts the fetch.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, Decimal
from typing import Any, Iterable, Iterator, Mapping, Optional

import httpx

from ..config import DEFAULT_TIMEOUT
from ..errors import MissingFeeDenomError, ParseError
from ..spec.messages import Coin
from ..utils import parse_decimal
from .rpc import get_json


class FeeSchedule(Mapping[str, Decimal]):
    """Immutable denom -> unit gas price mapping."""

    def __init__(self, prices: Mapping[str, Decimal]) -> None:
        self._prices = dict(sorted(prices.items()))

    @classmethod
    def parse(cls, payload: Any) -> "FeeSchedule":
        """
        Parse the oracle's JSON body.

        Raises:
            ParseError: If the body is not a non-empty object of
                non-negative decimal strings
        """
        if not isinstance(payload, dict):
            raise ParseError(f"Gas prices must be a JSON object, got {type(payload).__name__}")
        if not payload:
            raise ParseError("Gas price oracle returned an empty schedule")

        prices: dict[str, Decimal] = {}
        for denom, raw in payload.items():
            price = parse_decimal(raw)
            if price is None or price < 0:
                raise ParseError(f"Gas price for {denom!r} is not a non-negative decimal: {raw!r}")
            prices[denom] = price
        return cls(prices)

    def __getitem__(self, denom: str) -> Decimal:
        return self._prices[denom]

    def __iter__(self) -> Iterator[str]:
        return iter(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def __repr__(self) -> str:
        inner = ", ".join(f"{d}={p}" for d, p in self._prices.items())
        return f"FeeSchedule({inner})"

    def price(self, denom: str) -> Decimal:
        try:
            return self._prices[denom]
        except KeyError:
            raise MissingFeeDenomError(denom) from None

    def require(self, denoms: Iterable[str]) -> dict[str, Decimal]:
        """Resolve every denom up front; the first missing one raises."""
        return {denom: self.price(denom) for denom in denoms}

    def fee_for(self, gas: int, denoms: Iterable[str]) -> tuple[Coin, ...]:
        """Fee coins of ceil(gas * price) for each denom, sorted by denom."""
        coins = []
        for denom, price in sorted(self.require(denoms).items()):
            amount = (Decimal(gas) * price).to_integral_value(rounding=ROUND_CEILING)
            coins.append(Coin(denom=denom, amount=str(int(amount))))
        return tuple(coins)

    def to_dec_coins(self) -> list[dict[str, str]]:
        """DecCoins JSON (18 decimal places) as the LCD expects for gas_prices."""
        return [{"amount": f"{price:.18f}", "denom": denom} for denom, price in self._prices.items()]


def fetch_fee_schedule(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> FeeSchedule:
    """
    Fetch current gas prices.

    Args:
        url: Oracle endpoint (GET, no parameters)
        timeout: Request timeout in seconds
        transport: Optional httpx transport

    Returns:
        FeeSchedule

    Raises:
        NetworkError: If the oracle is unreachable or answers with an error status
        ParseError: If the body is malformed
    """
    return FeeSchedule.parse(get_json(url, timeout=timeout, transport=transport))
