"""
LCD Client for Terra.

Thin REST client: httpx for HTTP, plain dicts for payloads.  Supports
account queries, fee estimation, transaction broadcast and transaction
lookup by hash.

Transport failures are retried with exponential backoff.  A broadcast is
only retried when the request provably never left this process (connect
failures); any later failure makes its outcome ambiguous.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

import httpx

from ..config import DEFAULT_TIMEOUT, NetworkConfig
from ..errors import (
    AmbiguousBroadcastError,
    ConfigError,
    NetworkError,
    ParseError,
    RejectedError,
)

if TYPE_CHECKING:
    from .fees import FeeSchedule

DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF = 0.5

# Failures where the request was never written to the wire.
_NOT_SENT = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


def make_http_client(
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create the httpx client used for every outbound call."""
    return httpx.Client(timeout=timeout, transport=transport)


def _request(
    method: str,
    url: str,
    payload: Optional[dict] = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
    attempts: int = DEFAULT_ATTEMPTS,
    backoff: float = DEFAULT_BACKOFF,
    idempotent: bool = True,
) -> httpx.Response:
    """
    Send one HTTP request with bounded retries.

    Args:
        method: HTTP method
        url: Absolute URL
        payload: JSON body (POST only)
        timeout: Per-attempt timeout in seconds
        transport: Optional httpx transport (tests use MockTransport)
        attempts: Maximum number of attempts
        backoff: Base delay; doubles after each failed attempt
        idempotent: False for broadcasts, which must not be resent once
            the request may have reached the node

    Returns:
        The HTTP response (any status)

    Raises:
        NetworkError: If every attempt failed at the transport level
        AmbiguousBroadcastError: If a non-idempotent request failed after
            it may have been delivered
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            with make_http_client(timeout=timeout, transport=transport) as client:
                return client.request(method, url, json=payload)
        except httpx.TransportError as exc:
            if not idempotent and not isinstance(exc, _NOT_SENT):
                raise AmbiguousBroadcastError(
                    f"No response to {method} {url} ({exc.__class__.__name__}). "
                    f"The transaction may have been accepted; check its status "
                    f"before resubmitting."
                ) from exc
            if attempt >= attempts:
                raise NetworkError(
                    f"{method} {url} failed after {attempt} attempt(s): {exc}"
                ) from exc
            time.sleep(backoff * (2 ** (attempt - 1)))


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise ParseError(
            f"{response.request.method} {response.request.url} returned a non-JSON body"
        ) from exc


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data)
    return str(data)


def get_json(
    url: str,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.BaseTransport] = None,
) -> Any:
    """GET a JSON document; non-2xx responses raise NetworkError."""
    response = _request("GET", url, timeout=timeout, transport=transport)
    if response.is_error:
        raise NetworkError(f"GET {url} returned HTTP {response.status_code}: {_error_detail(response)}")
    return _json_body(response)


@dataclass(frozen=True)
class AccountInfo:
    address: str
    account_number: int
    sequence: int


def _base_account(account: dict) -> dict:
    """Find the BaseAccount fields inside (possibly vesting) account JSON."""
    if "account_number" in account:
        return account
    for value in account.values():
        if isinstance(value, dict):
            found = _base_account(value)
            if found:
                return found
    return {}


@dataclass(frozen=True)
class LedgerClient:
    """Handle for querying and submitting to one LCD endpoint."""

    config: NetworkConfig
    fees: "FeeSchedule"
    transport: Optional[httpx.BaseTransport] = None

    @property
    def chain_id(self) -> str:
        return self.config.chain_id

    @property
    def gas_adjustment(self) -> Decimal:
        return self.config.gas_adjustment

    def _url(self, path: str) -> str:
        return f"{self.config.lcd_url}{path}"

    def _call(self, method: str, path: str, payload: Optional[dict] = None, idempotent: bool = True) -> httpx.Response:
        return _request(
            method,
            self._url(path),
            payload=payload,
            timeout=self.config.timeout,
            transport=self.transport,
            idempotent=idempotent,
        )

    def account_info(self, address: str) -> AccountInfo:
        """
        Get account number and current sequence for an address.

        Raises:
            RejectedError: If the account does not exist on chain
        """
        response = self._call("GET", f"/cosmos/auth/v1beta1/accounts/{address}")
        if response.status_code == 404:
            raise RejectedError(f"Account {address} not found on {self.chain_id}. Fund it first.")
        if response.is_error:
            raise NetworkError(
                f"Account query returned HTTP {response.status_code}: {_error_detail(response)}"
            )

        data = _json_body(response)
        base = _base_account(data.get("account", {})) if isinstance(data, dict) else {}
        try:
            return AccountInfo(
                address=address,
                account_number=int(base["account_number"]),
                sequence=int(base.get("sequence", 0)),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ParseError(f"Malformed account response for {address}") from exc

    def estimate_gas(self, std_tx: dict, gas_adjustment: Optional[Decimal] = None) -> int:
        """
        Ask the node to simulate ``std_tx`` and return the adjusted gas limit.

        Gas prices from this handle are sent along; the adjustment defaults
        to the handle's configured multiplier.
        """
        adjustment = self.gas_adjustment if gas_adjustment is None else gas_adjustment
        payload = {
            "tx": std_tx,
            "gas_prices": self.fees.to_dec_coins(),
            "gas_adjustment": str(adjustment),
        }
        response = self._call("POST", "/txs/estimate_fee", payload)
        if 400 <= response.status_code < 500:
            raise RejectedError(f"Fee estimation rejected: {_error_detail(response)}")
        if response.is_error:
            raise NetworkError(
                f"Fee estimation returned HTTP {response.status_code}: {_error_detail(response)}"
            )

        data = _json_body(response)
        try:
            result = data.get("result", data)
            return int(result["fee"]["gas"])
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise ParseError("Malformed fee estimation response") from exc

    def broadcast_tx(self, std_tx: dict, mode: str) -> dict:
        """Post a signed StdTx; returns the raw TxResponse dict."""
        response = self._call("POST", "/txs", {"tx": std_tx, "mode": mode}, idempotent=False)
        if 400 <= response.status_code < 500:
            raise RejectedError(
                f"Broadcast rejected with HTTP {response.status_code}: {_error_detail(response)}",
                raw_log=_error_detail(response),
            )
        if response.is_error:
            # 5xx after the node received the body: outcome unknown
            raise AmbiguousBroadcastError(
                f"Broadcast returned HTTP {response.status_code}: {_error_detail(response)}. "
                f"Check the sender's sequence before resubmitting."
            )

        data = _json_body(response)
        if not isinstance(data, dict):
            raise ParseError("Broadcast response is not a JSON object")
        return data

    def tx_info(self, txhash: str) -> Optional[dict]:
        """Look up a transaction by hash; None if the node does not know it (yet)."""
        response = self._call("GET", f"/cosmos/tx/v1beta1/txs/{txhash}")
        if response.status_code in (400, 404):
            return None
        if response.is_error:
            raise NetworkError(
                f"Transaction query returned HTTP {response.status_code}: {_error_detail(response)}"
            )

        data = _json_body(response)
        if not isinstance(data, dict) or not isinstance(data.get("tx_response"), dict):
            raise ParseError(f"Malformed transaction response for {txhash}")
        return data["tx_response"]


def build_client(
    config: NetworkConfig,
    fees: "FeeSchedule",
    transport: Optional[httpx.BaseTransport] = None,
) -> LedgerClient:
    """
    Wrap configuration and fee schedule into a LedgerClient. No I/O.

    Raises:
        ConfigError: If the configuration is unusable or the fee schedule is empty
    """
    config.validate()
    if not fees:
        raise ConfigError("Refusing to build a ledger client with an empty fee schedule")
    return LedgerClient(config=config, fees=fees, transport=transport)
