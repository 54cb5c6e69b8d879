"""
Shared fixtures: an in-memory Terra LCD + fee oracle behind httpx.MockTransport.

The fake ledger verifies signatures against the sign document it expects
(same account number, chain id and *current* sequence), tracks mempool
sequences separately from committed ones, and answers like the real LCD.
"""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal
from typing import Any, Optional

import httpx
import pytest
from eth_keys import keys

from nftmx.config import NetworkConfig
from nftmx.pneuma.fees import FeeSchedule
from nftmx.pneuma.rpc import LedgerClient, build_client
from nftmx.pneuma.sequence import SequenceGuard
from nftmx.pneuma.tx import build_sign_doc, sign_bytes
from nftmx.sigil.terra import Mnemonic, WalletIdentity, derive_wallet

TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
LCD_URL = "https://lcd.test"
ORACLE_URL = "https://fcd.test/v1/txs/gas_prices"
CHAIN_ID = "bombay-12"
CONTRACT = "terra10v7hlw7cz7rvhht5vkgg9vkcvull3snnhrql50"
NFT_ADDRESS = "terra1rmw87h769rt553myzcvnqavvnqzqxm2r9twsju"


def _verify(pub_key_b64: str, signature_b64: str, data: bytes) -> bool:
    public_key = keys.PublicKey.from_compressed_bytes(base64.b64decode(pub_key_b64))
    raw = base64.b64decode(signature_b64)
    if len(raw) != 64:
        return False
    signature = keys.Signature(signature_bytes=raw + b"\x00")
    return signature.verify_msg_hash(hashlib.sha256(data).digest(), public_key)


@dataclass
class FakeAccount:
    account_number: int
    sequence: int  # committed (what the account endpoint reports)
    pending: int  # next sequence the mempool accepts


class FakeLedger:
    def __init__(
        self,
        gas_prices: Optional[dict[str, str]] = None,
        chain_id: str = CHAIN_ID,
        simulated_gas: int = 100_000,
    ) -> None:
        self.gas_prices = {"uluna": "0.15"} if gas_prices is None else gas_prices
        self.chain_id = chain_id
        self.simulated_gas = simulated_gas
        self.accounts: dict[str, FakeAccount] = {}
        self.txs: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str]] = []
        self.broadcasts: list[dict[str, Any]] = []
        self.oracle_down = False
        self.execution_failure: Optional[str] = None
        self.drop_broadcast = False

    # ---- setup helpers ----

    def fund(self, address: str, account_number: int = 7, sequence: int = 3) -> None:
        self.accounts[address] = FakeAccount(account_number, sequence, sequence)

    def include_pending(self) -> None:
        """Simulate a new block committing every mempool transaction."""
        for account in self.accounts.values():
            account.sequence = account.pending

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self, method: Optional[str] = None) -> list[str]:
        return [p for m, p in self.requests if method is None or m == method]

    # ---- request handling ----

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append((request.method, path))

        if request.url.host == "fcd.test":
            if self.oracle_down:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json=self.gas_prices)

        if request.method == "GET" and path.startswith("/cosmos/auth/v1beta1/accounts/"):
            return self._account(path.rsplit("/", 1)[-1])
        if request.method == "POST" and path == "/txs/estimate_fee":
            return self._estimate(json.loads(request.content))
        if request.method == "POST" and path == "/txs":
            if self.drop_broadcast:
                raise httpx.ReadTimeout("timed out", request=request)
            return self._broadcast(json.loads(request.content))
        if request.method == "GET" and path.startswith("/cosmos/tx/v1beta1/txs/"):
            txhash = path.rsplit("/", 1)[-1]
            if txhash not in self.txs:
                return httpx.Response(404, json={"code": 5, "message": f"tx not found: {txhash}"})
            return httpx.Response(200, json={"tx": {}, "tx_response": self.txs[txhash]})
        return httpx.Response(501, json={"message": f"unhandled {request.method} {path}"})

    def _account(self, address: str) -> httpx.Response:
        account = self.accounts.get(address)
        if account is None:
            return httpx.Response(404, json={"code": 5, "message": f"account {address} not found"})
        return httpx.Response(
            200,
            json={
                "account": {
                    "@type": "/cosmos.auth.v1beta1.BaseAccount",
                    "address": address,
                    "pub_key": None,
                    "account_number": str(account.account_number),
                    "sequence": str(account.sequence),
                }
            },
        )

    def _estimate(self, body: dict[str, Any]) -> httpx.Response:
        adjustment = Decimal(body["gas_adjustment"])
        gas = (Decimal(self.simulated_gas) * adjustment).to_integral_value(rounding=ROUND_CEILING)
        return httpx.Response(
            200,
            json={"height": "100", "result": {"fee": {"amount": [], "gas": str(int(gas))}}},
        )

    def _signed_sequence(self, tx: dict[str, Any], account: FakeAccount, limit: int) -> Optional[int]:
        sig = tx["signatures"][0]
        for candidate in range(0, limit):
            doc = build_sign_doc(
                chain_id=self.chain_id,
                account_number=account.account_number,
                sequence=candidate,
                fee=tx["fee"],
                msgs=tx["msg"],
                memo=tx["memo"],
            )
            if _verify(sig["pub_key"]["value"], sig["signature"], sign_bytes(doc)):
                return candidate
        return None

    def _broadcast(self, body: dict[str, Any]) -> httpx.Response:
        self.broadcasts.append(body)
        tx = body["tx"]
        sender = tx["msg"][0]["value"]["sender"]
        account = self.accounts.get(sender)
        txhash = hashlib.sha256(json.dumps(tx, sort_keys=True).encode()).hexdigest().upper()

        if account is None:
            return httpx.Response(200, json={"height": "0", "txhash": txhash, "code": 9, "raw_log": "unknown address"})

        got = self._signed_sequence(tx, account, account.pending + 5)
        if got is None:
            return httpx.Response(
                200,
                json={
                    "height": "0",
                    "txhash": txhash,
                    "codespace": "sdk",
                    "code": 4,
                    "raw_log": "signature verification failed; please verify account number and chain-id: unauthorized",
                },
            )
        if got != account.pending:
            return httpx.Response(
                200,
                json={
                    "height": "0",
                    "txhash": txhash,
                    "codespace": "sdk",
                    "code": 32,
                    "raw_log": f"account sequence mismatch, expected {account.pending}, got {got}: incorrect account sequence",
                },
            )

        account.pending += 1
        included = {
            "height": "101",
            "txhash": txhash,
            "code": 0,
            "raw_log": '[{"events":[]}]',
        }
        if self.execution_failure:
            included.update(codespace="wasm", code=4, raw_log=self.execution_failure)
        self.txs[txhash] = included

        if body["mode"] == "block":
            account.sequence = account.pending
            return httpx.Response(200, json=included)
        return httpx.Response(200, json={"height": "0", "txhash": txhash, "raw_log": "[]"})


@pytest.fixture(autouse=True)
def fresh_sequence_guard(monkeypatch: pytest.MonkeyPatch) -> SequenceGuard:
    """Isolate the process-wide sequence cache between tests."""
    guard = SequenceGuard()
    monkeypatch.setattr("nftmx.pneuma.tx.DEFAULT_GUARD", guard)
    return guard


@pytest.fixture(autouse=True)
def no_backoff_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("nftmx.pneuma.rpc.time.sleep", lambda _seconds: None)


@pytest.fixture()
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture()
def config() -> NetworkConfig:
    return NetworkConfig(endpoint=LCD_URL, chain_id=CHAIN_ID, gas_prices_url=ORACLE_URL)


@pytest.fixture()
def wallet() -> WalletIdentity:
    return derive_wallet(Mnemonic(TEST_MNEMONIC))


@pytest.fixture()
def client(ledger: FakeLedger, config: NetworkConfig, wallet: WalletIdentity) -> LedgerClient:
    ledger.fund(wallet.address)
    fees = FeeSchedule.parse(ledger.gas_prices)
    return build_client(config, fees, transport=ledger.transport)
