"""
Transaction Builder - Assemble, sign, and broadcast contract executions.

Messages are wrapped as ``wasm/MsgExecuteContract`` instructions, bundled
into a legacy StdTx and signed in amino-JSON mode: the sign document is
canonical JSON (RFC 8785 with the node's HTML-safe escapes) of
``{account_number, chain_id, fee, memo, msgs, sequence}``.

All fees are paid by the signing wallet.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional, Sequence

import rfc8785

from ..errors import (
    AmbiguousBroadcastError,
    ExecutionError,
    ParseError,
    RejectedError,
    SequenceMismatchError,
    ValidationError,
)
from ..sigil.terra import WalletIdentity
from ..spec.messages import Coin, ContractMessage
from ..utils import b64encode
from .rpc import AccountInfo, LedgerClient
from .sequence import DEFAULT_GUARD, SequenceGuard

EXECUTE_MSG_TYPE = "wasm/MsgExecuteContract"
WRONG_SEQUENCE_CODE = 32  # sdk ErrWrongSequence

_SEQUENCE_RE = re.compile(r"account sequence mismatch, expected (\d+), got (\d+)")

# escapes applied by the node's JSON encoder when it rebuilds the sign document
_NODE_ESCAPES = (
    (b"&", b"\\u0026"),
    (b"<", b"\\u003c"),
    (b">", b"\\u003e"),
    ("\u2028".encode("utf-8"), b"\\u2028"),
    ("\u2029".encode("utf-8"), b"\\u2029"),
)


@dataclass(frozen=True)
class SignOptions:
    """Per-transaction knobs.  Unset values fall back to the client's config."""

    gas_limit: Optional[int] = None
    gas_adjustment: Optional[Decimal] = None
    fee_denoms: tuple[str, ...] = ()
    memo: str = ""


@dataclass(frozen=True)
class SignedTransaction:
    msgs: tuple[dict[str, Any], ...]
    fee: dict[str, Any]
    memo: str
    signer: str
    pub_key: dict[str, str]
    chain_id: str
    account_number: int
    sequence: int
    signature: bytes = field(repr=False)

    def sign_doc(self) -> dict[str, Any]:
        return build_sign_doc(
            chain_id=self.chain_id,
            account_number=self.account_number,
            sequence=self.sequence,
            fee=self.fee,
            msgs=list(self.msgs),
            memo=self.memo,
        )

    def to_std_tx(self) -> dict[str, Any]:
        """The StdTx envelope posted to /txs."""
        return {
            "msg": list(self.msgs),
            "fee": self.fee,
            "signatures": [
                {"pub_key": self.pub_key, "signature": b64encode(self.signature)},
            ],
            "memo": self.memo,
            "timeout_height": "0",
        }

    def execute_msgs(self) -> list[dict[str, Any]]:
        """The contract payloads, in order."""
        return [m["value"]["execute_msg"] for m in self.msgs]

    def action_tags(self) -> list[str]:
        return [next(iter(payload)) for payload in self.execute_msgs()]


@dataclass(frozen=True)
class BroadcastResult:
    txhash: str
    code: int
    raw_log: str
    height: int = 0
    codespace: str = ""

    @property
    def accepted(self) -> bool:
        return self.code == 0


# ============ Assembly ============


def execute_instruction(
    sender: str,
    contract: str,
    message: ContractMessage,
    funds: Sequence[Coin] = (),
) -> dict[str, Any]:
    """Wrap one contract message as an amino MsgExecuteContract."""
    return {
        "type": EXECUTE_MSG_TYPE,
        "value": {
            "sender": sender,
            "contract": contract,
            "execute_msg": message.to_dict(),
            "coins": [c.to_dict() for c in funds],
        },
    }


def build_sign_doc(
    chain_id: str,
    account_number: int,
    sequence: int,
    fee: dict[str, Any],
    msgs: list[dict[str, Any]],
    memo: str = "",
) -> dict[str, Any]:
    return {
        "account_number": str(account_number),
        "chain_id": chain_id,
        "fee": fee,
        "memo": memo,
        "msgs": msgs,
        "sequence": str(sequence),
    }


def sign_bytes(doc: dict[str, Any]) -> bytes:
    """
    Canonical bytes of a sign document.

    Sorted compact JSON with the HTML-safe escapes the node applies when it
    rebuilds the document (``<``, ``>``, ``&``, U+2028, U+2029).  Those
    characters can only occur inside JSON strings, so replacing them in the
    serialized bytes is exact.
    """
    data = rfc8785.dumps(doc)
    for raw, escaped in _NODE_ESCAPES:
        data = data.replace(raw, escaped)
    return data


def check_funds(messages: Sequence[ContractMessage], funds: Sequence[Coin]) -> None:
    """
    Funds ride on the transaction's only instruction.

    Raises:
        ValidationError: If funds are given for more than one message, which
            would send them once per instruction
    """
    if funds and len(messages) > 1:
        raise ValidationError(
            "funds",
            f"cannot attach funds to a transaction with {len(messages)} messages; "
            f"send the funded message on its own",
        )


def assemble_and_sign(
    client: LedgerClient,
    wallet: WalletIdentity,
    messages: Sequence[ContractMessage],
    contract: Optional[str] = None,
    options: Optional[SignOptions] = None,
    funds: Sequence[Coin] = (),
    account: Optional[AccountInfo] = None,
) -> SignedTransaction:
    """
    Build and sign a transaction executing ``messages`` on ``contract``.

    Args:
        client: Ledger handle (fee schedule, chain id, LCD access)
        wallet: Signing wallet; also the sender of every instruction
        messages: Ordered contract messages
        contract: Target contract address (default: config.contract_address)
        options: Gas / fee / memo options
        funds: Coins attached to the instruction (single-message transactions only)
        account: Account number and sequence to sign with (default: queried)

    Returns:
        SignedTransaction ready for broadcast

    Raises:
        ValidationError: If there are no messages, funds ride on several
            messages, or a fee denom has no price
        SigningError: If the wallet cannot sign
    """
    options = options or SignOptions()
    if not messages:
        raise ValidationError("msgs", "a transaction needs at least one message")
    check_funds(messages, funds)

    # Resolve fee prices before touching the network.
    fee_denoms = options.fee_denoms or client.config.fee_denoms
    client.fees.require(fee_denoms)

    contract = contract or client.config.contract_address
    msgs = [execute_instruction(wallet.address, contract, m, funds) for m in messages]

    if account is None:
        account = client.account_info(wallet.address)

    if options.gas_limit is not None:
        gas = options.gas_limit
    else:
        unsigned = {
            "msg": msgs,
            "fee": {"amount": [], "gas": "0"},
            "signatures": [],
            "memo": options.memo,
        }
        gas = client.estimate_gas(unsigned, gas_adjustment=options.gas_adjustment)

    fee = {
        "amount": [c.to_dict() for c in client.fees.fee_for(gas, fee_denoms)],
        "gas": str(gas),
    }

    doc = build_sign_doc(
        chain_id=client.chain_id,
        account_number=account.account_number,
        sequence=account.sequence,
        fee=fee,
        msgs=msgs,
        memo=options.memo,
    )
    signature = wallet.sign(sign_bytes(doc))

    return SignedTransaction(
        msgs=tuple(msgs),
        fee=fee,
        memo=options.memo,
        signer=wallet.address,
        pub_key=wallet.pub_key_json(),
        chain_id=client.chain_id,
        account_number=account.account_number,
        sequence=account.sequence,
        signature=signature,
    )


# ============ Broadcast ============


def classify_response(response: dict[str, Any]) -> BroadcastResult:
    """
    Turn a TxResponse into a BroadcastResult or the matching error.

    Raises:
        SequenceMismatchError: Stale sequence (rebuild the transaction)
        ExecutionError: Included in a block but the contract call failed
        RejectedError: Any other ledger-level rejection
    """
    try:
        result = BroadcastResult(
            txhash=str(response.get("txhash", "")),
            code=int(response.get("code") or 0),
            raw_log=str(response.get("raw_log", "")),
            height=int(response.get("height") or 0),
            codespace=str(response.get("codespace", "")),
        )
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Malformed broadcast response: {response!r}") from exc

    if result.accepted:
        return result

    match = _SEQUENCE_RE.search(result.raw_log)
    if match or (result.code == WRONG_SEQUENCE_CODE and result.codespace in ("", "sdk")):
        raise SequenceMismatchError(
            f"Account sequence mismatch: {result.raw_log}",
            code=result.code,
            raw_log=result.raw_log,
            expected=int(match.group(1)) if match else None,
            got=int(match.group(2)) if match else None,
        )

    if result.height > 0:
        raise ExecutionError(
            f"Transaction {result.txhash} failed on chain (code {result.code}): {result.raw_log}",
            txhash=result.txhash,
            code=result.code,
            raw_log=result.raw_log,
        )

    raise RejectedError(
        f"Transaction rejected (code {result.code}): {result.raw_log}",
        code=result.code,
        raw_log=result.raw_log,
    )


def broadcast(
    client: LedgerClient,
    signed: SignedTransaction,
    mode: Optional[str] = None,
) -> BroadcastResult:
    """Submit a signed transaction and classify the node's answer."""
    response = client.broadcast_tx(signed.to_std_tx(), mode or client.config.broadcast_mode)
    return classify_response(response)


def wait_for_tx(
    client: LedgerClient,
    txhash: str,
    timeout: float = 120,
    poll_interval: float = 2.0,
) -> BroadcastResult:
    """
    Wait until a transaction is included in a block.

    Raises:
        ExecutionError: If the included transaction failed
        AmbiguousBroadcastError: If it is not found within timeout
    """
    start = time.time()
    while True:
        info = client.tx_info(txhash)
        if info is not None:
            return classify_response(info)
        if time.time() - start >= timeout:
            break
        time.sleep(poll_interval)

    raise AmbiguousBroadcastError(
        f"Transaction {txhash} not found within {timeout}s; it may still be included."
    )


def sequence_consumed(client: LedgerClient, address: str, sequence: int) -> bool:
    """True once the chain has moved past ``sequence`` for ``address``."""
    return client.account_info(address).sequence > sequence


def submit(
    client: LedgerClient,
    wallet: WalletIdentity,
    messages: Sequence[ContractMessage],
    contract: Optional[str] = None,
    options: Optional[SignOptions] = None,
    funds: Sequence[Coin] = (),
    mode: Optional[str] = None,
    wait: bool = False,
    guard: Optional[SequenceGuard] = None,
) -> tuple[SignedTransaction, BroadcastResult]:
    """
    Assemble, sign, broadcast and optionally wait, serialized per sender.

    Returns:
        The signed transaction and the broadcast (or inclusion) result
    """
    guard = guard or DEFAULT_GUARD
    options = options or SignOptions()
    # bad funds and unpriced fee denoms fail before the account query
    check_funds(messages, funds)
    client.fees.require(options.fee_denoms or client.config.fee_denoms)

    with guard.serialized(wallet.address):
        on_chain = client.account_info(wallet.address)
        account = AccountInfo(
            address=on_chain.address,
            account_number=on_chain.account_number,
            sequence=guard.next_sequence(wallet.address, on_chain.sequence),
        )
        signed = assemble_and_sign(
            client,
            wallet,
            messages,
            contract=contract,
            options=options,
            funds=funds,
            account=account,
        )
        try:
            result = broadcast(client, signed, mode=mode)
        except (SequenceMismatchError, AmbiguousBroadcastError):
            guard.forget(wallet.address)
            raise
        except ExecutionError:
            # included in a block: the sequence was consumed anyway
            guard.commit(wallet.address, signed.sequence)
            raise
        guard.commit(wallet.address, signed.sequence)

    if wait and result.height == 0:
        result = wait_for_tx(client, result.txhash)
    return signed, result
