"""
secp256k1 Key Management for Terra accounts.

The wallet key is derived from a BIP-39 mnemonic along the Terra BIP-44
path (coin type 330).  The mnemonic is read from WALLET_SEEDS and never
printed, logged or included in error messages.

Signatures follow the Cosmos convention: 64-byte ``r || s`` (low-s) over
the SHA-256 digest of the sign document.

Dependencies: bip-utils (derivation + bech32 address), eth-keys (signing)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from bip_utils import (
    Bip39MnemonicValidator,
    Bip39SeedGenerator,
    Bip44,
    Bip44Changes,
    Bip44Coins,
)
from eth_keys import keys

from ..errors import ConfigError, KeyDerivationError, SigningError
from ..utils import b64encode, sha256_digest

PUBKEY_TYPE = "tendermint/PubKeySecp256k1"


class Mnemonic:
    """Opaque holder for a seed phrase.

    The phrase lives in a bytearray so ``clear()`` can overwrite it once the
    signing key has been derived.
    """

    __slots__ = ("_buf",)

    def __init__(self, phrase: str) -> None:
        self._buf = bytearray(" ".join(phrase.split()).encode("utf-8"))

    def reveal(self) -> str:
        if not self._buf:
            raise KeyDerivationError("mnemonic has already been cleared")
        return self._buf.decode("utf-8")

    def clear(self) -> None:
        for i in range(len(self._buf)):
            self._buf[i] = 0
        self._buf = bytearray()

    @property
    def cleared(self) -> bool:
        return not self._buf

    def __repr__(self) -> str:
        return "Mnemonic(<redacted>)"

    __str__ = __repr__


def load_mnemonic(environ: Optional[Mapping[str, str]] = None) -> Mnemonic:
    """Read the mnemonic from WALLET_SEEDS."""
    env = os.environ if environ is None else environ
    phrase = env.get("WALLET_SEEDS", "")
    if not phrase.strip():
        raise ConfigError(
            "WALLET_SEEDS not set. Export it or add it to ./.env or ~/.nftmx/.env"
        )
    return Mnemonic(phrase)


@dataclass
class WalletIdentity:
    address: str
    public_key: bytes  # 33-byte compressed secp256k1 point
    _private_key: Optional[keys.PrivateKey] = field(default=None, repr=False)

    @property
    def can_sign(self) -> bool:
        return self._private_key is not None

    def sign(self, data: bytes) -> bytes:
        """Sign ``sha256(data)``; returns 64-byte r||s."""
        if self._private_key is None:
            raise SigningError(f"signing key for {self.address} is not available")
        signature = self._private_key.sign_msg_hash(sha256_digest(data))
        return signature.r.to_bytes(32, "big") + signature.s.to_bytes(32, "big")

    def pub_key_json(self) -> dict[str, str]:
        """Amino JSON form of the public key, as embedded in StdTx signatures."""
        return {"type": PUBKEY_TYPE, "value": b64encode(self.public_key)}

    def discard_key(self) -> None:
        self._private_key = None


def derive_wallet(mnemonic: Mnemonic, account: int = 0, index: int = 0) -> WalletIdentity:
    """
    Derive the Terra wallet at m/44'/330'/account'/0/index.

    Args:
        mnemonic: Seed phrase. Cleared once the key is derived.
        account: BIP-44 account index
        index: BIP-44 address index

    Returns:
        WalletIdentity with a terra1... address and signing capability

    Raises:
        KeyDerivationError: If the phrase is not a valid BIP-39 mnemonic
    """
    try:
        phrase = mnemonic.reveal()
        # Do not chain the library exception: its message may quote the phrase.
        if not Bip39MnemonicValidator().IsValid(phrase):
            raise KeyDerivationError("WALLET_SEEDS is not a valid BIP-39 mnemonic") from None
        try:
            seed = Bip39SeedGenerator(phrase).Generate()
            node = (
                Bip44.FromSeed(seed, Bip44Coins.TERRA)
                .Purpose()
                .Coin()
                .Account(account)
                .Change(Bip44Changes.CHAIN_EXT)
                .AddressIndex(index)
            )
        except ValueError:
            raise KeyDerivationError("key derivation from WALLET_SEEDS failed") from None
        del phrase
    finally:
        mnemonic.clear()

    return WalletIdentity(
        address=node.PublicKey().ToAddress(),
        public_key=node.PublicKey().RawCompressed().ToBytes(),
        _private_key=keys.PrivateKey(node.PrivateKey().Raw().ToBytes()),
    )
