__all__ = [
    # Configuration
    "NetworkConfig",
    "load_config",
    # Errors
    "WorkflowError",
    "ConfigError",
    "NetworkError",
    "AmbiguousBroadcastError",
    "ParseError",
    "KeyDerivationError",
    "ValidationError",
    "MissingFeeDenomError",
    "SigningError",
    "RejectedError",
    "SequenceMismatchError",
    "ExecutionError",
    # Messages
    "Coin",
    "Expiration",
    "ContractMessage",
    "SetBuyCriteria",
    "SetSellCriteria",
    "BuyOnCriteria",
    "TransferNft",
    "Approve",
    "Revoke",
    "ApproveAll",
    "RevokeAll",
    "BurnPackable",
    "MintPackable",
    "SendNft",
    "parse_message",
    "parse_coins",
    # Wallet
    "Mnemonic",
    "WalletIdentity",
    "derive_wallet",
    "load_mnemonic",
    # Ledger
    "FeeSchedule",
    "fetch_fee_schedule",
    "LedgerClient",
    "AccountInfo",
    "build_client",
    "SequenceGuard",
    "SignOptions",
    "SignedTransaction",
    "BroadcastResult",
    "assemble_and_sign",
    "broadcast",
    "wait_for_tx",
    "submit",
]

from .config import NetworkConfig, load_config
from .errors import (
    AmbiguousBroadcastError,
    ConfigError,
    ExecutionError,
    KeyDerivationError,
    MissingFeeDenomError,
    NetworkError,
    ParseError,
    RejectedError,
    SequenceMismatchError,
    SigningError,
    ValidationError,
    WorkflowError,
)
from .spec.messages import (
    Approve,
    ApproveAll,
    BurnPackable,
    BuyOnCriteria,
    Coin,
    ContractMessage,
    Expiration,
    MintPackable,
    Revoke,
    RevokeAll,
    SendNft,
    SetBuyCriteria,
    SetSellCriteria,
    TransferNft,
    parse_coins,
    parse_message,
)
from .sigil.terra import Mnemonic, WalletIdentity, derive_wallet, load_mnemonic
from .pneuma.fees import FeeSchedule, fetch_fee_schedule
from .pneuma.rpc import AccountInfo, LedgerClient, build_client
from .pneuma.sequence import SequenceGuard
from .pneuma.tx import (
    BroadcastResult,
    SignedTransaction,
    SignOptions,
    assemble_and_sign,
    broadcast,
    submit,
    wait_for_tx,
)
