"""
Network configuration.

Values come from the process environment.  ``load_env_files`` seeds the
environment from ``./.env`` and ``~/.nftmx/.env`` first; variables that are
already set always win.

Recognised variables:
    NETWORK           LCD base URL
    CHAIN_ID          target chain identifier
    WALLET_SEEDS      mnemonic phrase (read by ``load_mnemonic`` only)
    GAS_PRICES_URL    fee oracle endpoint
    GAS_ADJUSTMENT    multiplier applied to the gas estimate
    FEE_DENOMS        comma separated denominations used to pay fees
    CONTRACT_ADDRESS  default target contract
    BROADCAST_MODE    "sync" or "block"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigError
from .utils import parse_decimal

# Default config directory
NFTMX_DIR = Path.home() / ".nftmx"
NFTMX_ENV = NFTMX_DIR / ".env"

# ---- Defaults (bombay-12 testnet) ----
DEFAULT_NETWORK = "https://bombay-lcd.terra.dev"
DEFAULT_CHAIN_ID = "bombay-12"
DEFAULT_GAS_PRICES_URL = "https://bombay-fcd.terra.dev/v1/txs/gas_prices"
DEFAULT_GAS_ADJUSTMENT = "1.5"
DEFAULT_FEE_DENOMS = "uluna"
DEFAULT_CONTRACT_ADDRESS = "terra10v7hlw7cz7rvhht5vkgg9vkcvull3snnhrql50"
DEFAULT_BROADCAST_MODE = "sync"
DEFAULT_TIMEOUT = 30.0

BROADCAST_MODES = ("sync", "block")


@dataclass(frozen=True)
class NetworkConfig:
    endpoint: str
    chain_id: str
    gas_adjustment: Decimal = Decimal(DEFAULT_GAS_ADJUSTMENT)
    gas_prices_url: str = DEFAULT_GAS_PRICES_URL
    fee_denoms: tuple[str, ...] = (DEFAULT_FEE_DENOMS,)
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    broadcast_mode: str = DEFAULT_BROADCAST_MODE
    timeout: float = DEFAULT_TIMEOUT

    def validate(self) -> "NetworkConfig":
        """Fail fast on values no ledger call could succeed with."""
        if not self.endpoint.strip():
            raise ConfigError("NETWORK must not be empty")
        if not self.endpoint.startswith(("http://", "https://")):
            raise ConfigError(f"NETWORK must be an http(s) URL, got {self.endpoint!r}")
        if not self.chain_id.strip():
            raise ConfigError("CHAIN_ID must not be empty")
        if self.gas_adjustment <= 0:
            raise ConfigError(f"GAS_ADJUSTMENT must be positive, got {self.gas_adjustment}")
        if not self.fee_denoms:
            raise ConfigError("FEE_DENOMS must name at least one denomination")
        if self.broadcast_mode not in BROADCAST_MODES:
            raise ConfigError(
                f"BROADCAST_MODE must be one of {', '.join(BROADCAST_MODES)}, "
                f"got {self.broadcast_mode!r}"
            )
        return self

    def with_overrides(self, **changes: object) -> "NetworkConfig":
        """Return a copy with the non-None values in ``changes`` applied."""
        applied = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **applied).validate()

    @property
    def lcd_url(self) -> str:
        return self.endpoint.rstrip("/")


def load_env_files(env_path: Optional[Path] = None) -> None:
    """Seed ``os.environ`` from ./.env and the per-user env file."""
    load_dotenv(Path.cwd() / ".env", override=False)
    env_path = env_path or NFTMX_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)


def load_config(environ: Optional[Mapping[str, str]] = None) -> NetworkConfig:
    """Build a validated ``NetworkConfig`` from environment variables."""
    env = os.environ if environ is None else environ

    raw_adjustment = env.get("GAS_ADJUSTMENT", DEFAULT_GAS_ADJUSTMENT)
    gas_adjustment = parse_decimal(raw_adjustment)
    if gas_adjustment is None:
        raise ConfigError(f"GAS_ADJUSTMENT must be a decimal number, got {raw_adjustment!r}")

    fee_denoms = tuple(
        d.strip() for d in env.get("FEE_DENOMS", DEFAULT_FEE_DENOMS).split(",") if d.strip()
    )

    config = NetworkConfig(
        endpoint=env.get("NETWORK", DEFAULT_NETWORK),
        chain_id=env.get("CHAIN_ID", DEFAULT_CHAIN_ID),
        gas_adjustment=gas_adjustment,
        gas_prices_url=env.get("GAS_PRICES_URL", DEFAULT_GAS_PRICES_URL),
        fee_denoms=fee_denoms,
        contract_address=env.get("CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS),
        broadcast_mode=env.get("BROADCAST_MODE", DEFAULT_BROADCAST_MODE),
    )
    return config.validate()
