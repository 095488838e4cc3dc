"""Runtime settings read from the environment.

The CLI loads ``.env`` from the working directory (without overriding already
set variables) before calling :func:`load_settings`. Credentials are optional at
load time; each pipeline asks for what it needs through ``require_*`` so a
Moneybird-only deployment does not need RPC URLs and vice versa.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError

DEFAULT_TREASURY_ADDRESS = "0x2Bc456799F3Cf071B10CE7216269471e0A40381a"


@dataclass(frozen=True, slots=True)
class TokenConfig:
    symbol: str
    contract: str


@dataclass(frozen=True, slots=True)
class ChainConfig:
    """One chain to snapshot: native balance, one token, recent transfers."""

    name: str
    chain_id: int
    rpc_env: str
    explorer_base_url: str
    token: TokenConfig
    transfer_source: str  # "etherscan" | "alchemy"


CHAINS: tuple[ChainConfig, ...] = (
    ChainConfig(
        name="eth",
        chain_id=1,
        rpc_env="ETH_RPC_URL",
        explorer_base_url="https://etherscan.io",
        token=TokenConfig("USDT", "0xdAC17F958D2ee523a2206206994597C13D831ec7"),
        transfer_source="etherscan",
    ),
    ChainConfig(
        name="base",
        chain_id=8453,
        rpc_env="BASE_RPC_URL",
        explorer_base_url="https://basescan.org",
        token=TokenConfig("EQTY", "0xc71f37d9bf4c5d1e7fe4bccb97e6f30b11b37d29"),
        transfer_source="alchemy",
    ),
)


@dataclass(frozen=True, slots=True)
class Settings:
    output_dir: Path = Path("data")
    http_timeout: float = 20.0
    max_workers: int = 4
    transfer_limit: int = 25
    treasury_address: str = DEFAULT_TREASURY_ADDRESS

    moneybird_token: str | None = None
    moneybird_administration_id: str | None = None
    # label -> financial account id
    moneybird_accounts: Mapping[str, str] = field(default_factory=dict)

    rpc_urls: Mapping[str, str] = field(default_factory=dict)
    etherscan_api_key: str | None = None

    def require_moneybird(self) -> None:
        if not self.moneybird_token:
            raise ConfigError("Missing MONEYBIRD_API_TOKEN")
        if not self.moneybird_administration_id:
            raise ConfigError("Missing MONEYBIRD_ADMINISTRATION_ID")
        if not self.moneybird_accounts:
            raise ConfigError("Missing MONEYBIRD_FINANCIAL_ACCOUNT_ID")

    def require_onchain(self) -> None:
        for chain in CHAINS:
            if not self.rpc_urls.get(chain.name):
                raise ConfigError(f"Missing {chain.rpc_env}")
        if not self.etherscan_api_key:
            raise ConfigError("Missing ETHERSCAN_API_KEY")


def parse_account_spec(raw: str | None) -> dict[str, str]:
    """Parse ``"bank=123,savings=456"`` (or bare ids) into ``{label: id}``.

    A single bare id is labelled ``bank``; bare ids in a list are labelled by
    their own id.
    """

    entries = [e.strip() for e in (raw or "").split(",") if e.strip()]
    accounts: dict[str, str] = {}
    for entry in entries:
        if "=" in entry:
            label, _, account_id = entry.partition("=")
            label, account_id = label.strip(), account_id.strip()
            if not label or not account_id:
                raise ConfigError(f"Invalid MONEYBIRD_FINANCIAL_ACCOUNT_ID entry: {entry!r}")
        else:
            account_id = entry
            label = "bank" if len(entries) == 1 else entry
        if label in accounts:
            raise ConfigError(f"Duplicate account label: {label!r}")
        accounts[label] = account_id
    return accounts


def _env_int(name: str, default: int, *, lo: int, hi: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    return max(lo, min(value, hi))


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive")
    return value


def load_settings(*, output_dir: str | Path | None = None) -> Settings:
    """Build :class:`Settings` from the current environment."""

    out = output_dir or os.getenv("TREASURY_REPORTS_OUTPUT_DIR") or "data"
    return Settings(
        output_dir=Path(out),
        http_timeout=_env_float("TREASURY_REPORTS_HTTP_TIMEOUT", 20.0),
        max_workers=_env_int("TREASURY_REPORTS_MAX_WORKERS", 4, lo=1, hi=16),
        transfer_limit=_env_int("TREASURY_REPORTS_TRANSFER_LIMIT", 25, lo=1, hi=1000),
        treasury_address=(os.getenv("TREASURY_ADDRESS") or DEFAULT_TREASURY_ADDRESS).strip(),
        moneybird_token=os.getenv("MONEYBIRD_API_TOKEN") or None,
        moneybird_administration_id=os.getenv("MONEYBIRD_ADMINISTRATION_ID") or None,
        moneybird_accounts=parse_account_spec(os.getenv("MONEYBIRD_FINANCIAL_ACCOUNT_ID")),
        rpc_urls={
            c.name: url for c in CHAINS if (url := (os.getenv(c.rpc_env) or "").strip())
        },
        etherscan_api_key=os.getenv("ETHERSCAN_API_KEY") or None,
    )


__all__ = [
    "DEFAULT_TREASURY_ADDRESS",
    "TokenConfig",
    "ChainConfig",
    "CHAINS",
    "Settings",
    "parse_account_spec",
    "load_settings",
]
