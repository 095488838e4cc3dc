"""Data models and type aliases for ``treasury_reports``.

Two families live here:

- Engine records (frozen dataclasses): ``CategoryRecord``, ``RawTransfer``,
  ``NormalizedTransfer``, ``AccountReport``. They are built once and never
  mutated.
- Published shapes (pydantic models): monthly snapshots, totals and the JSON
  documents consumed by the presentation layer. They serialize with camelCase
  keys via :meth:`Document.to_json_obj`. Monetary fields are decimal strings.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .amounts import parse_decimal

# ---------------------------------------------------------------------------
# Ledger categories
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryRecord:
    """A ledger account (category) node with an optional parent reference."""

    id: str
    name: str | None = None
    parent_id: str | None = None
    account_type: str | None = None


CategoryIndex: TypeAlias = Mapping[str, CategoryRecord]
"""Read-only lookup of category id to record, built once per run."""

CategoryAmountMap: TypeAlias = Mapping[str, str]
"""Category id to signed decimal string, as supplied by the accounting source."""

GroupTotals: TypeAlias = dict[str, Decimal]
"""Top-level group id to non-negative spent total."""


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------

Direction = Literal["in", "out", "self", "other"]


@dataclass(frozen=True, slots=True)
class RawTransfer:
    """Source-neutral view of one provider transfer row.

    ``value`` is the raw smallest-unit amount (decimal or ``0x`` hex string).
    ``timestamp`` is whatever event time the source supplied, if any.
    """

    hash: str | None
    from_address: str | None
    to_address: str | None
    value: Any
    timestamp: str | None = None
    unique_id: str | None = None
    asset: str | None = None


@dataclass(frozen=True, slots=True)
class NormalizedTransfer:
    """Canonical transfer record.

    ``unique_id`` and ``asset`` only feed duplicate detection and are not part
    of the published document.
    """

    hash: str
    timestamp: str
    from_address: str
    to_address: str
    direction: Direction
    amount_raw: str
    amount_formatted: str
    explorer_tx_url: str
    unique_id: str | None = None
    asset: str | None = None

    def to_document(self) -> dict[str, str]:
        return {
            "hash": self.hash,
            "timestamp": self.timestamp,
            "from": self.from_address,
            "to": self.to_address,
            "direction": self.direction,
            "amountRaw": self.amount_raw,
            "amountFormatted": self.amount_formatted,
            "explorerTxUrl": self.explorer_tx_url,
        }


# ---------------------------------------------------------------------------
# Published documents
# ---------------------------------------------------------------------------


class Document(BaseModel):
    """Base for published shapes: camelCase on the wire, immutable in memory."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_json_obj(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class MonthlySnapshot(Document):
    """Financial snapshot for one account and calendar month.

    ``net_cash_flow`` is always ``closing_balance - opening_balance``. The
    received/paid totals are informational sums of the per-ledger maps and may
    disagree with it.
    """

    month: str
    period: str
    mutation_count: int = Field(ge=0)
    opening_balance: str
    closing_balance: str
    cash_received_total: str
    cash_paid_total: str
    net_cash_flow: str
    cash_received_by_ledger_account: dict[str, str] = Field(default_factory=dict)
    cash_paid_by_ledger_account: dict[str, str] = Field(default_factory=dict)


class YtdTotals(Document):
    mutation_count: int = 0
    cash_received_total: str = "0"
    cash_paid_total: str = "0"
    net_cash_flow: str = "0"


class CurrentBalance(Document):
    month: str
    opening_balance: str
    closing_balance: str


class FinancialAccountMeta(Document):
    """Public metadata of a financial account (no identifiers such as IBANs)."""

    id: str
    type: str | None = None
    name: str | None = None
    currency: str | None = None
    provider: str | None = None
    active: bool = False
    updated_at: str | None = None

    @classmethod
    def from_provider(cls, row: Mapping[str, Any]) -> FinancialAccountMeta:
        return cls(
            id=str(row.get("id")),
            type=row.get("type"),
            name=row.get("name") or None,
            currency=row.get("currency"),
            provider=row.get("provider"),
            active=bool(row.get("active")),
            updated_at=row.get("updated_at"),
        )


@dataclass(frozen=True, slots=True)
class AccountReport:
    """Assembled view of one account: metadata, latest balances, YTD and series."""

    account: FinancialAccountMeta
    current: CurrentBalance | None
    totals_ytd: YtdTotals
    month_series: tuple[MonthlySnapshot, ...]


class AccountSummaryDocument(Document):
    generated_at: str
    administration_id: str
    year: str
    financial_account: FinancialAccountMeta
    current: CurrentBalance | None
    totals_ytd: YtdTotals


class MonthlySeriesDocument(Document):
    generated_at: str
    year: str
    financial_account_id: str
    months: list[MonthlySnapshot]


RollupSelection = Literal["latest-month", "year-to-date"]


class GroupRow(Document):
    group_id: str
    name: str
    total: str


class CategoryRollupDocument(Document):
    generated_at: str
    selection: RollupSelection
    month: str | None = None
    currency: str | None = None
    groups: list[GroupRow]
    grand_total: str


class LedgerAccountEntry(Document):
    id: str
    name: str | None = None
    parent_id: str | None = None
    account_type: str | None = None


class LedgerAccountsDocument(Document):
    generated_at: str
    administration_id: str
    ledger_accounts: list[LedgerAccountEntry]


class MoneybirdMetaDocument(Document):
    generated_at: str
    administration_id: str
    year: str
    accounts: dict[str, str]


class UnitStatus(Document):
    ok: bool
    error: str | None = None


class StatusDocument(Document):
    """Per-account (or per-chain) outcome of a run.

    A missing document means "not yet available"; an entry with ``ok=False``
    means the fetch failed.
    """

    generated_at: str
    source: str
    results: dict[str, UnitStatus]


class NativeBalance(Document):
    symbol: str
    decimals: int
    balance_wei: str
    balance_formatted: str
    explorer_address_url: str


class TokenBalance(Document):
    symbol: str
    contract: str
    decimals: int
    balance_raw: str
    balance_formatted: str
    explorer_token_url: str


class TreasurySnapshotDocument(Document):
    chain: str
    chain_id: int
    treasury_address: str
    generated_at: str
    native: NativeBalance
    tokens: dict[str, TokenBalance]
    recent_transfers: dict[str, list[dict[str, str]]]
    sources: dict[str, str]


class OnchainMetaDocument(Document):
    generated_at: str
    address: str
    assets: dict[str, list[str]]


# ---------------------------------------------------------------------------
# Provider input
# ---------------------------------------------------------------------------


class CashFlowReport(BaseModel):
    """Tolerant view of a cash-flow report for one account and period.

    Missing or unparseable balances become ``0``; missing maps become empty.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    opening_balance: Decimal = Decimal(0)
    closing_balance: Decimal = Decimal(0)
    cash_received_by_ledger_account: dict[str, str] = Field(default_factory=dict)
    cash_paid_by_ledger_account: dict[str, str] = Field(default_factory=dict)

    @field_validator("opening_balance", "closing_balance", mode="before")
    @classmethod
    def _tolerant_balance(cls, v: Any) -> Decimal:
        return parse_decimal(v)

    @field_validator(
        "cash_received_by_ledger_account", "cash_paid_by_ledger_account", mode="before"
    )
    @classmethod
    def _tolerant_map(cls, v: Any) -> dict[str, str]:
        if not isinstance(v, Mapping):
            return {}
        return {str(k): "0" if val is None else str(val) for k, val in v.items()}


__all__ = [
    "CategoryRecord",
    "CategoryIndex",
    "CategoryAmountMap",
    "GroupTotals",
    "Direction",
    "RawTransfer",
    "NormalizedTransfer",
    "Document",
    "MonthlySnapshot",
    "YtdTotals",
    "CurrentBalance",
    "FinancialAccountMeta",
    "AccountReport",
    "AccountSummaryDocument",
    "MonthlySeriesDocument",
    "RollupSelection",
    "GroupRow",
    "CategoryRollupDocument",
    "LedgerAccountEntry",
    "LedgerAccountsDocument",
    "MoneybirdMetaDocument",
    "UnitStatus",
    "StatusDocument",
    "NativeBalance",
    "TokenBalance",
    "TreasurySnapshotDocument",
    "OnchainMetaDocument",
    "CashFlowReport",
]
