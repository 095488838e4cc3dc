"""Public interface for the ``treasury_reports`` package.

Re-exports the reconciliation and aggregation engine (ledger rollups,
transfer normalization and merging, monthly snapshots, report assembly) and its
models. Provider clients, publishing and the CLI live in their own modules.
"""

from .aggregation import aggregate, aggregate_periods, group_rows, merge_group_totals
from .amounts import AmountPolicy, decode_raw_amount, format_units, parse_decimal
from .dedup import DedupKey, dedup_key, merge_and_dedup
from .errors import ConfigError, MalformedAmountError, TreasuryReportsError, UpstreamFetchError
from .ledger import build_category_index, category_records_from_payload, resolve_top_group
from .models import (
    AccountReport,
    CashFlowReport,
    CategoryRecord,
    MonthlySnapshot,
    NormalizedTransfer,
    RawTransfer,
    YtdTotals,
)
from .monthly import build_month, compute_ytd, month_period, reporting_months
from .reports import assemble, category_rollup_document
from .transfers import classify_direction, normalize_transfer, raw_from_alchemy, raw_from_etherscan

__all__ = [
    # Engine
    "resolve_top_group",
    "build_category_index",
    "category_records_from_payload",
    "aggregate",
    "aggregate_periods",
    "merge_group_totals",
    "group_rows",
    "normalize_transfer",
    "classify_direction",
    "raw_from_etherscan",
    "raw_from_alchemy",
    "merge_and_dedup",
    "dedup_key",
    "DedupKey",
    "build_month",
    "compute_ytd",
    "month_period",
    "reporting_months",
    "assemble",
    "category_rollup_document",
    # Amounts
    "AmountPolicy",
    "parse_decimal",
    "decode_raw_amount",
    "format_units",
    # Models
    "CategoryRecord",
    "RawTransfer",
    "NormalizedTransfer",
    "CashFlowReport",
    "MonthlySnapshot",
    "YtdTotals",
    "AccountReport",
    # Errors
    "TreasuryReportsError",
    "ConfigError",
    "UpstreamFetchError",
    "MalformedAmountError",
]
