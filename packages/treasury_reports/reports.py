"""Assemble engine output into the documents consumed by the presentation layer."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .aggregation import aggregate, aggregate_periods, grand_total, group_rows
from .amounts import format_decimal
from .models import (
    AccountReport,
    AccountSummaryDocument,
    CategoryIndex,
    CategoryRecord,
    CategoryRollupDocument,
    CurrentBalance,
    FinancialAccountMeta,
    LedgerAccountEntry,
    LedgerAccountsDocument,
    MonthlySeriesDocument,
    MonthlySnapshot,
    RollupSelection,
    StatusDocument,
    UnitStatus,
)
from .monthly import compute_ytd


def assemble(
    account_meta: FinancialAccountMeta | Mapping[str, Any],
    snapshots: Sequence[MonthlySnapshot],
) -> AccountReport:
    """Combine account metadata and its month series.

    ``current`` carries the balances of the last snapshot (``None`` when there
    are none); ``totals_ytd`` is recomputed from ``snapshots``.
    """

    meta = (
        account_meta
        if isinstance(account_meta, FinancialAccountMeta)
        else FinancialAccountMeta.from_provider(account_meta)
    )
    latest = snapshots[-1] if snapshots else None
    current = (
        CurrentBalance(
            month=latest.month,
            opening_balance=latest.opening_balance,
            closing_balance=latest.closing_balance,
        )
        if latest is not None
        else None
    )
    return AccountReport(
        account=meta,
        current=current,
        totals_ytd=compute_ytd(snapshots),
        month_series=tuple(snapshots),
    )


def account_summary_document(
    report: AccountReport, *, administration_id: str, year: int, generated_at: str
) -> AccountSummaryDocument:
    return AccountSummaryDocument(
        generated_at=generated_at,
        administration_id=str(administration_id),
        year=str(year),
        financial_account=report.account,
        current=report.current,
        totals_ytd=report.totals_ytd,
    )


def monthly_series_document(
    report: AccountReport, *, year: int, generated_at: str
) -> MonthlySeriesDocument:
    return MonthlySeriesDocument(
        generated_at=generated_at,
        year=str(year),
        financial_account_id=report.account.id,
        months=list(report.month_series),
    )


def category_rollup_document(
    snapshots: Sequence[MonthlySnapshot],
    index: CategoryIndex,
    selection: RollupSelection,
    *,
    generated_at: str,
    currency: str | None = None,
    limit: int | None = None,
) -> CategoryRollupDocument:
    """Spent-by-group rollup over the latest month or the whole year so far.

    Year-to-date totals are the per-month aggregates summed entrywise.
    """

    if selection == "latest-month":
        latest = snapshots[-1] if snapshots else None
        totals = aggregate(latest.cash_paid_by_ledger_account, index) if latest else {}
        month = latest.month if latest else None
    elif selection == "year-to-date":
        totals = aggregate_periods((s.cash_paid_by_ledger_account for s in snapshots), index)
        month = None
    else:
        raise ValueError(f"unknown rollup selection: {selection!r}")

    return CategoryRollupDocument(
        generated_at=generated_at,
        selection=selection,
        month=month,
        currency=currency,
        groups=group_rows(totals, index, limit=limit),
        grand_total=format_decimal(grand_total(totals)),
    )


def ledger_accounts_document(
    records: Iterable[CategoryRecord], *, administration_id: str, generated_at: str
) -> LedgerAccountsDocument:
    return LedgerAccountsDocument(
        generated_at=generated_at,
        administration_id=str(administration_id),
        ledger_accounts=[
            LedgerAccountEntry(
                id=r.id, name=r.name, parent_id=r.parent_id, account_type=r.account_type
            )
            for r in records
        ],
    )


def status_document(
    source: str, results: Mapping[str, BaseException | None], *, generated_at: str
) -> StatusDocument:
    """Map per-unit outcomes (``None`` = success) to a status document."""

    return StatusDocument(
        generated_at=generated_at,
        source=source,
        results={
            label: UnitStatus(ok=exc is None, error=None if exc is None else str(exc))
            for label, exc in results.items()
        },
    )


__all__ = [
    "assemble",
    "account_summary_document",
    "monthly_series_document",
    "category_rollup_document",
    "ledger_accounts_document",
    "status_document",
]
