"""Per-month account snapshots and year-to-date totals.

Net cash flow is derived from balances (``closing - opening``) and never from
the received/paid maps, whose sign conventions are defined by the accounting
source. The received/paid totals are still published as informational sums;
a disagreement between them and the net is expected and left as-is.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from .amounts import format_decimal, parse_decimal, sum_decimal_strings
from .logging_setup import get_logger
from .models import CashFlowReport, MonthlySnapshot, YtdTotals

_logger = get_logger("treasury_reports.monthly")


def month_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def month_period(year: int, month: int) -> str:
    """Return the provider period token ``YYYYMM01..YYYYMMDD`` for a month."""

    last = calendar.monthrange(year, month)[1]
    return f"{year}{month:02d}01..{year}{month:02d}{last:02d}"


def month_from_period(period: str) -> str:
    """``"20250301..20250331"`` -> ``"2025-03"``."""

    start = period.split("..", 1)[0].strip()
    if len(start) < 6 or not start[:6].isdigit():
        raise ValueError(f"invalid period token: {period!r}")
    return f"{start[:4]}-{start[4:6]}"


def reporting_months(year: int, today: date) -> list[int]:
    """Months to report for ``year``: through the current month in the current
    year, otherwise all twelve."""

    last = today.month if year == today.year else 12
    return list(range(1, last + 1))


def build_month(
    account_id: str,
    period: str,
    cash_flow_report: CashFlowReport | Mapping[str, Any],
    mutation_count: int,
) -> MonthlySnapshot:
    """Build the snapshot of ``account_id`` for the month covered by ``period``."""

    report = (
        cash_flow_report
        if isinstance(cash_flow_report, CashFlowReport)
        else CashFlowReport.model_validate(cash_flow_report)
    )
    opening = report.opening_balance
    closing = report.closing_balance
    received = report.cash_received_by_ledger_account
    paid = report.cash_paid_by_ledger_account

    snapshot = MonthlySnapshot(
        month=month_from_period(period),
        period=period,
        mutation_count=max(int(mutation_count), 0),
        opening_balance=format_decimal(opening),
        closing_balance=format_decimal(closing),
        cash_received_total=format_decimal(sum_decimal_strings(received.values())),
        cash_paid_total=format_decimal(sum_decimal_strings(paid.values())),
        net_cash_flow=format_decimal(closing - opening),
        cash_received_by_ledger_account=dict(received),
        cash_paid_by_ledger_account=dict(paid),
    )
    _logger.debug(
        "Built %s for account %s (mutations=%d)",
        snapshot.month,
        account_id,
        snapshot.mutation_count,
    )
    return snapshot


def compute_ytd(snapshots: Iterable[MonthlySnapshot]) -> YtdTotals:
    """Sum counts and scalar totals over all snapshots."""

    count = 0
    received = paid = net = Decimal(0)
    for s in snapshots:
        count += s.mutation_count
        received += parse_decimal(s.cash_received_total)
        paid += parse_decimal(s.cash_paid_total)
        net += parse_decimal(s.net_cash_flow)
    return YtdTotals(
        mutation_count=count,
        cash_received_total=format_decimal(received),
        cash_paid_total=format_decimal(paid),
        net_cash_flow=format_decimal(net),
    )


__all__ = [
    "month_key",
    "month_period",
    "month_from_period",
    "reporting_months",
    "build_month",
    "compute_ytd",
]
