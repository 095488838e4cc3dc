from __future__ import annotations

from datetime import date

import pytest

from treasury_reports.models import CashFlowReport
from treasury_reports.monthly import (
    build_month,
    compute_ytd,
    month_from_period,
    month_key,
    month_period,
    reporting_months,
)


def test_net_is_closing_minus_opening_regardless_of_maps():
    report = {
        "opening_balance": "1000.00",
        "closing_balance": "750.00",
        "cash_received_by_ledger_account": {"10": "500.00"},
        "cash_paid_by_ledger_account": {"20": "-900.00", "21": "-1.00"},
    }

    snap = build_month("acc", "20250301..20250331", report, 4)

    assert snap.month == "2025-03"
    assert snap.net_cash_flow == "-250.00"
    assert snap.cash_received_total == "500.00"
    assert snap.cash_paid_total == "-901.00"
    assert snap.mutation_count == 4


def test_missing_fields_default_to_zero_and_empty_maps():
    snap = build_month("acc", "20250101..20250131", {}, 0)

    assert (snap.opening_balance, snap.closing_balance, snap.net_cash_flow) == ("0", "0", "0")
    assert snap.cash_received_by_ledger_account == {}
    assert snap.cash_paid_by_ledger_account == {}


def test_cash_flow_report_is_tolerant():
    report = CashFlowReport.model_validate(
        {
            "opening_balance": None,
            "closing_balance": "not a number",
            "cash_paid_by_ledger_account": {1: None, "2": -3.5},
            "cash_received_by_ledger_account": "garbage",
            "unexpected": True,
        }
    )

    assert report.opening_balance == 0
    assert report.closing_balance == 0
    assert report.cash_paid_by_ledger_account == {"1": "0", "2": "-3.5"}
    assert report.cash_received_by_ledger_account == {}


def test_negative_mutation_count_is_clamped():
    assert build_month("acc", "20250101..20250131", {}, -3).mutation_count == 0


@pytest.mark.parametrize(
    ("year", "month", "expected"),
    [
        (2024, 2, "20240201..20240229"),
        (2025, 2, "20250201..20250228"),
        (2025, 12, "20251201..20251231"),
        (2025, 4, "20250401..20250430"),
    ],
)
def test_month_period_uses_last_calendar_day(year, month, expected):
    assert month_period(year, month) == expected


def test_month_from_period_roundtrips_month_key():
    assert month_from_period(month_period(2025, 7)) == month_key(2025, 7) == "2025-07"
    with pytest.raises(ValueError):
        month_from_period("latest")


def test_reporting_months_current_and_past_year():
    assert reporting_months(2025, date(2025, 3, 15)) == [1, 2, 3]
    assert reporting_months(2024, date(2025, 3, 15)) == list(range(1, 13))


def test_compute_ytd_sums_scalars():
    jan = build_month(
        "acc",
        "20250101..20250131",
        {"opening_balance": "0", "closing_balance": "100.00",
         "cash_received_by_ledger_account": {"1": "100.00"}},
        2,
    )
    feb = build_month(
        "acc",
        "20250201..20250228",
        {"opening_balance": "100.00", "closing_balance": "60.00",
         "cash_paid_by_ledger_account": {"2": "-40.00"}},
        3,
    )

    ytd = compute_ytd([jan, feb])

    assert ytd.mutation_count == 5
    assert ytd.cash_received_total == "100.00"
    assert ytd.cash_paid_total == "-40.00"
    assert ytd.net_cash_flow == "60.00"


def test_compute_ytd_of_nothing_is_zero():
    ytd = compute_ytd([])
    assert (ytd.mutation_count, ytd.net_cash_flow) == (0, "0")
