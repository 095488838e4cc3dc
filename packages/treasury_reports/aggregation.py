"""Roll ledger-account amounts up into their top-level groups.

Totals report the magnitude of each amount (``abs``), so a group's total is
"spent" regardless of the sign convention used by the accounting source.
Summation is plain ``Decimal`` addition, which makes per-period totals
composable: merging the totals of two periods equals aggregating both periods
in one pass.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal

from .amounts import format_decimal, parse_decimal
from .ledger import group_name, resolve_top_group
from .models import CategoryAmountMap, CategoryIndex, GroupRow, GroupTotals


def aggregate(amounts_by_category_id: CategoryAmountMap, index: CategoryIndex) -> GroupTotals:
    """Sum absolute amounts per resolved top-level group.

    Unparseable amounts count as ``0`` (their group still appears).
    """

    totals: GroupTotals = {}
    for category_id, amount in amounts_by_category_id.items():
        group_id = resolve_top_group(str(category_id), index)
        spent = abs(parse_decimal(amount))
        totals[group_id] = totals.get(group_id, Decimal(0)) + spent
    return totals


def merge_group_totals(*totals: Mapping[str, Decimal]) -> GroupTotals:
    """Entrywise sum of several :data:`GroupTotals` mappings."""

    merged: GroupTotals = {}
    for t in totals:
        for group_id, value in t.items():
            merged[group_id] = merged.get(group_id, Decimal(0)) + value
    return merged


def aggregate_periods(
    period_maps: Iterable[CategoryAmountMap], index: CategoryIndex
) -> GroupTotals:
    """Aggregate each period separately and merge the results."""

    return merge_group_totals(*(aggregate(m, index) for m in period_maps))


def grand_total(totals: Mapping[str, Decimal]) -> Decimal:
    return sum(totals.values(), Decimal(0))


def group_rows(
    totals: Mapping[str, Decimal], index: CategoryIndex, *, limit: int | None = None
) -> list[GroupRow]:
    """Return display rows sorted by total (descending), then group id."""

    ordered = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        ordered = ordered[: max(limit, 0)]
    return [
        GroupRow(group_id=gid, name=group_name(gid, index), total=format_decimal(total))
        for gid, total in ordered
    ]


__all__ = [
    "aggregate",
    "merge_group_totals",
    "aggregate_periods",
    "grand_total",
    "group_rows",
]
