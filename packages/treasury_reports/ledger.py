"""Ledger account hierarchy: index construction and top-group resolution.

Ledger accounts form a forest through optional ``parent_id`` links. The links
come from an external snapshot and are not validated upstream, so the walk
tolerates dangling parents (treated as roots) and cycles (the walk stops at the
first revisited id).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from .logging_setup import get_logger
from .models import CategoryIndex, CategoryRecord

_logger = get_logger("treasury_reports.ledger")


def _norm_id(v: Any) -> str | None:
    if v is None or isinstance(v, bool):
        return None
    s = str(v).strip()
    return s or None


def category_records_from_payload(rows: Iterable[Mapping[str, Any]]) -> list[CategoryRecord]:
    """Convert provider ledger-account rows into :class:`CategoryRecord` items.

    Rows without a usable ``id`` are dropped. ``parent_id`` may be absent,
    blank or numeric; it is normalized to a string or ``None``.
    """

    records: list[CategoryRecord] = []
    dropped = 0
    for row in rows:
        if not isinstance(row, Mapping):
            dropped += 1
            continue
        cid = _norm_id(row.get("id"))
        if cid is None:
            dropped += 1
            continue
        parent = row.get("parent_id", row.get("parentId"))
        records.append(
            CategoryRecord(
                id=cid,
                name=(str(row["name"]).strip() or None) if row.get("name") else None,
                parent_id=_norm_id(parent),
                account_type=row.get("account_type", row.get("accountType")) or None,
            )
        )
    if dropped:
        _logger.warning("Dropped %d ledger account rows without an id", dropped)
    return records


def build_category_index(records: Iterable[CategoryRecord]) -> CategoryIndex:
    """Return a read-only ``id -> record`` mapping (last duplicate wins)."""

    return MappingProxyType({r.id: r for r in records})


def resolve_top_group(category_id: str, index: CategoryIndex) -> str:
    """Return the top-level ancestor id of ``category_id``.

    The walk stops at a record without a parent or whose parent is missing
    from ``index`` (a root), at an id that is itself missing from ``index``
    (its own group), or when an id repeats; in the cycle case the repeated id
    is returned. Runs at most ``len(index) + 1`` steps.
    """

    current = str(category_id)
    seen: set[str] = set()
    while True:
        record = index.get(current)
        if record is None or record.parent_id is None or record.parent_id not in index:
            return current
        if current in seen:
            return current
        seen.add(current)
        current = record.parent_id


def group_name(group_id: str, index: CategoryIndex) -> str:
    record = index.get(group_id)
    if record is not None and record.name:
        return record.name
    return f"Ledger {group_id}"


__all__ = [
    "category_records_from_payload",
    "build_category_index",
    "resolve_top_group",
    "group_name",
]
