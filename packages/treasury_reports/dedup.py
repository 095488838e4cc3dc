"""Merge transfer lists from overlapping queries into one recent-first timeline.

The same on-chain event can come back from several queries (an "outgoing" and
an "incoming" fetch both return self-transfers, paginated windows overlap).
Identity is modelled by :class:`DedupKey`, chosen with a fixed precedence:

1. ``unique``: the source's per-event uniqueness token (with the tx hash).
2. ``composite``: ``(hash, asset, from, to, amountRaw)``. Several legitimate
   transfers may share one hash (batched transfers), so the hash alone is not
   enough.
3. No key: the record is dropped and counted. Guessing an identity could merge
   unrelated events.

Records with equal keys collapse to one. The surviving copy is picked by a
total order over its fields, and ties in time are ordered by key, so the
output does not depend on the order of the input lists.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import astuple, dataclass
from typing import Literal

from .logging_setup import get_logger
from .models import NormalizedTransfer

_logger = get_logger("treasury_reports.dedup")


@dataclass(frozen=True, slots=True, order=True)
class DedupKey:
    kind: Literal["unique", "composite"]
    parts: tuple[str, ...]


def dedup_key(t: NormalizedTransfer) -> DedupKey | None:
    """Return the identity of ``t`` or ``None`` when it has no usable one."""

    tx_hash = (t.hash or "").strip().lower()
    if t.unique_id:
        return DedupKey("unique", (tx_hash, t.unique_id))
    if tx_hash:
        return DedupKey(
            "composite",
            (
                tx_hash,
                (t.asset or "").lower(),
                t.from_address.lower(),
                t.to_address.lower(),
                t.amount_raw,
            ),
        )
    return None


def _rank(t: NormalizedTransfer) -> tuple[str, ...]:
    return tuple("" if v is None else str(v) for v in astuple(t))


def merge_and_dedup(
    transfer_lists: Iterable[Iterable[NormalizedTransfer]], max_count: int
) -> list[NormalizedTransfer]:
    """Concatenate, deduplicate, sort newest-first, then keep ``max_count``.

    Truncation happens after sorting so the most recent events always survive
    regardless of how the inputs were ordered.
    """

    if max_count < 0:
        raise ValueError("max_count must be non-negative")

    by_key: dict[DedupKey, NormalizedTransfer] = {}
    dropped = 0
    for transfers in transfer_lists:
        for t in transfers:
            key = dedup_key(t)
            if key is None:
                dropped += 1
                continue
            kept = by_key.get(key)
            if kept is None or _rank(t) < _rank(kept):
                by_key[key] = t

    if dropped:
        _logger.warning("Dropped %d transfers without a usable identity", dropped)

    ordered = sorted(by_key.items(), key=lambda kv: (kv[1].timestamp, kv[0]), reverse=True)
    return [t for _, t in ordered[:max_count]]


__all__ = ["DedupKey", "dedup_key", "merge_and_dedup"]
