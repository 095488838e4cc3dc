"""Normalize provider transfer rows into :class:`NormalizedTransfer` records.

Each source has a small adapter that maps its native row into a
:class:`RawTransfer`; :func:`normalize_transfer` does the rest:

- direction relative to the reference address (case-insensitive),
- exact decoding of smallest-unit amounts (decimal or ``0x`` hex),
- timestamps rendered as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` so that string order is
  chronological order,
- an explorer link for the transaction.

Supported sources
-----------------
- Etherscan ``tokentx`` rows: ``hash``, ``from``, ``to``, ``value`` (decimal
  string), ``timeStamp`` (unix seconds), ``contractAddress``.
- Alchemy ``alchemy_getAssetTransfers`` rows: ``hash``, ``from``, ``to``,
  ``uniqueId``, ``asset``, ``rawContract.value`` (usually hex),
  ``metadata.blockTimestamp`` (ISO-8601).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from .amounts import decode_raw_amount, format_units
from .logging_setup import get_logger
from .models import Direction, NormalizedTransfer, RawTransfer

_logger = get_logger("treasury_reports.transfers")


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def iso_utc(dt: datetime) -> str:
    """Render ``dt`` as UTC ISO-8601 with millisecond precision and ``Z``."""

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    dt = dt.astimezone(UTC)
    return dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"


def iso_from_unix_seconds(raw: Any) -> str | None:
    try:
        seconds = int(str(raw).strip())
    except (TypeError, ValueError):
        return None
    try:
        return iso_utc(datetime.fromtimestamp(seconds, tz=UTC))
    except (OverflowError, OSError, ValueError):
        return None


def _normalize_iso(raw: str | None) -> str | None:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return iso_utc(datetime.fromisoformat(raw.strip()))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Source adapters
# ---------------------------------------------------------------------------


def _str_or_none(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def raw_from_etherscan(row: Mapping[str, Any]) -> RawTransfer:
    return RawTransfer(
        hash=_str_or_none(row.get("hash")),
        from_address=_str_or_none(row.get("from")),
        to_address=_str_or_none(row.get("to")),
        value=row.get("value") or "0",
        timestamp=iso_from_unix_seconds(row.get("timeStamp")),
        unique_id=None,
        asset=_str_or_none(row.get("contractAddress")) or _str_or_none(row.get("tokenSymbol")),
    )


def raw_from_alchemy(row: Mapping[str, Any]) -> RawTransfer:
    raw_contract = row.get("rawContract") or {}
    metadata = row.get("metadata") or {}
    return RawTransfer(
        hash=_str_or_none(row.get("hash")),
        from_address=_str_or_none(row.get("from")),
        to_address=_str_or_none(row.get("to")),
        value=raw_contract.get("value") if isinstance(raw_contract, Mapping) else None,
        timestamp=metadata.get("blockTimestamp") if isinstance(metadata, Mapping) else None,
        unique_id=_str_or_none(row.get("uniqueId")),
        asset=_str_or_none(row.get("asset")),
    )


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def classify_direction(
    from_address: str | None, to_address: str | None, reference_address: str
) -> Direction:
    me = reference_address.lower()
    is_from = (from_address or "").lower() == me
    is_to = (to_address or "").lower() == me
    if is_from and is_to:
        return "self"
    if is_to:
        return "in"
    if is_from:
        return "out"
    return "other"


def normalize_transfer(
    raw: RawTransfer,
    reference_address: str,
    decimals: int,
    explorer_base_url: str,
    *,
    now: Callable[[], datetime] | None = None,
) -> NormalizedTransfer:
    """Build the canonical record for ``raw``.

    When the source supplied no usable event time, the current time (from
    ``now``, default ``datetime.now(UTC)``) is used so that sorting never
    fails; this is logged at DEBUG.
    """

    timestamp = _normalize_iso(raw.timestamp)
    if timestamp is None:
        timestamp = iso_utc((now or (lambda: datetime.now(UTC)))())
        _logger.debug("No event time for transfer %s; using processing time", raw.hash)

    amount = decode_raw_amount(raw.value)
    tx_hash = raw.hash or ""
    return NormalizedTransfer(
        hash=tx_hash,
        timestamp=timestamp,
        from_address=raw.from_address or "",
        to_address=raw.to_address or "",
        direction=classify_direction(raw.from_address, raw.to_address, reference_address),
        amount_raw=str(amount),
        amount_formatted=format_units(amount, decimals),
        explorer_tx_url=f"{explorer_base_url.rstrip('/')}/tx/{tx_hash}",
        unique_id=raw.unique_id,
        asset=raw.asset,
    )


def normalize_rows(
    rows: Iterable[Mapping[str, Any]],
    adapter: Callable[[Mapping[str, Any]], RawTransfer],
    *,
    reference_address: str,
    decimals: int,
    explorer_base_url: str,
) -> list[NormalizedTransfer]:
    return [
        normalize_transfer(adapter(r), reference_address, decimals, explorer_base_url)
        for r in rows
    ]


__all__ = [
    "iso_utc",
    "iso_from_unix_seconds",
    "raw_from_etherscan",
    "raw_from_alchemy",
    "classify_direction",
    "normalize_transfer",
    "normalize_rows",
]
