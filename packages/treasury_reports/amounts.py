"""Decimal and token-amount helpers shared by the engine.

Provider amounts arrive as loosely typed strings. Parsing is isolated here so
the tolerance policy can change without touching aggregation code:

- ``AmountPolicy.ZERO`` (default): anything unparseable counts as ``0``.
- ``AmountPolicy.REJECT``: unparseable input raises :class:`MalformedAmountError`.

Token amounts (smallest-unit integers, decimal or ``0x`` hex) are decoded with
plain ``int`` arithmetic so they stay exact at any magnitude.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .errors import MalformedAmountError

_ZERO = Decimal(0)


class AmountPolicy(Enum):
    ZERO = "zero"
    REJECT = "reject"


def _invalid(raw: Any, policy: AmountPolicy) -> Decimal:
    if policy is AmountPolicy.REJECT:
        raise MalformedAmountError(f"invalid amount: {raw!r}")
    return _ZERO


def parse_decimal(raw: Any, *, policy: AmountPolicy = AmountPolicy.ZERO) -> Decimal:
    """Parse ``raw`` into a finite :class:`~decimal.Decimal`.

    ``None`` and blank strings are treated as invalid. Floats go through
    ``str()`` so ``0.1`` stays ``Decimal("0.1")``.
    """

    if isinstance(raw, Decimal):
        d = raw
    elif isinstance(raw, bool) or raw is None:
        return _invalid(raw, policy)
    elif isinstance(raw, int | float):
        d = Decimal(str(raw))
    elif isinstance(raw, str):
        s = raw.strip()
        if not s:
            return _invalid(raw, policy)
        try:
            d = Decimal(s)
        except InvalidOperation:
            return _invalid(raw, policy)
    else:
        return _invalid(raw, policy)

    if not d.is_finite():
        return _invalid(raw, policy)
    return d


def format_decimal(d: Decimal) -> str:
    """Render ``d`` in fixed-point notation, keeping its scale.

    Negative zero is rendered without the sign.
    """

    if not d:
        d = d.copy_abs()
    return f"{d:f}"


def sum_decimal_strings(values: Any) -> Decimal:
    """Sum an iterable of loosely typed amounts with the tolerant policy."""

    total = _ZERO
    for v in values:
        total += parse_decimal(v)
    return total


def decode_raw_amount(value: Any) -> int:
    """Decode a smallest-unit token amount into an unsigned integer.

    Accepts ints, base-10 integer strings and ``0x``-prefixed hex strings.
    Anything else decodes to ``0``.
    """

    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return abs(value)
    if not isinstance(value, str):
        return 0
    s = value.strip()
    if not s:
        return 0
    try:
        if s[:2].lower() == "0x":
            return int(s[2:], 16) if len(s) > 2 else 0
        return abs(int(s, 10))
    except ValueError:
        return 0


def format_units(value: int, decimals: int) -> str:
    """Format a smallest-unit integer using ``decimals`` places.

    Trailing fractional zeros are dropped but at least one fractional digit is
    kept, e.g. ``format_units(1500000, 6) == "1.5"`` and
    ``format_units(100, 0) == "100.0"``.
    """

    if decimals < 0:
        raise ValueError("decimals must be non-negative")
    whole, frac = divmod(abs(value), 10**decimals)
    frac_digits = str(frac).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{whole}.{frac_digits or '0'}"


__all__ = [
    "AmountPolicy",
    "parse_decimal",
    "format_decimal",
    "sum_decimal_strings",
    "decode_raw_amount",
    "format_units",
]
