from __future__ import annotations

from decimal import Decimal

import pytest

from treasury_reports.amounts import (
    AmountPolicy,
    decode_raw_amount,
    format_decimal,
    format_units,
    parse_decimal,
)
from treasury_reports.errors import MalformedAmountError


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("-150.00", Decimal("-150.00")),
        (" 12.5 ", Decimal("12.5")),
        (7, Decimal(7)),
        (0.1, Decimal("0.1")),
        (Decimal("3.30"), Decimal("3.30")),
    ],
)
def test_parse_decimal_accepts_common_shapes(raw, expected):
    assert parse_decimal(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "NaN", "Infinity", True, [], {}])
def test_parse_decimal_invalid_is_zero_by_default(raw):
    assert parse_decimal(raw) == 0


def test_parse_decimal_reject_policy_raises():
    with pytest.raises(MalformedAmountError):
        parse_decimal("12,34", policy=AmountPolicy.REJECT)
    # Valid input is unaffected by the policy.
    assert parse_decimal("1.5", policy=AmountPolicy.REJECT) == Decimal("1.5")


def test_format_decimal_is_fixed_point_and_keeps_scale():
    assert format_decimal(Decimal("750.00") - Decimal("1000.00")) == "-250.00"
    assert format_decimal(Decimal("1E+3")) == "1000"
    assert format_decimal(Decimal("-0.00")) == "0.00"


def test_decode_raw_amount_handles_hex_decimal_and_garbage():
    assert decode_raw_amount("0x0de0b6b3a7640000") == 10**18
    assert decode_raw_amount("0X10") == 16
    assert decode_raw_amount("100") == 100
    assert decode_raw_amount(42) == 42
    assert decode_raw_amount("0x") == 0
    assert decode_raw_amount("zz") == 0
    assert decode_raw_amount(None) == 0


def test_decode_raw_amount_is_exact_beyond_2_pow_128():
    big = 2**130 + 12345
    assert decode_raw_amount(hex(big)) == big
    assert decode_raw_amount(str(big)) == big


def test_format_units_matches_token_conventions():
    assert format_units(1_500_000, 6) == "1.5"
    assert format_units(100, 0) == "100.0"
    assert format_units(0, 18) == "0.0"
    assert format_units(10**18, 18) == "1.0"
    assert format_units(1, 18) == "0.000000000000000001"
    with pytest.raises(ValueError):
        format_units(1, -1)
