from decimal import Decimal

import pytest

from synth_trader.execution.exceptions import InvalidAmountError
from synth_trader.formatters import parse_amount, seconds_to_time, to_raw_amount


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        ("", None),
        ("   ", None),
        ("0", Decimal("0")),
        (" 12.50 ", Decimal("12.50")),
        (7, Decimal("7")),
        (Decimal("0.001"), Decimal("0.001")),
    ],
)
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize("value", ["abc", "-0.5", "Infinity", "NaN", False])
def test_parse_amount_rejects_invalid(value):
    with pytest.raises(InvalidAmountError):
        parse_amount(value)


def test_to_raw_amount_truncates_extra_precision():
    assert to_raw_amount(Decimal("1.5")) == 1_500_000_000_000_000_000
    assert to_raw_amount(Decimal("0.0000000000000000019")) == 1
    assert to_raw_amount(Decimal("2.5"), decimals=6) == 2_500_000


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0, "0:00"),
        (45, "0:45"),
        (120, "2:00"),
        (3599, "59:59"),
        (3661, "1:01:01"),
        (-5, "0:00"),
    ],
)
def test_seconds_to_time(seconds, expected):
    assert seconds_to_time(seconds) == expected


def test_to_raw_amount_handles_large_amounts():
    assert to_raw_amount(Decimal("10000000000")) == 10**28
    assert to_raw_amount(Decimal("123456789012345")) == 123456789012345 * 10**18


def test_to_raw_amount_keeps_every_significant_digit():
    amount = Decimal("1234567890123.456789012345678901234")

    assert to_raw_amount(amount) == 1234567890123456789012345678901


def test_to_raw_amount_truncates_after_widening_precision():
    amount = Decimal("9" * 11 + "." + "9" * 19)

    assert to_raw_amount(amount) == int("9" * 29)
