"""Parsing and formatting helpers shared by the order form and execution layers."""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal, InvalidOperation, localcontext
from typing import Optional, Union

from synth_trader.execution.exceptions import InvalidAmountError

AmountInput = Union[Decimal, int, str, None]


def parse_amount(value: AmountInput) -> Optional[Decimal]:
    """Parse user input into a ``Decimal``; empty input yields ``None``."""

    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidAmountError(f"Invalid amount: {value!r}") from exc

    if not parsed.is_finite() or parsed < 0:
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    return parsed


def to_raw_amount(amount: Decimal, decimals: int = 18) -> int:
    """Scale a display amount to integer token units, truncating extra precision.

    Precision is widened to hold every digit of ``amount``, so the result is
    exact for amounts of any size.
    """

    amount = Decimal(amount)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(amount.as_tuple().digits) + abs(decimals))
        scaled = amount.scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def seconds_to_time(seconds: int) -> str:
    """Format a duration as ``m:ss``, or ``h:mm:ss`` once it exceeds an hour."""

    seconds = max(int(seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


__all__ = ["AmountInput", "parse_amount", "seconds_to_time", "to_raw_amount"]
