"""Utility functions for parsing and formatting ledger values."""

from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal, Inexact, InvalidOperation, localcontext
from typing import Iterable, Iterator, Optional

EXPORT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Digits on either side of the decimal point an amount may carry
AMOUNT_MAX_DIGITS = 100
# Sums of bounded amounts stay far below this
MONEY_PRECISION = 1000


@contextmanager
def exact_arithmetic() -> Iterator:
    """Decimal context for money: wide enough never to round.

    Any operation that would still round raises ``decimal.Inexact``.
    """
    with localcontext() as ctx:
        ctx.prec = MONEY_PRECISION
        ctx.traps[Inexact] = True
        yield ctx


def parse_amount(value: str) -> Decimal:
    """Parse a decimal amount string.

    Args:
        value: Amount as a decimal string (e.g. "0.15")

    Returns:
        Decimal: The parsed amount

    Raises:
        ValueError: If the string is not a finite, non-negative decimal
            within AMOUNT_MAX_DIGITS of the decimal point
    """
    if value is None:
        raise ValueError("amount is required")
    try:
        amount = Decimal(value.strip())
    except (InvalidOperation, AttributeError) as e:
        raise ValueError(f"Invalid decimal amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    if amount < 0:
        raise ValueError(f"Amount must not be negative: {value!r}")
    if amount.adjusted() >= AMOUNT_MAX_DIGITS or amount.as_tuple().exponent < -AMOUNT_MAX_DIGITS:
        raise ValueError(f"Amount out of range: {value!r}")
    return amount


def sum_amounts(amounts: Iterable[Decimal]) -> Decimal:
    """Exact sum of decimal amounts; 0 for no amounts."""
    with exact_arithmetic():
        return sum(amounts, Decimal(0))


def subtract_amounts(minuend: Decimal, subtrahend: Decimal) -> Decimal:
    """Exact difference of two decimal amounts."""
    with exact_arithmetic():
        return minuend - subtrahend


def format_amount(value: Optional[Decimal]) -> str:
    """Render a Decimal as a plain string without exponent or trailing zeros.

    Args:
        value: Amount to render

    Returns:
        String such as "0.3", "100" or "0"
    """
    if value is None:
        return "0"
    if value == 0:
        return "0"
    with exact_arithmetic():
        return format(value.normalize(), "f")


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are kept as-is."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def format_export_date(value: Optional[datetime]) -> str:
    """Format a timestamp for the donation history export."""
    if value is None:
        return ""
    return value.strftime(EXPORT_DATE_FORMAT)


def short_hash(tx_hash: str, length: int = 10) -> str:
    """First characters of a hash or address, used in download filenames."""
    return (tx_hash or "")[:length]
