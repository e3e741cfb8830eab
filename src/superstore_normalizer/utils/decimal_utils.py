"""Decimal utilities for monetary fields.

All monetary values are held as Decimal to avoid floating-point drift in
threshold comparisons and aggregate totals.
"""

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

# Currency marks and grouping characters that may decorate exported amounts
_NOISE = re.compile(r"[$€£¥₹,\s]")

# Accounting-style negative: "(1,234.56)"
_PARENTHESIZED = re.compile(r"^\((.+)\)$")

# Trailing percent sign on discount columns ("20%")
PERCENT_PATTERN = re.compile(r"^(.*?)\s*%$")


def parse_amount(raw_amount: str) -> tuple[Decimal, bool]:
    """Split a text amount into magnitude and sign.

    Accepts "1234.56", "-$1,234.56", and "(1,234.56)".

    Returns:
        (absolute value, True if the amount was negative)

    Raises:
        ValueError: If no finite number remains after stripping decoration.
    """
    text = raw_amount.strip()
    if not text:
        raise ValueError("Empty amount string")

    negative = False
    wrapped = _PARENTHESIZED.match(text)
    if wrapped:
        text, negative = wrapped.group(1), True
    text = _NOISE.sub("", text)
    if text.startswith("-"):
        text, negative = text[1:], True

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse amount '{raw_amount}'") from e
    if not amount.is_finite():
        raise ValueError(f"Cannot parse amount '{raw_amount}': not a finite number")

    return abs(amount), negative


def to_decimal(value: object) -> Decimal:
    """Convert a cell value to a signed Decimal.

    Strings go through ``parse_amount``; numbers from spreadsheet cells are
    converted via ``str`` so floats keep their printed precision.

    Raises:
        ValueError: If the value is empty or not numeric.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse amount {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        result = Decimal(str(value))
        if not result.is_finite():
            raise ValueError(f"Cannot parse amount {value!r}: not a finite number")
        return result
    if isinstance(value, str):
        amount, is_negative = parse_amount(value)
        return -amount if is_negative else amount
    raise ValueError(f"Cannot parse amount {value!r}")


def parse_rate(value: object) -> Decimal:
    """Parse a discount rate; "20%" and "0.2" both yield Decimal("0.2")."""
    if isinstance(value, str):
        percent_match = PERCENT_PATTERN.match(value.strip())
        if percent_match:
            return to_decimal(percent_match.group(1)) / Decimal("100")
    return to_decimal(value)


def format_currency(amount: Decimal, decimal_places: int = 2) -> str:
    """Format a Decimal amount for output, rounding half up.

    Args:
        amount: The amount to format.
        decimal_places: Number of decimal places (default 2).

    Returns:
        Formatted string like "-1234.56".
    """
    quantize_str = "1." + "0" * decimal_places if decimal_places else "1"
    rounded = amount.quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)
    if rounded == 0:
        rounded = abs(rounded)
    return str(rounded)
