"""
Utilities Module

This module provides small helpers shared by the bill split wizard modules.

Features:
    - Decimal-safe money rounding
    - Currency formatting for display
    - Amount validation for user input
    - Unique identifier generation

Functions:
    to_decimal: Convert a number to Decimal without float noise.
    round_money: Round to 2 decimal places (ROUND_HALF_UP).
    format_currency: Format amount with currency symbol.
    validate_amount: Validate if input is a valid monetary amount.
    generate_id: Generate a unique identifier for records.
    amount_or_zero: Coerce a stored number, falling back to 0 for junk.

Exceptions:
    NotFoundError: Raised when an id does not name an existing record.
"""

import uuid
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

from config.settings import get_settings


CENT = Decimal("0.01")


class NotFoundError(ValueError, LookupError):
    """An id does not name an existing participant, line item or bill."""


def to_decimal(value) -> Decimal:
    """
    Convert a number (int, float, str or Decimal) to Decimal.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not the binary
    expansion.

    Args:
        value: Numeric value to convert. None is treated as zero.

    Returns:
        Decimal: The converted value.

    Raises:
        ValueError: If the value is not numeric.
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Not a valid number: {value!r}")


def round_money(value) -> float:
    """
    Round a value to 2 decimal places and convert to float.

    Args:
        value: Decimal (or anything to_decimal accepts) to round.

    Returns:
        float: Rounded value as float.
    """
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def format_currency(amount: float, symbol: str = None) -> str:
    """
    Format a monetary amount with the appropriate currency symbol.

    Args:
        amount: The amount to format.
        symbol: Currency symbol (default: from settings).

    Returns:
        str: Formatted string like "฿1,234.56".
    """
    if symbol is None:
        symbol = get_settings().currency_symbol
    return f"{symbol}{amount:,.2f}"


def validate_amount(value, allow_zero: bool = True) -> bool:
    """
    Validate if the input is a valid monetary amount.

    Args:
        value: Value to validate.
        allow_zero: Whether 0 counts as valid.

    Returns:
        bool: True if valid non-negative (or positive) number.
    """
    try:
        amount = to_decimal(value)
    except (TypeError, ValueError):
        return False
    if not amount.is_finite():
        return False
    return amount >= 0 if allow_zero else amount > 0


def generate_id() -> str:
    """Generate a fresh opaque identifier (uuid4 hex)."""
    return uuid.uuid4().hex


def amount_or_zero(value) -> float:
    """
    Coerce a persisted amount for hydration.

    Anything that is not a finite, non-negative number (negative values,
    junk strings, booleans, None) becomes 0.0.

    Args:
        value: Raw value read from storage.

    Returns:
        float: The amount, or 0.0.
    """
    if isinstance(value, bool) or not validate_amount(value):
        return 0.0
    return float(to_decimal(value))
