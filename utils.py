"""
Utilities Module

This module provides the small numeric and display helpers shared by the
ledger modules.

Features:
    - Lenient amount parsing for loosely-typed store documents
    - Inclusion-flag parsing for annotated share entries
    - Decimal-safe rounding to currency precision
    - Currency formatting

Functions:
    parse_amount: Coerce a raw value into a finite Decimal, or None.
    parse_included: Interpret a raw inclusion flag.
    round_decimal: Round a Decimal to 2 places and convert to float.
    format_currency: Format amount with currency symbol.
    validate_amount: Validate if input is a valid monetary amount.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional


CENT = Decimal("0.01")


def parse_amount(value) -> Optional[Decimal]:
    """
    Coerce a raw document value into a Decimal.

    Numbers pass through, strings are parsed after trimming whitespace.
    Booleans are NOT numbers here even though Python treats them as ints;
    callers that give booleans a meaning handle them before calling this.

    Args:
        value: Raw value read from a document.

    Returns:
        Decimal | None: The parsed value, or None when the value is missing,
        non-numeric, NaN or infinite.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None

    if not amount.is_finite():
        return None
    return amount


def parse_included(value) -> bool:
    """
    Interpret the `included` field of an annotated share entry.

    Args:
        value: Raw flag value.

    Returns:
        bool: True for explicit True, any non-zero number, the strings
        "true" (any case) and "1", and for a missing value or one of any
        other type. False for False, zero and any other string.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        try:
            return int(value) != 0
        except (ValueError, OverflowError):
            # NaN and infinity carry no usable flag
            return False
    if isinstance(value, str):
        return value.strip().lower() == "true" or value.strip() == "1"
    # presence of the entry implies inclusion
    return True


def round_decimal(value: Decimal) -> float:
    """
    Round a Decimal to 2 decimal places and convert to float.

    Uses ROUND_HALF_UP so 0.005 always rounds away from zero.

    Args:
        value: Decimal value to round.

    Returns:
        float: Rounded value as float.
    """
    return float(value.quantize(CENT, rounding=ROUND_HALF_UP))


def format_currency(amount: float, symbol: str = "₹") -> str:
    """
    Format a monetary amount with the appropriate currency symbol.

    Negative amounts keep the sign in front of the symbol.

    Args:
        amount: The amount to format.
        symbol: Currency symbol (default: ₹).

    Returns:
        str: Formatted string like "₹1,234.56" or "-₹12.00".
    """
    if amount < 0:
        return f"-{symbol}{abs(amount):,.2f}"
    return f"{symbol}{amount:,.2f}"


def validate_amount(value) -> bool:
    """
    Validate if the input is a valid monetary amount.

    Args:
        value: Value to validate.

    Returns:
        bool: True if valid positive number.
    """
    amount = parse_amount(value)
    return amount is not None and amount > 0
