"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation

# Matches the expenses.amount column, Numeric(12, 2)
AMOUNT_PLACES = Decimal("0.01")
MAX_AMOUNT = Decimal("1e10")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Accepts plain numbers such as "123.45", "-20", "0" or "1e3" after
    trimming. Negative amounts are allowed (refunds are recorded that way).
    Amounts are stored with two decimal places, so values needing more
    precision, or more than ten integer digits, are rejected instead of being
    rounded.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string is empty, not a finite number, or not
            storable without rounding
    """
    if amount_str is None or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip()

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")

    if not amount.is_finite():
        raise ValueError(f"Amount must be a finite number, got '{amount_str}'")
    if abs(amount) >= MAX_AMOUNT:
        raise ValueError(f"Amount '{amount_str}' is out of range")
    if amount.quantize(AMOUNT_PLACES) != amount:
        raise ValueError(f"Amount '{amount_str}' has more than 2 decimal places")
    return amount
