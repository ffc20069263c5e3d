"""
Money helpers for the fee ledger.

Pure functions only: no database access.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from seatledger.app.core.exceptions import ValidationError

CENTS = Decimal("0.01")


def quantize_money(value) -> Decimal:
    """Round to two decimal places, half-up."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(value, field: str = "amount") -> Decimal:
    """
    Coerce caller input into a finite two-place Decimal.

    Raises:
        ValidationError: For missing, non-numeric or non-finite input
    """
    if value is None:
        raise ValidationError(field, f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(field, f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(field, f"{field} must be a finite number")
    return quantize_money(amount)


def format_balance(fees_due) -> str:
    """
    Display form of a signed balance.

    Examples:
        format_balance(Decimal("100"))  -> "Due 100.00"
        format_balance(Decimal("-50"))  -> "Credit 50.00"
        format_balance(0)               -> "Cleared"
    """
    amount = quantize_money(fees_due if fees_due is not None else 0)
    if amount > 0:
        return f"Due {amount}"
    if amount < 0:
        return f"Credit {-amount}"
    return "Cleared"
