"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
import re

MONEY_QUANTUM = Decimal("0.01")

# Persian and Arabic-Indic digits to ASCII
_DIGITS = str.maketrans("۰۱۲۳۴۵۶۷۸۹٠١٢٣٤٥٦٧٨٩", "01234567890123456789")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "50000"
    - "50,000" or "50٬000"
    - "۵۰٬۰۰۰" (Persian digits)
    - "50,000 ریال" or "IRR 50000"
    - "-1500" or "(1500)" (negative in parentheses)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    amount_str = amount_str.strip().translate(_DIGITS)

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency markers
    amount_str = re.sub(r"ریال|تومان|IRR|Rials?", "", amount_str, flags=re.IGNORECASE)

    # Remove thousands separators (ASCII comma, Arabic comma, Arabic thousands separator)
    amount_str = re.sub(r"[,،٬\s]", "", amount_str)
    amount_str = amount_str.replace("٫", ".")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    return -amount if is_negative else amount


def to_money(value) -> Decimal:
    """Round a value to hundredths of a Rial, half up."""
    return Decimal(value).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def format_amount(amount: Decimal) -> str:
    """Format an amount with thousands separators, dropping zero decimals."""
    if amount == amount.to_integral_value():
        return f"{amount:,.0f}"
    return f"{amount:,.2f}"
