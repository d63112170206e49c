"""USD amount helpers.

Catalog prices are Decimal dollars. Amounts leave the core as integer cents,
rounded half-up at the cent.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal | None:
    """Parse a price value, returning None for blanks and garbage."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not amount.is_finite():
        return None
    return amount


def round_cents(amount: Decimal) -> Decimal:
    """Round a dollar amount to cents using half-up rounding."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Convert a dollar amount to integer cents."""
    return int(round_cents(amount) * 100)


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to dollars."""
    return (Decimal(int(cents)) / 100).quantize(CENT)


def format_usd(amount: Decimal) -> str:
    """Format dollars for contract text, e.g. ``$5,000.00``."""
    return f"${round_cents(amount):,.2f}"
