"""Fixed-point money helpers (two decimal places, never negative)."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from logistics.shared.errors import ValidationFailed

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value, field: str = "amount") -> Decimal:
    if value is None:
        return ZERO
    try:
        amount = Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationFailed(f"{field}: not a valid amount") from None
    if amount < ZERO:
        raise ValidationFailed(f"{field}: must be greater than or equal to 0")
    return amount
