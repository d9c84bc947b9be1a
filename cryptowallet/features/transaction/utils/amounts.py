from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN

from cryptowallet.features.transaction.errors import InvalidAmount

CENTS = Decimal("0.01")


def quantize_amount(value: Decimal) -> Decimal:
    """Round to cents using banker's rounding."""
    return value.quantize(CENTS, rounding=ROUND_HALF_EVEN)


def parse_amount(raw) -> Decimal:
    """
    Parse a client supplied amount (str, int, float or Decimal) into a
    positive two-place Decimal. Floats go through str() so 0.1 stays 0.1.
    Raises InvalidAmount for anything else.
    """
    if raw is None or isinstance(raw, bool):
        raise InvalidAmount("Amount is required")

    if isinstance(raw, float):
        raw = str(raw)

    try:
        value = Decimal(raw.strip() if isinstance(raw, str) else raw)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Invalid amount: {raw!r}")

    if not value.is_finite():
        raise InvalidAmount(f"Invalid amount: {raw!r}")

    try:
        value = quantize_amount(value)
    except InvalidOperation:
        raise InvalidAmount(f"Invalid amount: {raw!r}")
    if value <= 0:
        raise InvalidAmount()
    return value
