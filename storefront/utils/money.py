from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Round any numeric value half-up to whole cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def money_out(value) -> float:
    """JSON-friendly rendering of a stored money value."""
    if value is None:
        return 0.0
    return float(to_money(value))
