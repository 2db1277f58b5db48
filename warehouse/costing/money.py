from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from warehouse.costing.errors import InvalidInputError

CENT = Decimal("0.01")
COST_UNIT = Decimal("0.0001")
ZERO = Decimal("0")


def to_decimal(value, *, field: str = "amount") -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number")
    try:
        # floats keep their printed value, not their binary expansion
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInputError(f"{field} must be a number, got {value!r}") from exc


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def quantize_cost(value: Decimal) -> Decimal:
    """Unit cost precision, matching the four decimals layer costs are stored with."""
    return value.quantize(COST_UNIT, rounding=ROUND_HALF_UP)
