"""Decimal money helpers shared by the calculators."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from payroll_engine.calculators.errors import InvalidInput

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce a numeric input to Decimal (floats via str, so 0.1 stays 0.1).

    Raises:
        InvalidInput: not a number, or NaN/Infinity.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise InvalidInput(f"Not a number: {value!r}") from exc
    if not result.is_finite():
        raise InvalidInput(f"Amount must be finite, got {value!r}")
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to whole pence, ties away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
