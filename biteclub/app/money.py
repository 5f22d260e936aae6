"""Currency helpers.

All monetary values are :class:`~decimal.Decimal` amounts with two decimal
places. Floats are refused outright so that balances and totals never
accumulate binary rounding error.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .domain.errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# largest value a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")


def quantize(amount: Decimal) -> Decimal:
    """Round ``amount`` to cents using round-half-up."""

    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: object, field: str = "amount") -> Decimal:
    """Coerce ``value`` into a cent-quantized :class:`Decimal`.

    ``int``, ``str`` and ``Decimal`` inputs are accepted. ``None``, floats,
    booleans and non-numeric strings raise :class:`ValidationError`.
    """

    if value is None:
        raise ValidationError("MISSING_AMOUNT", f"{field} is required")
    if isinstance(value, (bool, float)):
        raise ValidationError(
            "INVALID_AMOUNT",
            f"{field} must be a decimal string or integer",
            hint="Send money values as strings, e.g. \"12.50\"",
        )
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as exc:
        raise ValidationError("INVALID_AMOUNT", f"{field} is not a number") from exc
    if not amount.is_finite():
        raise ValidationError("INVALID_AMOUNT", f"{field} is not a number")
    return check_bounds(amount, field)


def check_bounds(amount: Decimal, field: str = "amount") -> Decimal:
    """Quantize ``amount``, refusing values a money column cannot store."""

    out_of_range = ValidationError(
        "INVALID_AMOUNT", f"{field} is out of range", details={"max": str(MAX_AMOUNT)}
    )
    try:
        rounded = quantize(amount)
    except InvalidOperation as exc:
        raise out_of_range from exc
    if abs(rounded) > MAX_AMOUNT:
        raise out_of_range
    return rounded


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    """Return ``percent`` percent of ``amount`` rounded to cents."""

    return quantize(amount * percent / Decimal("100"))


def fmt(amount: Decimal | None) -> str | None:
    """Render ``amount`` for JSON payloads."""

    if amount is None:
        return None
    return str(quantize(Decimal(amount)))
