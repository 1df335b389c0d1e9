"""Render smallest-unit amounts in a currency unit."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .registry import Unit

MAX_DISPLAY_DECIMALS = 8


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats, strings and ``None`` into a ``Decimal``."""

    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        if value != value:  # NaN
            return Decimal(0)
        return Decimal(repr(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError(f"invalid amount: {value!r}") from exc


def format_currency_unit(
    unit: Unit,
    amount: Any,
    *,
    show_code: bool = False,
    disable_rounding: bool = False,
    show_all_digits: bool = False,
) -> str:
    """Format ``amount`` (expressed in the smallest unit) for display in ``unit``.

    Without ``disable_rounding`` the fraction is rounded half up to at most
    ``MAX_DISPLAY_DECIMALS`` places; with it, every significant digit is kept.
    Trailing fractional zeros are dropped unless ``show_all_digits`` is set.
    """

    value = to_decimal(amount).scaleb(-unit.magnitude)
    if not disable_rounding:
        places = min(unit.magnitude, MAX_DISPLAY_DECIMALS)
        value = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)

    negative = value < 0
    text = format(abs(value), ",f")
    integer, _, fraction = text.partition(".")
    if show_all_digits:
        fraction = fraction.ljust(unit.magnitude, "0")
    else:
        fraction = fraction.rstrip("0")

    rendered = integer
    if fraction:
        rendered = f"{rendered}.{fraction}"
    if negative and rendered.strip("0.,"):
        rendered = f"-{rendered}"
    if show_code:
        rendered = f"{rendered} {unit.code}"
    return rendered


__all__ = ["MAX_DISPLAY_DECIMALS", "format_currency_unit", "to_decimal"]
