"""Decimal helpers for currency and rate values."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")
ZERO = Decimal("0")

Number = Decimal | int | float | str


def to_decimal(value: Number | None, *, default: Decimal = ZERO) -> Decimal:
    """Build a ``Decimal`` once at the record boundary.

    Floats go through ``str`` so ``0.1`` becomes ``Decimal("0.1")`` rather than
    its binary expansion. ``None`` and blank strings fall back to *default*.
    """

    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not monetary values")
    if isinstance(value, float):
        value = repr(value)
    text = str(value).strip().replace(",", "").replace("$", "")
    if not text:
        return default
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"not a decimal amount: {value!r}") from exc


def quantize_currency(amount: Decimal) -> Decimal:
    """Round to cents using half-up rounding."""

    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def non_negative(amount: Decimal) -> Decimal:
    return amount if amount > ZERO else ZERO


def format_decimal(amount: Decimal | None) -> str | None:
    """Serialize a decimal for plain-record output."""

    if amount is None:
        return None
    return str(amount)
