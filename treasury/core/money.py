"""Decimal helpers for currency amounts."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")
# Widest value a Numeric(14, 2) column holds.
MAX_AMOUNT = Decimal("999999999999.99")


def to_amount(value: Decimal | int | float | str | None) -> Decimal:
    """Coerce a stored or user supplied value to a two-place ``Decimal``."""

    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(value: Decimal | int | float | str | None) -> Decimal:
    """Round a user supplied amount to cents and check it can be stored.

    Raises ``ValueError`` with a user facing message when the rounded amount
    is not positive, does not fit the ledger columns, or is not a number.
    """

    if value is None:
        raise ValueError("Valor deve ser maior que zero")
    try:
        amount = to_amount(value)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError("Valor inválido") from exc
    if amount <= 0:
        raise ValueError("Valor deve ser maior que zero")
    if amount > MAX_AMOUNT:
        raise ValueError(f"Valor deve ser no máximo {format_brl(MAX_AMOUNT)}")
    return amount


def format_brl(value: Decimal | int | float) -> str:
    """Format ``value`` as Brazilian reais, e.g. ``R$ 1.234,56``."""

    amount = to_amount(value)
    sign = "-" if amount < 0 else ""
    integral, _, fraction = f"{abs(amount):,.2f}".partition(".")
    return f"{sign}R$ {integral.replace(',', '.')},{fraction}"


__all__ = ["CENTS", "MAX_AMOUNT", "format_brl", "parse_amount", "to_amount"]
