"""Recognise ledger entries that are reserve fund movements.

Transfer operations write synthetic revenues and expenses so the operating
balance reflects money moved into or out of the reserve fund. Reports must
not count those entries as income or spending, so every aggregation runs
its rows through the filters below first.

New entries carry an explicit ``is_reserve_fund`` flag. Rows written before
the flag existed are recognised by the reserved category name or by the
description markers the transfer operations have always used.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar

from treasury.models.category import RESERVE_FUND_CATEGORY_NAME

RESERVE_FUND_DESCRIPTION_MARKERS: tuple[str, ...] = (
    "fundo de reserva",
    "depósito no fundo",
    "retirada do fundo",
)

T = TypeVar("T")


def is_reserve_fund_movement(
    category_name: str | None,
    description: str | None,
    *,
    flagged: bool = False,
) -> bool:
    """Return ``True`` when an entry represents a reserve fund movement."""

    if flagged:
        return True
    if not category_name and not description:
        return False

    category_lower = (category_name or "").lower()
    description_lower = (description or "").lower()
    if category_lower == RESERVE_FUND_CATEGORY_NAME.lower():
        return True
    return any(marker in description_lower for marker in RESERVE_FUND_DESCRIPTION_MARKERS)


def _field(row: Any, name: str) -> Any:
    if isinstance(row, Mapping):
        return row.get(name)
    return getattr(row, name, None)


def category_name_of(category: Any) -> str | None:
    """Extract a category name from an ORM object, a mapping or a one-item list."""

    if not category:
        return None
    if isinstance(category, (list, tuple)):
        return category_name_of(category[0])
    name = _field(category, "name")
    return name or None


def _row_is_reserve_fund(row: Any, category_key: str) -> bool:
    category = _field(row, category_key)
    if category is None:
        category = _field(row, "category")
    return is_reserve_fund_movement(
        category_name_of(category),
        _field(row, "description"),
        flagged=bool(_field(row, "is_reserve_fund")),
    )


def filter_reserve_fund_revenues(revenues: Iterable[T]) -> list[T]:
    """Drop revenues that mirror reserve fund withdrawals."""

    return [row for row in revenues if not _row_is_reserve_fund(row, "revenue_categories")]


def filter_reserve_fund_expenses(expenses: Iterable[T]) -> list[T]:
    """Drop expenses that mirror reserve fund deposits."""

    return [row for row in expenses if not _row_is_reserve_fund(row, "expense_categories")]


__all__ = [
    "RESERVE_FUND_DESCRIPTION_MARKERS",
    "category_name_of",
    "filter_reserve_fund_expenses",
    "filter_reserve_fund_revenues",
    "is_reserve_fund_movement",
]
