"""Calendar helpers bound to the church's local timezone."""
from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from zoneinfo import ZoneInfo

from treasury.core.config import get_settings

TodayProvider = Callable[[], date]


def local_today(tz_name: str | None = None) -> date:
    """Return today's calendar date in the configured timezone."""

    zone = ZoneInfo(tz_name or get_settings().timezone)
    return datetime.now(zone).date()


def first_day_of_month(day: date) -> date:
    return day.replace(day=1)


def last_day_of_month(year: int, month: int) -> date:
    if month == 12:
        return date(year, 12, 31)
    return date.fromordinal(date(year, month + 1, 1).toordinal() - 1)


def format_br_date(day: date) -> str:
    """Render a date as ``dd/mm/yyyy``."""

    return day.strftime("%d/%m/%Y")


__all__ = [
    "TodayProvider",
    "first_day_of_month",
    "format_br_date",
    "last_day_of_month",
    "local_today",
]
