"""Monthly scheduler that fires the reserve fund auto-transfer."""
from __future__ import annotations

import asyncio
from datetime import datetime, time, timedelta, timezone
from typing import Awaitable, Callable


def next_month_start(reference: datetime, *, at: time = time(0, 5)) -> datetime:
    """Return the first instant of the month after ``reference``, shifted to ``at``.

    The result keeps ``reference``'s timezone so the run lands on the first
    day of the church's local month.
    """

    tz = reference.tzinfo or timezone.utc
    year = reference.year + (1 if reference.month == 12 else 0)
    month = 1 if reference.month == 12 else reference.month + 1
    return datetime(year, month, 1, at.hour, at.minute, tzinfo=tz)


def next_run_after(reference: datetime, *, at: time = time(0, 5)) -> datetime:
    """Return the next run time, which may still be today when it is the 1st."""

    tz = reference.tzinfo or timezone.utc
    today_slot = datetime(reference.year, reference.month, 1, at.hour, at.minute, tzinfo=tz)
    if reference < today_slot:
        return today_slot
    return next_month_start(reference, at=at)


async def run_monthly_scheduler(
    callback: Callable[[], Awaitable[None]],
    *,
    now_fn: Callable[[], datetime] | None = None,
    sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_schedule: Callable[[datetime], None] | None = None,
    iterations: int | None = None,
) -> None:
    """Await ``callback`` once per month relative to ``now_fn``."""

    now_provider = now_fn or (lambda: datetime.now(timezone.utc))
    executed = 0

    while iterations is None or executed < iterations:
        now = now_provider()
        target = next_run_after(now)
        if on_schedule is not None:
            on_schedule(target)
        await sleep_fn(max((target - now) / timedelta(seconds=1), 0.0))
        await callback()
        executed += 1


__all__ = ["next_month_start", "next_run_after", "run_monthly_scheduler"]
