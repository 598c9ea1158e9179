from __future__ import annotations

import asyncio
from datetime import datetime, time, timezone
from zoneinfo import ZoneInfo

from workers.monthly_scheduler import next_month_start, next_run_after, run_monthly_scheduler

SAO_PAULO = ZoneInfo("America/Sao_Paulo")


def test_next_month_start_handles_year_rollover() -> None:
    current = datetime(2023, 12, 15, 10, 0, tzinfo=timezone.utc)
    expected = datetime(2024, 1, 1, 0, 5, tzinfo=timezone.utc)
    assert next_month_start(current) == expected


def test_next_month_start_keeps_local_timezone() -> None:
    current = datetime(2025, 3, 20, 23, 0, tzinfo=SAO_PAULO)
    target = next_month_start(current, at=time(0, 0))
    assert target == datetime(2025, 4, 1, 0, 0, tzinfo=SAO_PAULO)
    assert target.tzinfo is SAO_PAULO


def test_next_run_after_fires_later_on_the_first() -> None:
    just_after_midnight = datetime(2025, 4, 1, 0, 1, tzinfo=SAO_PAULO)
    assert next_run_after(just_after_midnight) == datetime(2025, 4, 1, 0, 5, tzinfo=SAO_PAULO)


def test_next_run_after_skips_to_next_month_once_slot_passed() -> None:
    after_slot = datetime(2025, 4, 1, 0, 5, tzinfo=SAO_PAULO)
    assert next_run_after(after_slot) == datetime(2025, 5, 1, 0, 5, tzinfo=SAO_PAULO)


def test_scheduler_executes_callback_once() -> None:
    start = datetime(2024, 3, 18, 12, 0, tzinfo=timezone.utc)
    delays: list[float] = []
    scheduled: list[datetime] = []
    executed = 0

    async def run() -> None:
        nonlocal executed

        async def fake_sleep(seconds: float) -> None:
            delays.append(seconds)

        async def callback() -> None:
            nonlocal executed
            executed += 1

        await run_monthly_scheduler(
            callback,
            now_fn=lambda: start,
            sleep_fn=fake_sleep,
            on_schedule=scheduled.append,
            iterations=1,
        )

    asyncio.run(run())

    target = datetime(2024, 4, 1, 0, 5, tzinfo=timezone.utc)
    assert executed == 1
    assert scheduled == [target]
    assert delays == [(target - start).total_seconds()]
