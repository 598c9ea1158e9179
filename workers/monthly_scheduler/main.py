"""Worker that triggers the reserve fund auto-transfer on the 1st of each month."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from treasury.core.config import Settings, get_settings
from treasury.core.logging import configure_logging
from treasury.obs import AUTO_TRANSFER_RUN_COUNTER, report_next_run
from treasury.services.cron_client import AutoTransferClient, AutoTransferTriggerError
from treasury.workers.observability import configure_worker, current_traceparent, worker_span
from workers.monthly_scheduler.scheduler import run_monthly_scheduler

LOGGER = logging.getLogger(__name__)


async def run_once(client: AutoTransferClient, *, timeout: float | None = None) -> bool:
    """Call the auto-transfer endpoint once; return whether the call succeeded."""

    with worker_span("reserve_fund.auto_transfer.trigger"):
        headers = {}
        traceparent = current_traceparent()
        if traceparent:
            headers["traceparent"] = traceparent
        try:
            outcome = await asyncio.to_thread(client.trigger, headers=headers, timeout=timeout)
        except AutoTransferTriggerError as exc:
            AUTO_TRANSFER_RUN_COUNTER.labels(outcome="failure").inc()
            LOGGER.error("auto transfer trigger failed", extra={"error": str(exc)})
            return False

    AUTO_TRANSFER_RUN_COUNTER.labels(outcome="success").inc()
    LOGGER.info(
        "auto transfer triggered",
        extra={"transferred": outcome.succeeded, "refused": outcome.refused},
    )
    return True


async def run(settings: Settings | None = None, *, iterations: int | None = None) -> None:
    settings = settings or get_settings()
    zone = ZoneInfo(settings.timezone)
    configure_worker("reserve-fund-scheduler")
    if not settings.cron_secret:
        LOGGER.warning("CRON_SECRET is not set; the endpoint will be called without credentials")

    def on_schedule(target: datetime) -> None:
        LOGGER.info("next auto transfer scheduled", extra={"run_at": target.isoformat()})
        if settings.enable_metrics:
            report_next_run(target.timestamp())

    with AutoTransferClient(settings.api_base_url, secret=settings.cron_secret) as client:

        async def trigger() -> None:
            await run_once(client, timeout=settings.scheduler_timeout_seconds)

        await run_monthly_scheduler(
            trigger,
            now_fn=lambda: datetime.now(zone),
            on_schedule=on_schedule,
            iterations=iterations,
        )


def main() -> None:
    configure_logging()
    try:
        asyncio.run(run())
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown
        LOGGER.info("reserve fund scheduler stopped")


if __name__ == "__main__":
    main()
