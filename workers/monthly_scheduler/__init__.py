"""Monthly reserve fund auto-transfer scheduler."""

from .scheduler import next_month_start, next_run_after, run_monthly_scheduler

__all__ = ["next_month_start", "next_run_after", "run_monthly_scheduler"]
