"""Per-tenant cache for rendered dashboard and summary views."""
from __future__ import annotations

import time
from collections.abc import Callable
from threading import Lock
from typing import Any, TypeVar

from treasury.core.config import get_settings

T = TypeVar("T")

RESERVE_FUND_VIEW = "reserve_fund"
DASHBOARD_VIEW = "dashboard"
REVENUES_VIEW = "revenues"
EXPENSES_VIEW = "expenses"
REPORTS_VIEW = "reports"


class ViewCache:
    """Thread-safe TTL cache keyed by ``(tenant_id, view, key)``."""

    def __init__(
        self,
        *,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, str, str], tuple[float, Any]] = {}
        self._lock = Lock()

    @property
    def ttl_seconds(self) -> float:
        if self._ttl is not None:
            return self._ttl
        return get_settings().view_cache_ttl_seconds

    def get_or_compute(self, tenant_id: str, view: str, key: str, compute: Callable[[], T]) -> T:
        cache_key = (tenant_id, view, key)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(cache_key)
            if entry is not None and entry[0] > now:
                return entry[1]

        value = compute()
        if self.ttl_seconds > 0:
            with self._lock:
                self._entries[cache_key] = (now + self.ttl_seconds, value)
        return value

    def invalidate(self, tenant_id: str, *views: str) -> None:
        """Drop every cached entry of ``views`` for the tenant."""

        targets = set(views)
        with self._lock:
            for cache_key in [k for k in self._entries if k[0] == tenant_id and k[1] in targets]:
                del self._entries[cache_key]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


view_cache = ViewCache()


__all__ = [
    "DASHBOARD_VIEW",
    "EXPENSES_VIEW",
    "REPORTS_VIEW",
    "RESERVE_FUND_VIEW",
    "REVENUES_VIEW",
    "ViewCache",
    "view_cache",
]
