from __future__ import annotations

from treasury.services.view_cache import DASHBOARD_VIEW, RESERVE_FUND_VIEW, ViewCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_values_are_reused_until_ttl_expires() -> None:
    clock = FakeClock()
    cache = ViewCache(ttl_seconds=30, clock=clock)
    calls: list[int] = []

    def compute() -> int:
        calls.append(1)
        return len(calls)

    assert cache.get_or_compute("igreja-a", DASHBOARD_VIEW, "k", compute) == 1
    assert cache.get_or_compute("igreja-a", DASHBOARD_VIEW, "k", compute) == 1

    clock.now += 31
    assert cache.get_or_compute("igreja-a", DASHBOARD_VIEW, "k", compute) == 2


def test_invalidate_only_touches_named_views_of_one_tenant() -> None:
    cache = ViewCache(ttl_seconds=60)
    cache.get_or_compute("igreja-a", DASHBOARD_VIEW, "k", lambda: "a-dashboard")
    cache.get_or_compute("igreja-a", RESERVE_FUND_VIEW, "summary", lambda: "a-fund")
    cache.get_or_compute("igreja-b", DASHBOARD_VIEW, "k", lambda: "b-dashboard")

    cache.invalidate("igreja-a", DASHBOARD_VIEW)

    assert len(cache) == 2
    assert cache.get_or_compute("igreja-a", DASHBOARD_VIEW, "k", lambda: "fresh") == "fresh"
    assert cache.get_or_compute("igreja-a", RESERVE_FUND_VIEW, "summary", lambda: "x") == "a-fund"
    assert cache.get_or_compute("igreja-b", DASHBOARD_VIEW, "k", lambda: "x") == "b-dashboard"


def test_zero_ttl_disables_caching() -> None:
    cache = ViewCache(ttl_seconds=0)
    values = iter(["first", "second"])

    assert cache.get_or_compute("igreja-a", DASHBOARD_VIEW, "k", lambda: next(values)) == "first"
    assert cache.get_or_compute("igreja-a", DASHBOARD_VIEW, "k", lambda: next(values)) == "second"
    assert len(cache) == 0
