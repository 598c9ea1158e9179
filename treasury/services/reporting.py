"""Financial reports and dashboard figures.

Every aggregation runs the operating ledger through the reserve fund filter
first, so money parked in or pulled from the fund never shows up as income
or spending.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Literal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from treasury.core.clock import TodayProvider, first_day_of_month, last_day_of_month, local_today
from treasury.core.config import Settings, get_settings
from treasury.core.money import to_amount
from treasury.core.tenancy import TenantContext
from treasury.models import Expense, ExpenseCategory, Revenue, RevenueCategory
from treasury.services.balance import available_balance
from treasury.services.errors import PersistenceError, ValidationError
from treasury.services.ledger import Period
from treasury.services.reserve_filter import (
    category_name_of,
    filter_reserve_fund_expenses,
    filter_reserve_fund_revenues,
)
from treasury.services.view_cache import DASHBOARD_VIEW, ViewCache, view_cache

LOGGER = logging.getLogger(__name__)

ZERO = Decimal("0.00")
MIN_REPORT_YEAR = 2020
MAX_REPORT_YEAR = 2100
MAX_RANGE_DAYS = 366

MONTH_NAMES = (
    "Janeiro",
    "Fevereiro",
    "Março",
    "Abril",
    "Maio",
    "Junho",
    "Julho",
    "Agosto",
    "Setembro",
    "Outubro",
    "Novembro",
    "Dezembro",
)

ReportPeriod = Literal["month", "quarter", "year", "custom"]


@dataclass(slots=True, frozen=True)
class ReportFilter:
    period: ReportPeriod | None = None
    month: int | None = None
    quarter: int | None = None
    year: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    category_id: str | None = None


@dataclass(slots=True, frozen=True)
class MonthTotals:
    month: str
    revenue: Decimal
    expense: Decimal

    @property
    def balance(self) -> Decimal:
        return self.revenue - self.expense


@dataclass(slots=True, frozen=True)
class RevenueVsExpenseReport:
    period: Period
    total_revenue: Decimal
    total_expense: Decimal
    monthly: list[MonthTotals]

    @property
    def balance(self) -> Decimal:
        return self.total_revenue - self.total_expense


@dataclass(slots=True, frozen=True)
class CategoryTotal:
    id: str
    name: str
    color: str
    total: Decimal
    type: Literal["revenue", "expense"]


@dataclass(slots=True, frozen=True)
class CategoryReport:
    period: Period
    revenue_categories: list[CategoryTotal]
    expense_categories: list[CategoryTotal]


@dataclass(slots=True, frozen=True)
class DailyBalance:
    date: date
    revenue: Decimal
    expense: Decimal
    balance: Decimal


@dataclass(slots=True, frozen=True)
class CashFlowReport:
    period: Period
    daily: list[DailyBalance]

    @property
    def starting_balance(self) -> Decimal:
        return self.daily[0].balance if self.daily else ZERO

    @property
    def ending_balance(self) -> Decimal:
        return self.daily[-1].balance if self.daily else ZERO


@dataclass(slots=True, frozen=True)
class ReportTransaction:
    id: str
    date: date
    description: str | None
    category: str | None
    type: Literal["revenue", "expense"]
    amount: Decimal


@dataclass(slots=True, frozen=True)
class Variation:
    """Balance change against the previous period."""

    amount: Decimal
    percent: Decimal

    @classmethod
    def between(cls, current: Decimal, previous: Decimal) -> "Variation":
        amount = current - previous
        if previous == 0:
            return cls(amount=amount, percent=ZERO)
        percent = (amount / abs(previous) * 100).quantize(Decimal("0.01"))
        return cls(amount=amount, percent=percent)


@dataclass(slots=True, frozen=True)
class MonthlyReport:
    month: int
    year: int
    month_name: str
    total_revenue: Decimal
    total_expense: Decimal
    variation: Variation
    transactions: list[ReportTransaction] = field(default_factory=list)

    @property
    def balance(self) -> Decimal:
        return self.total_revenue - self.total_expense


@dataclass(slots=True, frozen=True)
class AnnualReport:
    year: int
    total_revenue: Decimal
    total_expense: Decimal
    variation: Variation
    monthly: list[MonthTotals]

    @property
    def balance(self) -> Decimal:
        return self.total_revenue - self.total_expense


@dataclass(slots=True, frozen=True)
class DashboardStats:
    available_balance: Decimal
    period: Period
    period_revenue: Decimal
    period_expense: Decimal

    @property
    def period_balance(self) -> Decimal:
        return self.period_revenue - self.period_expense


def custom_period(start: date, end: date) -> Period:
    """Validate an explicit start/end pair, at most a leap year long."""

    if start > end:
        raise ValidationError("A data inicial deve ser anterior à data final")
    if (end - start).days >= MAX_RANGE_DAYS:
        raise ValidationError(f"O período deve ter no máximo {MAX_RANGE_DAYS} dias")
    return Period(start=start, end=end)


def _check_year(year: int) -> None:
    if not MIN_REPORT_YEAR <= year <= MAX_REPORT_YEAR:
        raise ValidationError(f"Ano deve estar entre {MIN_REPORT_YEAR} e {MAX_REPORT_YEAR}")


def resolve_date_range(filters: ReportFilter, today: date) -> Period:
    """Turn a report filter into an inclusive date range.

    Month, quarter and year periods need their numbers set; otherwise an
    explicit start/end pair is used, and the current month is the fallback.
    """

    if filters.period == "month" and filters.month and filters.year:
        return Period(
            start=date(filters.year, filters.month, 1),
            end=last_day_of_month(filters.year, filters.month),
        )
    if filters.period == "quarter" and filters.quarter and filters.year:
        first_month = (filters.quarter - 1) * 3 + 1
        return Period(
            start=date(filters.year, first_month, 1),
            end=last_day_of_month(filters.year, first_month + 2),
        )
    if filters.period == "year" and filters.year:
        return Period(start=date(filters.year, 1, 1), end=date(filters.year, 12, 31))
    if filters.start_date and filters.end_date:
        return custom_period(filters.start_date, filters.end_date)
    return Period(
        start=first_day_of_month(today),
        end=last_day_of_month(today.year, today.month),
    )


def _sum(rows) -> Decimal:
    return sum((to_amount(row.amount) for row in rows), ZERO)


def _group_by_month(revenues, expenses) -> dict[str, list[Decimal]]:
    months: dict[str, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
    for row in revenues:
        months[row.transaction_date.strftime("%Y-%m")][0] += to_amount(row.amount)
    for row in expenses:
        months[row.transaction_date.strftime("%Y-%m")][1] += to_amount(row.amount)
    return months


class ReportService:
    """Builds report views for a tenant."""

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        cache: ViewCache | None = None,
        today_fn: TodayProvider | None = None,
    ) -> None:
        self._session = session
        self._settings = settings or get_settings()
        self._cache = cache or view_cache
        self._today_fn = today_fn or (lambda: local_today(self._settings.timezone))

    def date_range(self, filters: ReportFilter) -> Period:
        return resolve_date_range(filters, self._today_fn())

    def dashboard(self, context: TenantContext, period: Period | None = None) -> DashboardStats:
        """Operating balance plus the period's filtered totals.

        The default period runs from the first day of the current month up to
        today.
        """

        if period is None:
            today = self._today_fn()
            period = Period(start=first_day_of_month(today), end=today)

        def compute() -> DashboardStats:
            revenues, expenses = self._filtered_entries(context, period)
            return DashboardStats(
                available_balance=available_balance(self._session, context.tenant_id),
                period=period,
                period_revenue=_sum(revenues),
                period_expense=_sum(expenses),
            )

        key = f"{period.start.isoformat()}:{period.end.isoformat()}"
        return self._cache.get_or_compute(context.tenant_id, DASHBOARD_VIEW, key, compute)

    def revenue_vs_expense(self, context: TenantContext, filters: ReportFilter) -> RevenueVsExpenseReport:
        period = self.date_range(filters)
        revenues, expenses = self._filtered_entries(context, period, category_id=filters.category_id)
        months = _group_by_month(revenues, expenses)
        return RevenueVsExpenseReport(
            period=period,
            total_revenue=_sum(revenues),
            total_expense=_sum(expenses),
            monthly=[
                MonthTotals(month=key, revenue=values[0], expense=values[1])
                for key, values in sorted(months.items())
            ],
        )

    def categories(self, context: TenantContext, filters: ReportFilter) -> CategoryReport:
        """Per-category totals for the period, omitting empty categories."""

        period = self.date_range(filters)
        revenues, expenses = self._filtered_entries(context, period)
        return CategoryReport(
            period=period,
            revenue_categories=self._category_totals(context, RevenueCategory, revenues, "revenue"),
            expense_categories=self._category_totals(context, ExpenseCategory, expenses, "expense"),
        )

    def cash_flow(self, context: TenantContext, filters: ReportFilter) -> CashFlowReport:
        """Day-by-day movement with a running balance that starts at zero."""

        period = self.date_range(filters)
        revenues, expenses = self._filtered_entries(context, period)

        per_day: dict[date, list[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
        for row in revenues:
            per_day[row.transaction_date][0] += to_amount(row.amount)
        for row in expenses:
            per_day[row.transaction_date][1] += to_amount(row.amount)

        daily: list[DailyBalance] = []
        running = ZERO
        day = period.start
        while day <= period.end:
            revenue, expense = per_day.get(day, (ZERO, ZERO))
            running += revenue - expense
            daily.append(DailyBalance(date=day, revenue=revenue, expense=expense, balance=running))
            day += timedelta(days=1)
        return CashFlowReport(period=period, daily=daily)

    def monthly(self, context: TenantContext, *, month: int, year: int) -> MonthlyReport:
        _check_year(year)
        if not 1 <= month <= 12:
            raise ValidationError("Mês inválido")
        period = Period(start=date(year, month, 1), end=last_day_of_month(year, month))
        previous_year, previous_month = (year - 1, 12) if month == 1 else (year, month - 1)
        previous = Period(
            start=date(previous_year, previous_month, 1),
            end=last_day_of_month(previous_year, previous_month),
        )

        revenues, expenses = self._filtered_entries(context, period)
        prev_revenues, prev_expenses = self._filtered_entries(context, previous)

        transactions = [self._report_transaction(row, "revenue") for row in revenues]
        transactions += [self._report_transaction(row, "expense") for row in expenses]
        transactions.sort(key=lambda item: item.date, reverse=True)

        total_revenue, total_expense = _sum(revenues), _sum(expenses)
        return MonthlyReport(
            month=month,
            year=year,
            month_name=MONTH_NAMES[month - 1],
            total_revenue=total_revenue,
            total_expense=total_expense,
            variation=Variation.between(
                total_revenue - total_expense, _sum(prev_revenues) - _sum(prev_expenses)
            ),
            transactions=transactions,
        )

    def annual(self, context: TenantContext, *, year: int) -> AnnualReport:
        """Year totals with every month present, even the empty ones."""

        _check_year(year)
        revenues, expenses = self._filtered_entries(
            context, Period(start=date(year, 1, 1), end=date(year, 12, 31))
        )
        prev_revenues, prev_expenses = self._filtered_entries(
            context, Period(start=date(year - 1, 1, 1), end=date(year - 1, 12, 31))
        )

        months = _group_by_month(revenues, expenses)
        monthly = []
        for index, name in enumerate(MONTH_NAMES, start=1):
            revenue, expense = months.get(f"{year}-{index:02d}", (ZERO, ZERO))
            monthly.append(MonthTotals(month=name, revenue=revenue, expense=expense))

        total_revenue, total_expense = _sum(revenues), _sum(expenses)
        return AnnualReport(
            year=year,
            total_revenue=total_revenue,
            total_expense=total_expense,
            variation=Variation.between(
                total_revenue - total_expense, _sum(prev_revenues) - _sum(prev_expenses)
            ),
            monthly=monthly,
        )

    def _filtered_entries(
        self,
        context: TenantContext,
        period: Period,
        *,
        category_id: str | None = None,
    ) -> tuple[list[Revenue], list[Expense]]:
        revenues = self._entries(Revenue, context, period, category_id)
        expenses = self._entries(Expense, context, period, category_id)
        return filter_reserve_fund_revenues(revenues), filter_reserve_fund_expenses(expenses)

    def _entries(
        self,
        model: type[Revenue] | type[Expense],
        context: TenantContext,
        period: Period,
        category_id: str | None,
    ) -> list:
        statement = (
            select(model)
            .options(selectinload(model.category))
            .where(
                model.tenant_id == context.tenant_id,
                model.transaction_date >= period.start,
                model.transaction_date <= period.end,
            )
            .order_by(model.transaction_date)
        )
        if category_id:
            statement = statement.where(model.category_id == category_id)
        try:
            return list(self._session.scalars(statement).all())
        except SQLAlchemyError as exc:
            LOGGER.error(
                "report query failed",
                extra={"tenant_id": context.tenant_id, "table": model.__tablename__, "error": str(exc)},
            )
            raise PersistenceError(str(exc)) from exc

    def _category_totals(
        self,
        context: TenantContext,
        model: type[RevenueCategory] | type[ExpenseCategory],
        rows,
        kind: Literal["revenue", "expense"],
    ) -> list[CategoryTotal]:
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for row in rows:
            if row.category_id:
                totals[row.category_id] += to_amount(row.amount)

        categories = self._session.scalars(
            select(model).where(model.tenant_id == context.tenant_id).order_by(model.name)
        ).all()
        return [
            CategoryTotal(
                id=category.id,
                name=category.name,
                color=category.color,
                total=totals[category.id],
                type=kind,
            )
            for category in categories
            if not category.is_reserve_fund and totals.get(category.id, ZERO) > 0
        ]

    @staticmethod
    def _report_transaction(row: Revenue | Expense, kind: Literal["revenue", "expense"]) -> ReportTransaction:
        return ReportTransaction(
            id=row.id,
            date=row.transaction_date,
            description=row.description,
            category=category_name_of(row.category),
            type=kind,
            amount=to_amount(row.amount),
        )


__all__ = [
    "AnnualReport",
    "CashFlowReport",
    "CategoryReport",
    "CategoryTotal",
    "DailyBalance",
    "DashboardStats",
    "MONTH_NAMES",
    "MonthTotals",
    "MonthlyReport",
    "ReportFilter",
    "ReportService",
    "ReportTransaction",
    "RevenueVsExpenseReport",
    "MAX_RANGE_DAYS",
    "MAX_REPORT_YEAR",
    "MIN_REPORT_YEAR",
    "Variation",
    "custom_period",
    "resolve_date_range",
]
