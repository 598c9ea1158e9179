"""Schemas for dashboard and report responses."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _FromAttributes(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class PeriodRead(_FromAttributes):
    start: date
    end: date


class ReportQuery(BaseModel):
    """Query parameters shared by the filtered reports."""

    period: Literal["month", "quarter", "year", "custom"] | None = None
    month: int | None = Field(default=None, ge=1, le=12)
    quarter: int | None = Field(default=None, ge=1, le=4)
    year: int | None = Field(default=None, ge=2020, le=2100)
    start_date: date | None = None
    end_date: date | None = None
    category_id: str | None = None


class DashboardRead(_FromAttributes):
    available_balance: Decimal
    period: PeriodRead
    period_revenue: Decimal
    period_expense: Decimal
    period_balance: Decimal


class MonthTotalsRead(_FromAttributes):
    month: str
    revenue: Decimal
    expense: Decimal
    balance: Decimal


class RevenueVsExpenseRead(_FromAttributes):
    period: PeriodRead
    total_revenue: Decimal
    total_expense: Decimal
    balance: Decimal
    monthly: list[MonthTotalsRead]


class CategoryTotalRead(_FromAttributes):
    id: str
    name: str
    color: str
    total: Decimal
    type: Literal["revenue", "expense"]


class CategoryReportRead(_FromAttributes):
    period: PeriodRead
    revenue_categories: list[CategoryTotalRead]
    expense_categories: list[CategoryTotalRead]


class DailyBalanceRead(_FromAttributes):
    date: date
    revenue: Decimal
    expense: Decimal
    balance: Decimal


class CashFlowRead(_FromAttributes):
    period: PeriodRead
    starting_balance: Decimal
    ending_balance: Decimal
    daily: list[DailyBalanceRead]


class VariationRead(_FromAttributes):
    amount: Decimal
    percent: Decimal


class ReportTransactionRead(_FromAttributes):
    id: str
    date: date
    description: str | None
    category: str | None
    type: Literal["revenue", "expense"]
    amount: Decimal


class MonthlyReportRead(_FromAttributes):
    month: int
    year: int
    month_name: str
    total_revenue: Decimal
    total_expense: Decimal
    balance: Decimal
    variation: VariationRead
    transactions: list[ReportTransactionRead]


class AnnualReportRead(_FromAttributes):
    year: int
    total_revenue: Decimal
    total_expense: Decimal
    balance: Decimal
    variation: VariationRead
    monthly: list[MonthTotalsRead]


__all__ = [
    "AnnualReportRead",
    "CashFlowRead",
    "CategoryReportRead",
    "DashboardRead",
    "MonthlyReportRead",
    "ReportQuery",
    "RevenueVsExpenseRead",
]
