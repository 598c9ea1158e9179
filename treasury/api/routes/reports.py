"""Dashboard figures and financial reports."""
from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from treasury.api.deps import get_report_service, get_tenant_context
from treasury.api.errors import http_error
from treasury.core.tenancy import TenantContext
from treasury.schemas import (
    AnnualReportRead,
    CashFlowRead,
    CategoryReportRead,
    DashboardRead,
    MonthlyReportRead,
    ReportQuery,
    RevenueVsExpenseRead,
)
from treasury.services.errors import TreasuryError
from treasury.services.reporting import (
    MAX_REPORT_YEAR,
    MIN_REPORT_YEAR,
    ReportFilter,
    ReportService,
    custom_period,
)

router = APIRouter()


def _filters(query: ReportQuery) -> ReportFilter:
    return ReportFilter(**query.model_dump())


@router.get("/dashboard", response_model=DashboardRead)
def dashboard(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    context: TenantContext = Depends(get_tenant_context),
    service: ReportService = Depends(get_report_service),
) -> DashboardRead:
    """Operating balance and period totals; defaults to the current month."""

    try:
        period = None
        if start_date and end_date:
            period = custom_period(start_date, end_date)
        stats = service.dashboard(context, period)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return DashboardRead.model_validate(stats)


@router.get("/reports/revenue-vs-expense", response_model=RevenueVsExpenseRead)
def revenue_vs_expense(
    query: Annotated[ReportQuery, Query()],
    context: TenantContext = Depends(get_tenant_context),
    service: ReportService = Depends(get_report_service),
) -> RevenueVsExpenseRead:
    try:
        report = service.revenue_vs_expense(context, _filters(query))
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return RevenueVsExpenseRead.model_validate(report)


@router.get("/reports/categories", response_model=CategoryReportRead)
def category_report(
    query: Annotated[ReportQuery, Query()],
    context: TenantContext = Depends(get_tenant_context),
    service: ReportService = Depends(get_report_service),
) -> CategoryReportRead:
    try:
        report = service.categories(context, _filters(query))
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return CategoryReportRead.model_validate(report)


@router.get("/reports/cash-flow", response_model=CashFlowRead)
def cash_flow(
    query: Annotated[ReportQuery, Query()],
    context: TenantContext = Depends(get_tenant_context),
    service: ReportService = Depends(get_report_service),
) -> CashFlowRead:
    try:
        report = service.cash_flow(context, _filters(query))
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return CashFlowRead.model_validate(report)


@router.get("/reports/monthly/{year}/{month}", response_model=MonthlyReportRead)
def monthly_report(
    year: int = Path(ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR),
    month: int = Path(ge=1, le=12),
    context: TenantContext = Depends(get_tenant_context),
    service: ReportService = Depends(get_report_service),
) -> MonthlyReportRead:
    try:
        report = service.monthly(context, month=month, year=year)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return MonthlyReportRead.model_validate(report)


@router.get("/reports/annual/{year}", response_model=AnnualReportRead)
def annual_report(
    year: int = Path(ge=MIN_REPORT_YEAR, le=MAX_REPORT_YEAR),
    context: TenantContext = Depends(get_tenant_context),
    service: ReportService = Depends(get_report_service),
) -> AnnualReportRead:
    try:
        report = service.annual(context, year=year)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return AnnualReportRead.model_validate(report)


__all__ = ["router"]
