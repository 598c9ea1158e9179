from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.orm import Session

from treasury.models import ExpenseCategory, RevenueCategory
from treasury.services.errors import ValidationError
from treasury.services.ledger import Period
from treasury.services.reporting import ReportFilter, ReportService, Variation, resolve_date_range
from treasury.services.reserve_fund import ReserveFundService

TODAY = date(2025, 3, 10)


def _reports(session: Session, cache) -> ReportService:
    return ReportService(session, cache=cache, today_fn=lambda: TODAY)


@pytest.mark.parametrize(
    ("filters", "expected"),
    [
        (ReportFilter(period="month", month=2, year=2024), Period(date(2024, 2, 1), date(2024, 2, 29))),
        (ReportFilter(period="quarter", quarter=4, year=2025), Period(date(2025, 10, 1), date(2025, 12, 31))),
        (ReportFilter(period="year", year=2023), Period(date(2023, 1, 1), date(2023, 12, 31))),
        (
            ReportFilter(period="custom", start_date=date(2025, 1, 15), end_date=date(2025, 2, 3)),
            Period(date(2025, 1, 15), date(2025, 2, 3)),
        ),
        (ReportFilter(), Period(date(2025, 3, 1), date(2025, 3, 31))),
        (ReportFilter(period="month", year=2025), Period(date(2025, 3, 1), date(2025, 3, 31))),
    ],
)
def test_resolve_date_range(filters: ReportFilter, expected: Period) -> None:
    assert resolve_date_range(filters, TODAY) == expected


def test_resolve_date_range_rejects_reversed_custom_range() -> None:
    with pytest.raises(ValidationError):
        resolve_date_range(ReportFilter(start_date=date(2025, 3, 2), end_date=date(2025, 3, 1)), TODAY)


def test_custom_range_is_capped_at_a_leap_year() -> None:
    leap_year = ReportFilter(start_date=date(2024, 1, 1), end_date=date(2024, 12, 31))
    assert resolve_date_range(leap_year, TODAY) == Period(date(2024, 1, 1), date(2024, 12, 31))

    with pytest.raises(ValidationError, match="366 dias"):
        resolve_date_range(ReportFilter(start_date=date(2024, 1, 1), end_date=date(2025, 1, 1)), TODAY)
    with pytest.raises(ValidationError):
        resolve_date_range(ReportFilter(start_date=date(2000, 1, 1), end_date=date(9999, 12, 31)), TODAY)


def test_variation_between_periods() -> None:
    assert Variation.between(Decimal("150"), Decimal("100")) == Variation(Decimal("50"), Decimal("50.00"))
    assert Variation.between(Decimal("-50"), Decimal("-100")).percent == Decimal("50.00")
    assert Variation.between(Decimal("80"), Decimal("0")).percent == Decimal("0.00")


@pytest.fixture()
def ledger(db_session: Session, tenant_context, cache, add_revenue, add_expense) -> None:
    tithes = RevenueCategory(tenant_id="igreja-demo", name="Dízimos", color="#10b981")
    offerings = RevenueCategory(tenant_id="igreja-demo", name="Ofertas", color="#3b82f6")
    utilities = ExpenseCategory(tenant_id="igreja-demo", name="Contas", color="#ef4444")
    unused = ExpenseCategory(tenant_id="igreja-demo", name="Eventos", color="#a855f7")
    db_session.add_all([tithes, offerings, utilities, unused])
    db_session.commit()

    add_revenue("800.00", on=date(2025, 2, 9), category_id=tithes.id)
    add_expense("300.00", on=date(2025, 2, 12), category_id=utilities.id)
    add_revenue("1000.00", on=date(2025, 3, 2), category_id=tithes.id)
    add_revenue("200.00", on=date(2025, 3, 2), category_id=offerings.id)
    add_expense("150.00", on=date(2025, 3, 4), category_id=utilities.id)

    service = ReserveFundService(db_session, cache=cache, today_fn=lambda: date(2025, 3, 5))
    service.deposit(tenant_context, Decimal("500.00"))
    service.withdraw(tenant_context, Decimal("100.00"))


def test_reserve_movements_never_count_as_income_or_spending(db_session: Session, tenant_context, cache, ledger) -> None:
    report = _reports(db_session, cache).revenue_vs_expense(
        tenant_context, ReportFilter(period="year", year=2025)
    )

    assert report.total_revenue == Decimal("2000.00")
    assert report.total_expense == Decimal("450.00")
    assert [(item.month, item.revenue, item.expense) for item in report.monthly] == [
        ("2025-02", Decimal("800.00"), Decimal("300.00")),
        ("2025-03", Decimal("1200.00"), Decimal("150.00")),
    ]


def test_dashboard_keeps_reserve_movements_in_available_balance(
    db_session: Session, tenant_context, cache, ledger
) -> None:
    stats = _reports(db_session, cache).dashboard(tenant_context)

    assert stats.period == Period(date(2025, 3, 1), TODAY)
    assert stats.period_revenue == Decimal("1200.00")
    assert stats.period_expense == Decimal("150.00")
    assert stats.period_balance == Decimal("1050.00")
    # 2000 - 450 operating, minus the 500 deposit, plus the 100 withdrawal.
    assert stats.available_balance == Decimal("1150.00")


def test_category_report_skips_reserved_and_empty_categories(
    db_session: Session, tenant_context, cache, ledger
) -> None:
    report = _reports(db_session, cache).categories(tenant_context, ReportFilter())

    assert [(item.name, item.total) for item in report.revenue_categories] == [
        ("Dízimos", Decimal("1000.00")),
        ("Ofertas", Decimal("200.00")),
    ]
    assert [(item.name, item.total, item.type) for item in report.expense_categories] == [
        ("Contas", Decimal("150.00"), "expense"),
    ]


def test_revenue_vs_expense_filters_by_category(db_session: Session, tenant_context, cache, ledger) -> None:
    offerings = db_session.query(RevenueCategory).filter_by(name="Ofertas").one()

    report = _reports(db_session, cache).revenue_vs_expense(
        tenant_context, ReportFilter(period="month", month=3, year=2025, category_id=offerings.id)
    )

    assert report.total_revenue == Decimal("200.00")
    assert report.total_expense == Decimal("0.00")


def test_cash_flow_runs_a_daily_balance(db_session: Session, tenant_context, cache, ledger) -> None:
    report = _reports(db_session, cache).cash_flow(
        tenant_context,
        ReportFilter(period="custom", start_date=date(2025, 3, 1), end_date=date(2025, 3, 5)),
    )

    assert [item.balance for item in report.daily] == [
        Decimal("0.00"),
        Decimal("1200.00"),
        Decimal("1200.00"),
        Decimal("1050.00"),
        Decimal("1050.00"),
    ]
    assert report.starting_balance == Decimal("0.00")
    assert report.ending_balance == Decimal("1050.00")


def test_monthly_report_compares_with_previous_month(db_session: Session, tenant_context, cache, ledger) -> None:
    report = _reports(db_session, cache).monthly(tenant_context, month=3, year=2025)

    assert report.month_name == "Março"
    assert report.balance == Decimal("1050.00")
    assert report.variation.amount == Decimal("550.00")
    assert report.variation.percent == Decimal("110.00")
    assert [item.date for item in report.transactions] == sorted(
        (item.date for item in report.transactions), reverse=True
    )
    assert len(report.transactions) == 3
    assert all(item.category != "Fundo de Reserva" for item in report.transactions)


def test_monthly_report_for_january_looks_at_december(db_session: Session, tenant_context, cache, add_revenue) -> None:
    add_revenue("100.00", on=date(2024, 12, 24))
    add_revenue("150.00", on=date(2025, 1, 5))

    report = _reports(db_session, cache).monthly(tenant_context, month=1, year=2025)

    assert report.month_name == "Janeiro"
    assert report.variation.amount == Decimal("50.00")
    assert report.variation.percent == Decimal("50.00")


def test_annual_report_lists_every_month(db_session: Session, tenant_context, cache, ledger) -> None:
    report = _reports(db_session, cache).annual(tenant_context, year=2025)

    assert len(report.monthly) == 12
    assert report.monthly[0].month == "Janeiro"
    assert report.monthly[0].revenue == Decimal("0.00")
    assert report.monthly[2].month == "Março"
    assert report.monthly[2].balance == Decimal("1050.00")
    assert report.balance == Decimal("1550.00")
    assert report.variation.percent == Decimal("0.00")


@pytest.mark.parametrize("year", [1, 2019, 2101, 9999])
def test_reports_reject_years_outside_the_supported_range(db_session: Session, tenant_context, cache, year: int) -> None:
    reports = _reports(db_session, cache)

    with pytest.raises(ValidationError, match="Ano deve estar entre 2020 e 2100"):
        reports.annual(tenant_context, year=year)
    with pytest.raises(ValidationError, match="Ano deve estar entre 2020 e 2100"):
        reports.monthly(tenant_context, month=1, year=year)
