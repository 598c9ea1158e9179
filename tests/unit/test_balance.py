from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from treasury.models import Tenant
from treasury.services.balance import available_balance


def test_available_balance_is_zero_without_entries(db_session: Session) -> None:
    assert available_balance(db_session, "igreja-demo") == Decimal("0.00")


def test_available_balance_counts_every_entry(db_session: Session, add_revenue, add_expense) -> None:
    add_revenue("1000.00", on=date(2025, 1, 5))
    add_revenue("250.50", on=date(2025, 3, 2))
    add_expense("400.00", on=date(2025, 2, 10))
    # Reserve fund mirrors move real cash, so they count here.
    add_expense("100.00", description="Depósito no fundo de reserva", is_reserve_fund=True)

    assert available_balance(db_session, "igreja-demo") == Decimal("750.50")


def test_available_balance_is_scoped_to_tenant(db_session: Session, add_revenue, add_expense) -> None:
    db_session.add(Tenant(id="outra-igreja", name="Outra Igreja"))
    db_session.commit()
    add_revenue("500.00")
    add_revenue("900.00", tenant_id="outra-igreja")
    add_expense("50.00", tenant_id="outra-igreja")

    assert available_balance(db_session, "igreja-demo") == Decimal("500.00")
    assert available_balance(db_session, "outra-igreja") == Decimal("850.00")


def test_available_balance_can_be_negative(db_session: Session, add_revenue, add_expense) -> None:
    add_revenue("100.00")
    add_expense("180.25")

    assert available_balance(db_session, "igreja-demo") == Decimal("-80.25")
