from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from treasury.models import ExpenseCategory, RevenueCategory
from treasury.services.categories import (
    CategoryPayload,
    CategoryService,
    ensure_default_categories,
    get_reserve_fund_category,
)
from treasury.services.errors import NotFoundError, ValidationError


def test_default_revenue_categories_are_created_once(db_session: Session) -> None:
    ensure_default_categories(db_session, tenant_id="igreja-demo")
    ensure_default_categories(db_session, tenant_id="igreja-demo")

    names = db_session.scalars(select(RevenueCategory.name).order_by(RevenueCategory.name)).all()
    assert names == ["Dízimos", "Ofertas"]


def test_reserve_fund_category_is_shared_per_namespace(db_session: Session) -> None:
    expense_category = get_reserve_fund_category(db_session, ExpenseCategory, tenant_id="igreja-demo")
    again = get_reserve_fund_category(db_session, ExpenseCategory, tenant_id="igreja-demo")
    revenue_category = get_reserve_fund_category(db_session, RevenueCategory, tenant_id="igreja-demo")
    db_session.commit()

    assert expense_category.id == again.id
    assert expense_category.is_reserve_fund and revenue_category.is_reserve_fund
    assert db_session.scalar(select(func.count()).select_from(ExpenseCategory)) == 1


def test_listing_revenue_categories_seeds_defaults(db_session: Session, tenant_context) -> None:
    categories = CategoryService(db_session, "revenue").list(tenant_context)

    assert [item.name for item in categories] == ["Dízimos", "Ofertas"]


def test_create_update_and_delete(db_session: Session, tenant_context) -> None:
    service = CategoryService(db_session, "expense")

    created = service.create(tenant_context, CategoryPayload(name="  Aluguel ", color="#112233"))
    assert created.name == "Aluguel"

    updated = service.update(
        tenant_context, created.id, CategoryPayload(name="Aluguel do salão", color="#445566", description="Mensal")
    )
    assert updated.name == "Aluguel do salão"
    assert updated.description == "Mensal"

    category_id = created.id
    service.delete(tenant_context, category_id)
    with pytest.raises(NotFoundError):
        service.get(tenant_context, category_id)


def test_duplicate_names_are_rejected(db_session: Session, tenant_context) -> None:
    service = CategoryService(db_session, "expense")
    service.create(tenant_context, CategoryPayload(name="Água", color="#0ea5e9"))

    with pytest.raises(ValidationError, match="Já existe"):
        service.create(tenant_context, CategoryPayload(name="Água", color="#0ea5e9"))


def test_reserve_fund_category_is_locked(db_session: Session, tenant_context) -> None:
    category = get_reserve_fund_category(db_session, ExpenseCategory, tenant_id="igreja-demo")
    db_session.commit()
    service = CategoryService(db_session, "expense")

    with pytest.raises(ValidationError):
        service.update(tenant_context, category.id, CategoryPayload(name="Poupança", color="#f59e0b"))
    with pytest.raises(ValidationError):
        service.delete(tenant_context, category.id)

    recolored = service.update(
        tenant_context, category.id, CategoryPayload(name="Fundo de Reserva", color="#000000")
    )
    assert recolored.color == "#000000"
