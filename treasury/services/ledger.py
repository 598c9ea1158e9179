"""Operating ledger: manual revenues and expenses."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from treasury.core.clock import format_br_date
from treasury.core.money import parse_amount
from treasury.core.tenancy import TenantContext
from treasury.models import Expense, ExpenseCategory, PaymentMethod, Revenue, RevenueCategory
from treasury.services.categories import ensure_default_categories
from treasury.services.errors import (
    NotFoundError,
    PersistenceError,
    ProtectedEntryError,
    ValidationError,
)
from treasury.services.reserve_filter import (
    category_name_of,
    filter_reserve_fund_expenses,
    filter_reserve_fund_revenues,
    is_reserve_fund_movement,
)
from treasury.services.view_cache import (
    DASHBOARD_VIEW,
    EXPENSES_VIEW,
    REPORTS_VIEW,
    RESERVE_FUND_VIEW,
    REVENUES_VIEW,
    ViewCache,
    view_cache,
)

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class LedgerEntryPayload:
    """Input data for a manual revenue or expense."""

    amount: Decimal
    transaction_date: date
    payment_method: PaymentMethod = PaymentMethod.CASH
    category_id: str | None = None
    description: str | None = None
    receipt_url: str | None = None


@dataclass(slots=True, frozen=True)
class Period:
    start: date
    end: date


class LedgerService:
    """Creates, lists and deletes operating ledger entries for a tenant."""

    def __init__(self, session: Session, *, cache: ViewCache | None = None) -> None:
        self._session = session
        self._cache = cache or view_cache

    def create_revenue(self, context: TenantContext, payload: LedgerEntryPayload) -> Revenue:
        ensure_default_categories(self._session, tenant_id=context.tenant_id)
        amount = self._validated_amount(payload.amount)
        description = payload.description or None
        payment_method = payload.payment_method

        if payload.category_id:
            category = self._resolve_category(RevenueCategory, context, payload.category_id)
            category_lower = category.name.lower()
            if category_lower == "ofertas":
                description = f"Oferta do dia {format_br_date(payload.transaction_date)}"
                payment_method = PaymentMethod.CASH
            elif category_lower in {"dízimos", "dizimos"}:
                description = description or "Dízimo"
                payment_method = PaymentMethod.CASH

        revenue = Revenue(
            tenant_id=context.tenant_id,
            category_id=payload.category_id or None,
            amount=amount,
            description=description,
            payment_method=payment_method,
            transaction_date=payload.transaction_date,
            created_by=context.actor,
        )
        self._save(revenue)
        self._cache.invalidate(
            context.tenant_id, RESERVE_FUND_VIEW, DASHBOARD_VIEW, REVENUES_VIEW, REPORTS_VIEW
        )
        LOGGER.info(
            "revenue recorded",
            extra={"tenant_id": context.tenant_id, "revenue_id": revenue.id, "amount": str(amount)},
        )
        return revenue

    def create_expense(self, context: TenantContext, payload: LedgerEntryPayload) -> Expense:
        amount = self._validated_amount(payload.amount)
        if payload.category_id:
            self._resolve_category(ExpenseCategory, context, payload.category_id)

        expense = Expense(
            tenant_id=context.tenant_id,
            category_id=payload.category_id or None,
            amount=amount,
            description=payload.description or None,
            payment_method=payload.payment_method,
            transaction_date=payload.transaction_date,
            receipt_url=payload.receipt_url,
            created_by=context.actor,
        )
        self._save(expense)
        self._cache.invalidate(
            context.tenant_id, RESERVE_FUND_VIEW, DASHBOARD_VIEW, EXPENSES_VIEW, REPORTS_VIEW
        )
        LOGGER.info(
            "expense recorded",
            extra={"tenant_id": context.tenant_id, "expense_id": expense.id, "amount": str(amount)},
        )
        return expense

    def list_revenues(
        self,
        context: TenantContext,
        *,
        period: Period | None = None,
        exclude_reserve_fund: bool = False,
    ) -> list[Revenue]:
        rows = self._list(Revenue, context, period)
        return filter_reserve_fund_revenues(rows) if exclude_reserve_fund else rows

    def list_expenses(
        self,
        context: TenantContext,
        *,
        period: Period | None = None,
        exclude_reserve_fund: bool = False,
    ) -> list[Expense]:
        rows = self._list(Expense, context, period)
        return filter_reserve_fund_expenses(rows) if exclude_reserve_fund else rows

    def delete_revenue(self, context: TenantContext, revenue_id: str) -> None:
        self._delete(Revenue, context, revenue_id)
        self._cache.invalidate(
            context.tenant_id, RESERVE_FUND_VIEW, DASHBOARD_VIEW, REVENUES_VIEW, REPORTS_VIEW
        )

    def delete_expense(self, context: TenantContext, expense_id: str) -> None:
        self._delete(Expense, context, expense_id)
        self._cache.invalidate(
            context.tenant_id, RESERVE_FUND_VIEW, DASHBOARD_VIEW, EXPENSES_VIEW, REPORTS_VIEW
        )

    @staticmethod
    def _validated_amount(amount: Decimal) -> Decimal:
        try:
            return parse_amount(amount)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    def _resolve_category(
        self,
        model: type[RevenueCategory] | type[ExpenseCategory],
        context: TenantContext,
        category_id: str,
    ) -> RevenueCategory | ExpenseCategory:
        category = self._session.get(model, category_id)
        if category is None or category.tenant_id != context.tenant_id:
            raise ValidationError("Categoria inválida")
        return category

    def _list(
        self,
        model: type[Revenue] | type[Expense],
        context: TenantContext,
        period: Period | None,
    ) -> list:
        statement = (
            select(model)
            .options(selectinload(model.category))
            .where(model.tenant_id == context.tenant_id)
            .order_by(model.transaction_date.desc(), model.created_at.desc())
        )
        if period is not None:
            statement = statement.where(
                model.transaction_date >= period.start,
                model.transaction_date <= period.end,
            )
        try:
            return list(self._session.scalars(statement).all())
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def _delete(
        self,
        model: type[Revenue] | type[Expense],
        context: TenantContext,
        entry_id: str,
    ) -> None:
        entry = self._session.get(model, entry_id)
        if entry is None or entry.tenant_id != context.tenant_id:
            raise NotFoundError("Lançamento não encontrado")
        if is_reserve_fund_movement(
            category_name_of(entry.category), entry.description, flagged=entry.is_reserve_fund
        ):
            raise ProtectedEntryError(
                "Lançamentos do fundo de reserva não podem ser excluídos; registre uma movimentação inversa"
            )
        self._session.delete(entry)
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistenceError(str(exc)) from exc

    def _save(self, entry: Revenue | Expense) -> None:
        self._session.add(entry)
        try:
            self._session.commit()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistenceError(str(exc)) from exc
        self._session.refresh(entry)


__all__ = ["LedgerEntryPayload", "LedgerService", "Period"]
