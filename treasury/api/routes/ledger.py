"""Manual revenue and expense endpoints."""
from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from treasury.api.deps import get_db_session, get_tenant_context
from treasury.api.errors import http_error
from treasury.api.security import FINANCE_ROLES, AuthenticatedUser, require_role
from treasury.core.tenancy import TenantContext
from treasury.schemas import ExpenseCreate, ExpenseRead, LedgerEntryCreate, LedgerEntryRead
from treasury.services.errors import TreasuryError, ValidationError
from treasury.services.ledger import LedgerEntryPayload, LedgerService, Period

router = APIRouter()


def _period(start_date: date | None, end_date: date | None) -> Period | None:
    if start_date is None and end_date is None:
        return None
    if start_date is None or end_date is None:
        raise http_error(ValidationError("Informe data inicial e final"))
    if start_date > end_date:
        raise http_error(ValidationError("A data inicial deve ser anterior à data final"))
    return Period(start=start_date, end=end_date)


@router.get("/revenues", response_model=list[LedgerEntryRead])
def list_revenues(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    exclude_reserve_fund: bool = Query(default=False),
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
) -> list[LedgerEntryRead]:
    try:
        rows = LedgerService(session).list_revenues(
            context, period=_period(start_date, end_date), exclude_reserve_fund=exclude_reserve_fund
        )
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return [LedgerEntryRead.model_validate(row) for row in rows]


@router.post("/revenues", response_model=LedgerEntryRead, status_code=status.HTTP_201_CREATED)
def create_revenue(
    payload: LedgerEntryCreate,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> LedgerEntryRead:
    try:
        revenue = LedgerService(session).create_revenue(
            context, LedgerEntryPayload(**payload.model_dump())
        )
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return LedgerEntryRead.model_validate(revenue)


@router.delete("/revenues/{revenue_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_revenue(
    revenue_id: str,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> None:
    try:
        LedgerService(session).delete_revenue(context, revenue_id)
    except TreasuryError as exc:
        raise http_error(exc) from exc


@router.get("/expenses", response_model=list[ExpenseRead])
def list_expenses(
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    exclude_reserve_fund: bool = Query(default=False),
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
) -> list[ExpenseRead]:
    try:
        rows = LedgerService(session).list_expenses(
            context, period=_period(start_date, end_date), exclude_reserve_fund=exclude_reserve_fund
        )
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return [ExpenseRead.model_validate(row) for row in rows]


@router.post("/expenses", response_model=ExpenseRead, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> ExpenseRead:
    try:
        expense = LedgerService(session).create_expense(
            context, LedgerEntryPayload(**payload.model_dump())
        )
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return ExpenseRead.model_validate(expense)


@router.delete("/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_expense(
    expense_id: str,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> None:
    try:
        LedgerService(session).delete_expense(context, expense_id)
    except TreasuryError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
