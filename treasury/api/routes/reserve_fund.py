"""Reserve fund balance, history and transfer endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from treasury.api.deps import get_reserve_fund_service, get_tenant_context
from treasury.api.errors import http_error
from treasury.api.security import FINANCE_ROLES, AuthenticatedUser, require_role
from treasury.core.tenancy import TenantContext
from treasury.schemas import (
    ReconciliationRead,
    ReserveFundRead,
    ReserveFundTransactionRead,
    TransferRequest,
    TransferResponse,
)
from treasury.services.errors import TreasuryError
from treasury.services.reserve_fund import ReserveFundService, TransferResult

router = APIRouter(prefix="/reserve-fund")


def _transfer_response(result: TransferResult) -> TransferResponse:
    return TransferResponse(
        operation=result.operation,
        amount=result.amount,
        balance=result.balance,
        transaction=ReserveFundTransactionRead.model_validate(result.transaction),
        ledger_entry_id=result.ledger_entry.id if result.ledger_entry is not None else None,
    )


@router.get("", response_model=ReserveFundRead, summary="Fund balance and available cash")
def get_reserve_fund(
    context: TenantContext = Depends(get_tenant_context),
    service: ReserveFundService = Depends(get_reserve_fund_service),
) -> ReserveFundRead:
    try:
        summary = service.summary(context)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return ReserveFundRead.model_validate(summary)


@router.get("/transactions", response_model=list[ReserveFundTransactionRead])
def list_reserve_fund_transactions(
    limit: int | None = Query(default=None),
    context: TenantContext = Depends(get_tenant_context),
    service: ReserveFundService = Depends(get_reserve_fund_service),
) -> list[ReserveFundTransactionRead]:
    """Most recent fund movements, newest first."""

    try:
        transactions = service.list_transactions(context, limit=limit)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return [ReserveFundTransactionRead.model_validate(item) for item in transactions]


@router.get("/reconciliation", response_model=ReconciliationRead)
def reconcile_reserve_fund(
    context: TenantContext = Depends(get_tenant_context),
    service: ReserveFundService = Depends(get_reserve_fund_service),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> ReconciliationRead:
    try:
        report = service.reconcile(context)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return ReconciliationRead.model_validate(report)


@router.post("/deposit", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
def deposit(
    payload: TransferRequest,
    context: TenantContext = Depends(get_tenant_context),
    service: ReserveFundService = Depends(get_reserve_fund_service),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> TransferResponse:
    """Move cash from the operating balance into the fund."""

    try:
        result = service.deposit(context, payload.amount, payload.description)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return _transfer_response(result)


@router.post("/withdraw", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
def withdraw(
    payload: TransferRequest,
    context: TenantContext = Depends(get_tenant_context),
    service: ReserveFundService = Depends(get_reserve_fund_service),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> TransferResponse:
    """Move money from the fund back into the operating balance."""

    try:
        result = service.withdraw(context, payload.amount, payload.description)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return _transfer_response(result)


@router.post("/auto-transfer", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
def auto_transfer(
    context: TenantContext = Depends(get_tenant_context),
    service: ReserveFundService = Depends(get_reserve_fund_service),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> TransferResponse:
    """Sweep the whole operating balance into the fund for this month."""

    try:
        result = service.auto_transfer(context)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return _transfer_response(result)


__all__ = ["router"]
