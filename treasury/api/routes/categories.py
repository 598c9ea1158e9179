"""Revenue and expense category endpoints."""
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from treasury.api.deps import get_db_session, get_tenant_context
from treasury.api.errors import http_error
from treasury.api.security import FINANCE_ROLES, AuthenticatedUser, require_role
from treasury.core.tenancy import TenantContext
from treasury.schemas import CategoryRead, CategoryWrite
from treasury.services.categories import CategoryPayload, CategoryService
from treasury.services.errors import TreasuryError

router = APIRouter(prefix="/categories")

Kind = Literal["revenue", "expense"]


@router.get("/{kind}", response_model=list[CategoryRead])
def list_categories(
    kind: Kind,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
) -> list[CategoryRead]:
    try:
        categories = CategoryService(session, kind).list(context)
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return [CategoryRead.model_validate(item) for item in categories]


@router.post("/{kind}", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(
    kind: Kind,
    payload: CategoryWrite,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> CategoryRead:
    try:
        category = CategoryService(session, kind).create(context, CategoryPayload(**payload.model_dump()))
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return CategoryRead.model_validate(category)


@router.put("/{kind}/{category_id}", response_model=CategoryRead)
def update_category(
    kind: Kind,
    category_id: str,
    payload: CategoryWrite,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> CategoryRead:
    try:
        category = CategoryService(session, kind).update(
            context, category_id, CategoryPayload(**payload.model_dump())
        )
    except TreasuryError as exc:
        raise http_error(exc) from exc
    return CategoryRead.model_validate(category)


@router.delete("/{kind}/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    kind: Kind,
    category_id: str,
    context: TenantContext = Depends(get_tenant_context),
    session: Session = Depends(get_db_session),
    _user: AuthenticatedUser = Depends(require_role(*FINANCE_ROLES)),
) -> None:
    try:
        CategoryService(session, kind).delete(context, category_id)
    except TreasuryError as exc:
        raise http_error(exc) from exc


__all__ = ["router"]
