"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from treasury.api.errors import http_error
from treasury.api.security import AuthenticatedUser, get_current_user
from treasury.core.clock import TodayProvider, local_today
from treasury.core.config import get_settings
from treasury.core.tenancy import TenantContext
from treasury.db.session import SessionLocal
from treasury.models import Tenant, TenantStatus
from treasury.services.errors import TenantResolutionError
from treasury.services.reporting import ReportService
from treasury.services.reserve_fund import ReserveFundService


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_today_provider() -> TodayProvider:
    timezone = get_settings().timezone
    return lambda: local_today(timezone)


def get_tenant_context(
    request: Request,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> TenantContext:
    """Resolve the caller's church from their token."""

    tenant = session.get(Tenant, user.tenant_id)
    if tenant is None or tenant.status != TenantStatus.ACTIVE:
        raise http_error(TenantResolutionError("Igreja não encontrada para o usuário"))
    request.state.tenant_id = tenant.id
    return TenantContext(tenant_id=tenant.id, actor=user.email)


def get_reserve_fund_service(
    session: Session = Depends(get_db_session),
    today_fn: TodayProvider = Depends(get_today_provider),
) -> ReserveFundService:
    return ReserveFundService(session, today_fn=today_fn)


def get_report_service(
    session: Session = Depends(get_db_session),
    today_fn: TodayProvider = Depends(get_today_provider),
) -> ReportService:
    return ReportService(session, today_fn=today_fn)


__all__ = [
    "get_db_session",
    "get_report_service",
    "get_reserve_fund_service",
    "get_tenant_context",
    "get_today_provider",
]
