"""Seed the demo church with its default categories and an empty reserve fund."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from treasury.core.config import get_settings
from treasury.core.logging import configure_logging
from treasury.core.tenancy import TenantContext
from treasury.db.session import engine, get_session
from treasury.models import Base, ExpenseCategory, RevenueCategory, Tenant, TenantStatus
from treasury.services.categories import ensure_default_categories, get_reserve_fund_category
from treasury.services.reserve_fund import ReserveFundService

logger = logging.getLogger(__name__)


def seed(session: Session, *, tenant_id: str, name: str = "Igreja Demonstração") -> None:
    tenant = session.get(Tenant, tenant_id)
    if tenant is None:
        session.add(Tenant(id=tenant_id, name=name, status=TenantStatus.ACTIVE))
        session.commit()
        logger.info("Created tenant %s", tenant_id)
    else:
        logger.info("Tenant %s already exists", tenant_id)

    ensure_default_categories(session, tenant_id=tenant_id)
    for model in (RevenueCategory, ExpenseCategory):
        get_reserve_fund_category(session, model, tenant_id=tenant_id)
    session.commit()

    fund = ReserveFundService(session).get_or_create(TenantContext(tenant_id=tenant_id, actor="seed"))
    logger.info("Reserve fund %s ready with balance %s", fund.id, fund.balance)


def main() -> None:
    configure_logging()
    Base.metadata.create_all(bind=engine)
    with get_session() as session:
        seed(session, tenant_id=get_settings().default_tenant_id)


if __name__ == "__main__":
    main()
