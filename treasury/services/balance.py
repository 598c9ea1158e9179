"""Operating cash balance for a tenant."""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from treasury.core.money import to_amount
from treasury.models import Expense, Revenue
from treasury.services.errors import PersistenceError


def _total(session: Session, model: type[Revenue] | type[Expense], tenant_id: str) -> Decimal:
    statement = select(func.coalesce(func.sum(model.amount), 0)).where(model.tenant_id == tenant_id)
    return to_amount(session.scalar(statement))


def available_balance(session: Session, tenant_id: str) -> Decimal:
    """Return all revenues minus all expenses for ``tenant_id``.

    Reserve fund movements are included on purpose: deposits and withdrawals
    really do move cash out of and into the spendable balance even though
    reports hide them.
    """

    try:
        revenues = _total(session, Revenue, tenant_id)
        expenses = _total(session, Expense, tenant_id)
    except SQLAlchemyError as exc:
        raise PersistenceError(str(exc)) from exc
    return revenues - expenses


__all__ = ["available_balance"]
