"""Revenue and expense category management."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from treasury.core.tenancy import TenantContext
from treasury.models import RESERVE_FUND_CATEGORY_NAME, ExpenseCategory, RevenueCategory
from treasury.services.errors import NotFoundError, PersistenceError, ValidationError

LOGGER = logging.getLogger(__name__)

CategoryKind = Literal["revenue", "expense"]
CategoryModel = type[RevenueCategory] | type[ExpenseCategory]

RESERVE_FUND_CATEGORY_DESCRIPTION = "Movimentações do fundo de reserva"
RESERVE_FUND_CATEGORY_COLOR = "#f59e0b"

DEFAULT_REVENUE_CATEGORIES: tuple[tuple[str, str, str], ...] = (
    ("Dízimos", "Contribuição regular dos membros", "#10b981"),
    ("Ofertas", "Ofertas do dia", "#3b82f6"),
)


@dataclass(slots=True, frozen=True)
class CategoryPayload:
    name: str
    color: str
    description: str | None = None


def category_model(kind: CategoryKind) -> CategoryModel:
    return RevenueCategory if kind == "revenue" else ExpenseCategory


def find_category_by_name(
    session: Session, model: CategoryModel, *, tenant_id: str, name: str
) -> RevenueCategory | ExpenseCategory | None:
    statement = select(model).where(model.tenant_id == tenant_id, model.name == name).limit(1)
    return session.scalars(statement).first()


def get_or_create_category(
    session: Session,
    model: CategoryModel,
    *,
    tenant_id: str,
    name: str,
    description: str | None = None,
    color: str = "#6b7280",
) -> RevenueCategory | ExpenseCategory:
    """Return the named category, inserting it when missing.

    The insert runs in a savepoint so a concurrent creator losing the unique
    constraint race re-reads the winner's row instead of failing.
    """

    existing = find_category_by_name(session, model, tenant_id=tenant_id, name=name)
    if existing is not None:
        return existing

    category = model(tenant_id=tenant_id, name=name, description=description, color=color)
    try:
        with session.begin_nested():
            session.add(category)
    except IntegrityError:
        LOGGER.info(
            "category created concurrently",
            extra={"tenant_id": tenant_id, "category": name, "table": model.__tablename__},
        )
        winner = find_category_by_name(session, model, tenant_id=tenant_id, name=name)
        if winner is None:
            raise NotFoundError(f"Categoria '{name}' não encontrada") from None
        return winner
    return category


def get_reserve_fund_category(
    session: Session, model: CategoryModel, *, tenant_id: str
) -> RevenueCategory | ExpenseCategory:
    """Return the tenant's reserved "Fundo de Reserva" category for ``model``."""

    return get_or_create_category(
        session,
        model,
        tenant_id=tenant_id,
        name=RESERVE_FUND_CATEGORY_NAME,
        description=RESERVE_FUND_CATEGORY_DESCRIPTION,
        color=RESERVE_FUND_CATEGORY_COLOR,
    )


def ensure_default_categories(session: Session, *, tenant_id: str) -> None:
    """Create the default revenue categories the first time a church needs them."""

    try:
        for name, description, color in DEFAULT_REVENUE_CATEGORIES:
            get_or_create_category(
                session,
                RevenueCategory,
                tenant_id=tenant_id,
                name=name,
                description=description,
                color=color,
            )
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        raise PersistenceError(str(exc)) from exc


class CategoryService:
    """CRUD over one category namespace for a tenant."""

    def __init__(self, session: Session, kind: CategoryKind) -> None:
        self._session = session
        self._kind = kind
        self._model = category_model(kind)

    def list(self, context: TenantContext) -> list[RevenueCategory | ExpenseCategory]:
        if self._kind == "revenue":
            ensure_default_categories(self._session, tenant_id=context.tenant_id)
        statement = (
            select(self._model)
            .where(self._model.tenant_id == context.tenant_id)
            .order_by(self._model.name)
        )
        return list(self._session.scalars(statement).all())

    def get(self, context: TenantContext, category_id: str) -> RevenueCategory | ExpenseCategory:
        category = self._session.get(self._model, category_id)
        if category is None or category.tenant_id != context.tenant_id:
            raise NotFoundError(f"Categoria '{category_id}' não encontrada")
        return category

    def create(
        self, context: TenantContext, payload: CategoryPayload
    ) -> RevenueCategory | ExpenseCategory:
        category = self._model(
            tenant_id=context.tenant_id,
            name=payload.name.strip(),
            description=payload.description or None,
            color=payload.color,
        )
        self._session.add(category)
        self._commit(duplicate_name=category.name)
        self._session.refresh(category)
        return category

    def update(
        self, context: TenantContext, category_id: str, payload: CategoryPayload
    ) -> RevenueCategory | ExpenseCategory:
        category = self.get(context, category_id)
        if category.is_reserve_fund and payload.name.strip() != category.name:
            raise ValidationError("A categoria Fundo de Reserva não pode ser renomeada")
        category.name = payload.name.strip()
        category.description = payload.description or None
        category.color = payload.color
        self._commit(duplicate_name=category.name)
        self._session.refresh(category)
        return category

    def delete(self, context: TenantContext, category_id: str) -> None:
        category = self.get(context, category_id)
        if category.is_reserve_fund:
            raise ValidationError("A categoria Fundo de Reserva não pode ser excluída")
        self._session.delete(category)
        self._commit(duplicate_name=None)

    def _commit(self, *, duplicate_name: str | None) -> None:
        try:
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            raise ValidationError(f"Já existe uma categoria chamada '{duplicate_name}'") from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise PersistenceError(str(exc)) from exc


__all__ = [
    "CategoryKind",
    "CategoryPayload",
    "CategoryService",
    "DEFAULT_REVENUE_CATEGORIES",
    "category_model",
    "ensure_default_categories",
    "find_category_by_name",
    "get_or_create_category",
    "get_reserve_fund_category",
]
