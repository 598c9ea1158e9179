"""Revenue and expense category ORM models."""
from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from treasury.models.base import Base, TimestampMixin

RESERVE_FUND_CATEGORY_NAME = "Fundo de Reserva"


class CategoryMixin:
    """Columns shared by both category namespaces."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6b7280")

    @property
    def is_reserve_fund(self) -> bool:
        return self.name.strip().lower() == RESERVE_FUND_CATEGORY_NAME.lower()


class RevenueCategory(CategoryMixin, TimestampMixin, Base):
    """Label for incoming money (tithes, offerings, ...)."""

    __tablename__ = "revenue_categories"
    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_revenue_categories_tenant_name"),
        Index("ix_revenue_categories_tenant_id", "tenant_id"),
    )

    tenant = relationship("Tenant", back_populates="revenue_categories")
    revenues = relationship("Revenue", back_populates="category")


class ExpenseCategory(CategoryMixin, TimestampMixin, Base):
    """Label for outgoing money."""

    __tablename__ = "expense_categories"
    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_expense_categories_tenant_name"),
        Index("ix_expense_categories_tenant_id", "tenant_id"),
    )

    tenant = relationship("Tenant", back_populates="expense_categories")
    expenses = relationship("Expense", back_populates="category")


__all__ = ["CategoryMixin", "ExpenseCategory", "RESERVE_FUND_CATEGORY_NAME", "RevenueCategory"]
