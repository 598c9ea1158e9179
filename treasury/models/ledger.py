"""Operating ledger ORM models: revenues and expenses."""
from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Date, Enum as SAEnum, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from treasury.models.base import Base, TimestampMixin, enum_values


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    PIX = "pix"
    CARD = "card"
    TRANSFER = "transfer"


class LedgerEntryMixin:
    """Columns shared by revenues and expenses."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500))
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(PaymentMethod, name="payment_method", values_callable=enum_values),
        nullable=False,
        default=PaymentMethod.CASH,
    )
    transaction_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(320))
    # Set by transfer operations; the description convention is the fallback for older rows.
    is_reserve_fund: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Revenue(LedgerEntryMixin, TimestampMixin, Base):
    """Money entering the operating ledger."""

    __tablename__ = "revenues"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_revenues_amount_positive"),
        Index("ix_revenues_tenant_id", "tenant_id"),
        Index("ix_revenues_tenant_date", "tenant_id", "transaction_date"),
    )

    category_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("revenue_categories.id", ondelete="SET NULL"), nullable=True
    )

    tenant = relationship("Tenant", back_populates="revenues")
    category = relationship("RevenueCategory", back_populates="revenues")


class Expense(LedgerEntryMixin, TimestampMixin, Base):
    """Money leaving the operating ledger."""

    __tablename__ = "expenses"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        Index("ix_expenses_tenant_id", "tenant_id"),
        Index("ix_expenses_tenant_date", "tenant_id", "transaction_date"),
    )

    category_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("expense_categories.id", ondelete="SET NULL"), nullable=True
    )
    receipt_url: Mapped[str | None] = mapped_column(String(1024))

    tenant = relationship("Tenant", back_populates="expenses")
    category = relationship("ExpenseCategory", back_populates="expenses")


__all__ = ["Expense", "LedgerEntryMixin", "PaymentMethod", "Revenue"]
