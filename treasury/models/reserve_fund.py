"""Reserve fund ORM models."""
from __future__ import annotations

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Enum as SAEnum, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from treasury.models.base import Base, TimestampMixin, enum_values


class ReserveFundTransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    AUTO_TRANSFER = "auto_transfer"


class ReserveFund(TimestampMixin, Base):
    """Per-tenant savings balance fed from the operating ledger."""

    __tablename__ = "reserve_funds"
    __table_args__ = (UniqueConstraint("tenant_id", name="uq_reserve_funds_tenant_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
    )
    balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    last_transfer_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    tenant = relationship("Tenant", back_populates="reserve_fund")
    transactions = relationship(
        "ReserveFundTransaction",
        back_populates="reserve_fund",
        cascade="all, delete-orphan",
        order_by="ReserveFundTransaction.created_at.desc()",
    )


class ReserveFundTransaction(TimestampMixin, Base):
    """Append-only movement on a reserve fund."""

    __tablename__ = "reserve_fund_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_reserve_fund_transactions_amount_positive"),
        Index("ix_reserve_fund_transactions_tenant_id", "tenant_id"),
        Index("ix_reserve_fund_transactions_fund_created", "reserve_fund_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    reserve_fund_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("reserve_funds.id", ondelete="CASCADE"), nullable=False
    )
    transaction_type: Mapped[ReserveFundTransactionType] = mapped_column(
        SAEnum(
            ReserveFundTransactionType,
            name="reserve_fund_transaction_type",
            values_callable=enum_values,
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(String(500))
    created_by: Mapped[str | None] = mapped_column(String(320))

    reserve_fund = relationship("ReserveFund", back_populates="transactions")


__all__ = ["ReserveFund", "ReserveFundTransaction", "ReserveFundTransactionType"]
