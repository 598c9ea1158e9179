"""Tenant (church) ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from treasury.models.base import Base, TimestampMixin


class TenantStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Tenant(TimestampMixin, Base):
    """A church; every ledger row is scoped to one."""

    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    status: Mapped[TenantStatus] = mapped_column(
        Enum(TenantStatus, name="tenant_status"), nullable=False, default=TenantStatus.ACTIVE
    )

    revenues = relationship("Revenue", back_populates="tenant", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="tenant", cascade="all, delete-orphan")
    revenue_categories = relationship(
        "RevenueCategory", back_populates="tenant", cascade="all, delete-orphan"
    )
    expense_categories = relationship(
        "ExpenseCategory", back_populates="tenant", cascade="all, delete-orphan"
    )
    reserve_fund = relationship(
        "ReserveFund", back_populates="tenant", uselist=False, cascade="all, delete-orphan"
    )
    audit_logs = relationship("AuditLog", back_populates="tenant", cascade="all, delete-orphan")


__all__ = ["Tenant", "TenantStatus"]
