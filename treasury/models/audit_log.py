"""Persistent trail of reserve fund movements.

Every deposit, withdrawal and monthly transfer writes one row here inside the
same transaction as the movement itself, so the trail never disagrees with
the fund balance.
"""
from __future__ import annotations

import uuid

from sqlalchemy import ForeignKey, Index, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from treasury.models.base import Base, TimestampMixin


class AuditLog(TimestampMixin, Base):
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_tenant_id", "tenant_id"),
        Index("ix_audit_logs_resource", "tenant_id", "resource_type", "resource_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    tenant_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False
    )
    # treasurer e-mail, or "system:auto-transfer" for scheduled runs
    actor: Mapped[str | None] = mapped_column(String(320))
    action: Mapped[str] = mapped_column(String(128), nullable=False)
    resource_type: Mapped[str] = mapped_column(String(128), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(128))
    payload: Mapped[dict | None] = mapped_column(JSON)

    tenant = relationship("Tenant", back_populates="audit_logs")

    def __repr__(self) -> str:
        return f"AuditLog(action={self.action!r}, resource_id={self.resource_id!r})"


__all__ = ["AuditLog"]
