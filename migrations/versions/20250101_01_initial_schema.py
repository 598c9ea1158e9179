"""Initial schema: churches, operating ledger and reserve fund."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "20250101_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _enum(name: str, *values: str) -> sa.Enum:
    bind = op.get_bind()
    if bind.dialect.name != "postgresql":
        return sa.Enum(*values, name=name)
    postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)
    return postgresql.ENUM(*values, name=name, create_type=False)


def _drop_enum(name: str) -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        op.execute(sa.text(f"DROP TYPE IF EXISTS {name}"))


def _category_table(name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#6b7280"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("tenant_id", "name", name=f"uq_{name}_tenant_name"),
    )
    op.create_index(f"ix_{name}_tenant_id", name, ["tenant_id"])


def _ledger_table(name: str, category_table: str, payment_method: sa.Enum, *extra: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("category_id", sa.String(length=36)),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("description", sa.String(length=500)),
        sa.Column("payment_method", payment_method, nullable=False, server_default="cash"),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("created_by", sa.String(length=320)),
        sa.Column("is_reserve_fund", sa.Boolean(), nullable=False, server_default=sa.false()),
        *extra,
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["category_id"], [f"{category_table}.id"], ondelete="SET NULL"),
        sa.CheckConstraint("amount > 0", name=f"ck_{name}_amount_positive"),
    )
    op.create_index(f"ix_{name}_tenant_id", name, ["tenant_id"])
    op.create_index(f"ix_{name}_tenant_date", name, ["tenant_id", "transaction_date"])


def upgrade() -> None:  # noqa: D401
    """Create tenant-scoped ledger and reserve fund tables."""

    tenant_status = _enum("tenant_status", "ACTIVE", "INACTIVE")
    payment_method = _enum("payment_method", "cash", "pix", "card", "transfer")
    fund_transaction_type = _enum(
        "reserve_fund_transaction_type", "deposit", "withdrawal", "auto_transfer"
    )

    op.create_table(
        "tenants",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("status", tenant_status, nullable=False, server_default="ACTIVE"),
        *_timestamps(),
    )

    _category_table("revenue_categories")
    _category_table("expense_categories")
    _ledger_table("revenues", "revenue_categories", payment_method)
    _ledger_table(
        "expenses",
        "expense_categories",
        payment_method,
        sa.Column("receipt_url", sa.String(length=1024)),
    )

    op.create_table(
        "reserve_funds",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("last_transfer_date", sa.Date()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("tenant_id", name="uq_reserve_funds_tenant_id"),
    )

    op.create_table(
        "reserve_fund_transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("reserve_fund_id", sa.String(length=36), nullable=False),
        sa.Column("transaction_type", fund_transaction_type, nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("description", sa.String(length=500)),
        sa.Column("created_by", sa.String(length=320)),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reserve_fund_id"], ["reserve_funds.id"], ondelete="CASCADE"),
        sa.CheckConstraint("amount > 0", name="ck_reserve_fund_transactions_amount_positive"),
    )
    op.create_index(
        "ix_reserve_fund_transactions_tenant_id", "reserve_fund_transactions", ["tenant_id"]
    )
    op.create_index(
        "ix_reserve_fund_transactions_fund_created",
        "reserve_fund_transactions",
        ["reserve_fund_id", "created_at"],
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("tenant_id", sa.String(length=64), nullable=False),
        sa.Column("actor", sa.String(length=320)),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("resource_type", sa.String(length=128), nullable=False),
        sa.Column("resource_id", sa.String(length=128)),
        sa.Column("payload", sa.JSON()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_audit_logs_tenant_id", "audit_logs", ["tenant_id"])
    op.create_index(
        "ix_audit_logs_resource", "audit_logs", ["tenant_id", "resource_type", "resource_id"]
    )


def downgrade() -> None:  # noqa: D401
    """Drop all tenant-scoped tables."""

    op.drop_index("ix_audit_logs_resource", table_name="audit_logs")
    op.drop_index("ix_audit_logs_tenant_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("ix_reserve_fund_transactions_fund_created", table_name="reserve_fund_transactions")
    op.drop_index("ix_reserve_fund_transactions_tenant_id", table_name="reserve_fund_transactions")
    op.drop_table("reserve_fund_transactions")
    op.drop_table("reserve_funds")

    for table in ("expenses", "revenues"):
        op.drop_index(f"ix_{table}_tenant_date", table_name=table)
        op.drop_index(f"ix_{table}_tenant_id", table_name=table)
        op.drop_table(table)

    for table in ("expense_categories", "revenue_categories"):
        op.drop_index(f"ix_{table}_tenant_id", table_name=table)
        op.drop_table(table)

    op.drop_table("tenants")

    for enum_name in ("reserve_fund_transaction_type", "payment_method", "tenant_status"):
        _drop_enum(enum_name)
