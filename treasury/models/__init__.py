"""ORM models package."""
from .audit_log import AuditLog
from .base import Base, TimestampMixin
from .category import RESERVE_FUND_CATEGORY_NAME, ExpenseCategory, RevenueCategory
from .ledger import Expense, PaymentMethod, Revenue
from .reserve_fund import ReserveFund, ReserveFundTransaction, ReserveFundTransactionType
from .tenant import Tenant, TenantStatus

__all__ = [
    "AuditLog",
    "Base",
    "Expense",
    "ExpenseCategory",
    "PaymentMethod",
    "RESERVE_FUND_CATEGORY_NAME",
    "ReserveFund",
    "ReserveFundTransaction",
    "ReserveFundTransactionType",
    "Revenue",
    "RevenueCategory",
    "Tenant",
    "TenantStatus",
    "TimestampMixin",
]
