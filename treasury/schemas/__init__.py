"""Pydantic schemas package."""

from .category import CategoryRead, CategoryWrite
from .ledger import ExpenseCreate, ExpenseRead, LedgerEntryCreate, LedgerEntryRead
from .report import (
    AnnualReportRead,
    CashFlowRead,
    CategoryReportRead,
    DashboardRead,
    MonthlyReportRead,
    ReportQuery,
    RevenueVsExpenseRead,
)
from .reserve_fund import (
    ReconciliationRead,
    ReserveFundRead,
    ReserveFundTransactionRead,
    TransferRequest,
    TransferResponse,
)

__all__ = [
    "AnnualReportRead",
    "CashFlowRead",
    "CategoryRead",
    "CategoryReportRead",
    "CategoryWrite",
    "DashboardRead",
    "ExpenseCreate",
    "ExpenseRead",
    "LedgerEntryCreate",
    "LedgerEntryRead",
    "MonthlyReportRead",
    "ReconciliationRead",
    "ReportQuery",
    "ReserveFundRead",
    "ReserveFundTransactionRead",
    "RevenueVsExpenseRead",
    "TransferRequest",
    "TransferResponse",
]
