"""Schemas for manual revenues and expenses."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from treasury.models import PaymentMethod


class LedgerEntryCreate(BaseModel):
    amount: Decimal = Field(
        ..., max_digits=14, decimal_places=2, description="Amount in BRL; must be greater than zero"
    )
    transaction_date: date
    payment_method: PaymentMethod = PaymentMethod.CASH
    category_id: str | None = None
    description: str | None = Field(default=None, max_length=500)


class ExpenseCreate(LedgerEntryCreate):
    receipt_url: str | None = Field(default=None, max_length=1024)


class LedgerEntryRead(BaseModel):
    """A revenue or expense as listed on the ledger pages."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    description: str | None
    payment_method: PaymentMethod
    transaction_date: date
    category_id: str | None
    is_reserve_fund: bool
    created_by: str | None


class ExpenseRead(LedgerEntryRead):
    receipt_url: str | None = None


__all__ = ["ExpenseCreate", "ExpenseRead", "LedgerEntryCreate", "LedgerEntryRead"]
