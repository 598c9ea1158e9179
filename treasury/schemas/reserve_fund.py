"""Schemas for the reserve fund endpoints."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from treasury.models import ReserveFundTransactionType


class ReserveFundRead(BaseModel):
    """Fund balance next to the operating balance available for deposits."""

    model_config = ConfigDict(from_attributes=True)

    balance: Decimal
    last_transfer_date: date | None
    available_balance: Decimal


class ReserveFundTransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    transaction_type: ReserveFundTransactionType
    amount: Decimal
    description: str | None
    created_by: str | None
    created_at: datetime


class TransferRequest(BaseModel):
    """Manual deposit or withdrawal."""

    amount: Decimal = Field(
        ..., max_digits=14, decimal_places=2, description="Amount in BRL; must be greater than zero"
    )
    description: str | None = Field(default=None, max_length=500)


class TransferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    operation: str
    amount: Decimal
    balance: Decimal
    transaction: ReserveFundTransactionRead
    ledger_entry_id: str | None = None


class ReconciliationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    balance: Decimal
    deposits: Decimal
    auto_transfers: Decimal
    withdrawals: Decimal
    expected_balance: Decimal
    consistent: bool


__all__ = [
    "ReconciliationRead",
    "ReserveFundRead",
    "ReserveFundTransactionRead",
    "TransferRequest",
    "TransferResponse",
]
