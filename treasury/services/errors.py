"""Domain errors raised by treasury services."""
from __future__ import annotations


class TreasuryError(RuntimeError):
    """Base exception for treasury service errors."""


class ValidationError(TreasuryError):
    """Raised when user supplied input is invalid."""


class AuthenticationError(TreasuryError):
    """Raised when no authenticated session is available."""


class TenantResolutionError(TreasuryError):
    """Raised when the authenticated user cannot be mapped to a church."""


class NotFoundError(TreasuryError):
    """Raised when a row expected to exist for the tenant is missing."""


class InsufficientFundsError(TreasuryError):
    """Raised when a transfer exceeds the balance it draws from."""


class AlreadyTransferredError(TreasuryError):
    """Raised when the monthly auto-transfer already ran this month."""


class NothingToTransferError(TreasuryError):
    """Raised when the operating balance has nothing to sweep."""


class ProtectedEntryError(TreasuryError):
    """Raised when deleting a ledger entry that mirrors a reserve fund movement."""


class PersistenceError(TreasuryError):
    """Wraps an underlying store failure, keeping its raw message."""


__all__ = [
    "AlreadyTransferredError",
    "AuthenticationError",
    "InsufficientFundsError",
    "NotFoundError",
    "NothingToTransferError",
    "PersistenceError",
    "ProtectedEntryError",
    "TenantResolutionError",
    "TreasuryError",
    "ValidationError",
]
