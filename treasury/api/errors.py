"""Translate service errors into HTTP responses."""
from __future__ import annotations

from fastapi import HTTPException, status

from treasury.services.errors import (
    AlreadyTransferredError,
    AuthenticationError,
    InsufficientFundsError,
    NotFoundError,
    NothingToTransferError,
    ProtectedEntryError,
    TenantResolutionError,
    TreasuryError,
    ValidationError,
)

_STATUS_BY_ERROR: tuple[tuple[type[TreasuryError], int], ...] = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (TenantResolutionError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientFundsError, status.HTTP_409_CONFLICT),
    (AlreadyTransferredError, status.HTTP_409_CONFLICT),
    (NothingToTransferError, status.HTTP_409_CONFLICT),
    (ProtectedEntryError, status.HTTP_409_CONFLICT),
)


def http_error(exc: TreasuryError) -> HTTPException:
    """Return the ``HTTPException`` matching a service error.

    Store failures and anything unrecognised become a 500 carrying the raw
    message.
    """

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


__all__ = ["http_error"]
