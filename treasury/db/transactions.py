"""Transaction scopes for multi-step ledger writes."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.orm import Session


@contextmanager
def serializable_transaction(session: Session) -> Iterator[None]:
    """Run the enclosed statements as one SERIALIZABLE unit.

    SQLite has no isolation levels, so the write lock is taken up front with
    ``BEGIN IMMEDIATE`` instead. Whatever the session already has open is
    committed first, since both statements must start a fresh transaction.
    """

    bind = session.get_bind()
    if bind is None:
        raise RuntimeError("Session is not bound to an engine")

    if session.in_transaction():
        session.commit()

    dialect = bind.dialect.name
    if dialect == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))
    else:
        session.execute(text("SET TRANSACTION ISOLATION LEVEL SERIALIZABLE"))

    try:
        yield
        session.commit()
    except Exception:
        session.rollback()
        raise


__all__ = ["serializable_transaction"]
