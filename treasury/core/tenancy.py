"""Explicit tenant context passed into every service call."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TenantContext:
    """The church an operation acts on and who is acting."""

    tenant_id: str
    actor: str | None = None


__all__ = ["TenantContext"]
