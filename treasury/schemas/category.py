"""Schemas for revenue and expense categories."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryWrite(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    color: str = Field(default="#6b7280", pattern=r"^#[0-9a-fA-F]{6}$")
    description: str | None = Field(default=None, max_length=500)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if len(stripped) < 2:
            raise ValueError("Nome deve ter pelo menos 2 caracteres")
        return stripped


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    color: str
    is_reserve_fund: bool


__all__ = ["CategoryRead", "CategoryWrite"]
