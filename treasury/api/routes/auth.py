"""Authentication endpoints for issuing JWTs."""
from __future__ import annotations

from typing import cast

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from treasury.api.errors import http_error
from treasury.api.security import (
    ROLE_VALUES,
    RoleName,
    TokenResponse,
    decode_token,
    issue_tokens,
    refresh_token_store,
    verify_password,
)
from treasury.core.config import get_settings
from treasury.services.errors import AuthenticationError

router = APIRouter()


class LoginRequest(BaseModel):
    email: str
    password: str
    role: RoleName | None = None


class RefreshRequest(BaseModel):
    refresh_token: str


@router.post("/login", response_model=TokenResponse, summary="Issue JWT access tokens")
def login(request: LoginRequest) -> TokenResponse:
    settings = get_settings()
    if "@" not in request.email:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="E-mail inválido")
    if not verify_password(request.password, settings.default_user_hashed_password) and (
        request.password != settings.default_user_password
    ):
        raise http_error(AuthenticationError("Credenciais inválidas"))

    role_value = request.role or settings.default_role
    if role_value not in ROLE_VALUES:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Invalid role configuration",
        )
    response, refresh_id = issue_tokens(
        settings=settings,
        subject=request.email,
        tenant_id=settings.default_tenant_id,
        role=cast(RoleName, role_value),
    )
    refresh_token_store.mark_active(request.email, refresh_id)
    return response


@router.post("/refresh", response_model=TokenResponse, summary="Rotate JWT refresh tokens")
def refresh_token(request: RefreshRequest) -> TokenResponse:
    settings = get_settings()
    payload = decode_token(request.refresh_token, settings)
    if payload.type != "refresh":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tipo de token inválido")
    if not refresh_token_store.is_active(payload.sub, payload.jti):
        raise http_error(AuthenticationError("Refresh token revogado"))

    refresh_token_store.revoke(payload.jti)
    response, refresh_id = issue_tokens(
        settings=settings,
        subject=payload.sub,
        tenant_id=payload.tid,
        role=payload.role,
    )
    refresh_token_store.mark_active(payload.sub, refresh_id)
    return response


__all__ = ["login", "refresh_token", "router"]
