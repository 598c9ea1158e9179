"""JWT issuing and verification plus role checks."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import Literal
from uuid import uuid4

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from treasury.api.errors import http_error
from treasury.core.config import Settings, get_settings
from treasury.services.errors import AuthenticationError

RoleName = Literal["OWNER", "ADMIN", "TREASURER", "MEMBER"]
ROLE_VALUES: frozenset[str] = frozenset({"OWNER", "ADMIN", "TREASURER", "MEMBER"})

# Roles allowed to move money in or out of the reserve fund.
FINANCE_ROLES: tuple[RoleName, ...] = ("OWNER", "ADMIN", "TREASURER")

bearer_scheme = HTTPBearer(auto_error=False)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenPayload(BaseModel):
    sub: str
    tid: str
    role: RoleName
    type: Literal["access", "refresh"]
    iat: datetime
    exp: datetime
    jti: str


@dataclass(frozen=True)
class AuthenticatedUser:
    email: str
    tenant_id: str
    role: RoleName
    token_id: str


class RefreshTokenStore:
    """Tracks the live refresh token per subject and the revoked ones."""

    def __init__(self) -> None:
        self._active: dict[str, str] = {}
        self._revoked: set[str] = set()
        self._lock = Lock()

    def mark_active(self, subject: str, token_id: str) -> None:
        with self._lock:
            self._active[subject] = token_id

    def is_active(self, subject: str, token_id: str) -> bool:
        with self._lock:
            return token_id not in self._revoked and self._active.get(subject) == token_id

    def revoke(self, token_id: str) -> None:
        with self._lock:
            self._revoked.add(token_id)

    def reset(self) -> None:
        with self._lock:
            self._active.clear()
            self._revoked.clear()


refresh_token_store = RefreshTokenStore()


def _encode(
    *,
    settings: Settings,
    subject: str,
    tenant_id: str,
    role: RoleName,
    token_type: Literal["access", "refresh"],
    lifetime: timedelta,
) -> tuple[str, str]:
    issued = datetime.now(UTC)
    token_id = uuid4().hex
    claims = {
        "sub": subject,
        "tid": tenant_id,
        "role": role,
        "type": token_type,
        "iat": int(issued.timestamp()),
        "exp": int((issued + lifetime).timestamp()),
        "jti": token_id,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm), token_id


def issue_tokens(
    *, settings: Settings, subject: str, tenant_id: str, role: RoleName
) -> tuple[TokenResponse, str]:
    """Return an access/refresh pair and the refresh token's id."""

    access_token, _ = _encode(
        settings=settings,
        subject=subject,
        tenant_id=tenant_id,
        role=role,
        token_type="access",
        lifetime=timedelta(minutes=settings.access_token_expire_minutes),
    )
    refresh_token, refresh_id = _encode(
        settings=settings,
        subject=subject,
        tenant_id=tenant_id,
        role=role,
        token_type="refresh",
        lifetime=timedelta(days=settings.refresh_token_expire_days),
    )
    response = TokenResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=settings.access_token_expire_minutes * 60,
    )
    return response, refresh_id


def decode_token(token: str, settings: Settings) -> TokenPayload:
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return TokenPayload(**claims)
    except (JWTError, ValidationError) as exc:
        raise http_error(AuthenticationError("Sessão inválida ou expirada")) from exc


def verify_password(raw_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthenticatedUser:
    """Authenticate the bearer access token."""

    if credentials is None:
        raise http_error(AuthenticationError("Usuário não autenticado"))
    payload = decode_token(credentials.credentials, get_settings())
    if payload.type != "access":
        raise http_error(AuthenticationError("Tipo de token inválido"))
    request.state.actor = payload.sub
    return AuthenticatedUser(
        email=payload.sub,
        tenant_id=payload.tid,
        role=payload.role,
        token_id=payload.jti,
    )


def require_role(*roles: RoleName) -> Callable[..., AuthenticatedUser]:
    allowed = set(roles)

    def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permissão insuficiente")
        return user

    return dependency


__all__ = [
    "AuthenticatedUser",
    "FINANCE_ROLES",
    "ROLE_VALUES",
    "RoleName",
    "TokenPayload",
    "TokenResponse",
    "decode_token",
    "get_current_user",
    "issue_tokens",
    "refresh_token_store",
    "require_role",
    "verify_password",
]
