"""Bearer token decoding into a per-request authorization context."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.core.config import get_settings
from app.core.enums import RoleEnum

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=True)


@dataclass(frozen=True, slots=True)
class AuthContext:
    """Authenticated actor of a single request.

    Built from token claims issued by the identity provider and passed
    explicitly into services; nothing about the actor is cached between
    requests.
    """

    user_id: UUID
    role: RoleEnum

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN

    def can_act_for(self, user_id: UUID) -> bool:
        """Admins act for anyone, other roles only for themselves."""
        return self.is_admin or self.user_id == user_id


def create_access_token(subject: str, role: RoleEnum | str, **claims: Any) -> str:
    """Create signed access token (used by tooling and tests)."""
    payload: dict[str, Any] = {
        "sub": subject,
        "type": "access",
        "role": str(role),
        "exp": datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes),
    }
    payload.update(claims)
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate JWT token."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc


def auth_context_from_claims(claims: dict[str, Any]) -> AuthContext:
    """Build authorization context from decoded access token claims."""
    if claims.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid access token")

    subject = claims.get("sub")
    role = claims.get("role")
    try:
        return AuthContext(user_id=UUID(str(subject)), role=RoleEnum(str(role).lower()))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token subject or role is invalid",
        ) from exc


async def get_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> AuthContext:
    """Resolve authorization context from bearer token."""
    return auth_context_from_claims(decode_token(credentials.credentials))


def require_roles(*roles: RoleEnum):
    """Dependency factory for role-based access."""

    async def _checker(actor: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if actor.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Operation not permitted for your role",
            )
        return actor

    return _checker
