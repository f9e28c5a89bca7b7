from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import jwt
from fastapi import HTTPException, status

from poultry_stock.config import get_settings
from poultry_stock.core.constants import (
    MANAGE_STOCK_PERMISSION,
    STOCK_MANAGER_ROLES,
    SUPERVISOR_ROLE,
)


@dataclass(frozen=True)
class UserContext:
    role: str
    permissions: frozenset = field(default_factory=frozenset)
    subject: Optional[str] = None

    def can_manage_stock(self) -> bool:
        if self.role in STOCK_MANAGER_ROLES:
            return True
        return self.role == SUPERVISOR_ROLE and MANAGE_STOCK_PERMISSION in self.permissions


def _load_api_keys() -> set[str]:
    settings = get_settings()
    keys = set()
    if settings.API_KEYS:
        for value in settings.API_KEYS.split(","):
            value = value.strip()
            if value:
                keys.add(value)
    return keys


def _get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    return None


def _decode_jwt(token: str) -> dict:
    settings = get_settings()
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="JWT auth is not configured",
        )

    options = {"verify_aud": bool(settings.JWT_AUDIENCE)}
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options=options,
        )
    except jwt.PyJWTError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid JWT",
        ) from exc


def authenticate_request(
    api_key: Optional[str],
    authorization: Optional[str],
    *,
    require_auth: bool = False,
) -> Optional[dict]:
    settings = get_settings()
    keys = _load_api_keys()

    if settings.JWT_REQUIRED:
        require_auth = True

    if api_key and api_key in keys and not settings.JWT_REQUIRED:
        return {"auth_type": "api_key"}

    token = _get_bearer_token(authorization)
    if token:
        try:
            payload = _decode_jwt(token)
            return {"auth_type": "jwt", "payload": payload}
        except HTTPException:
            if settings.JWT_REQUIRED:
                raise

    if (require_auth or keys or settings.JWT_REQUIRED) and (
        keys or settings.JWT_SECRET or settings.JWT_REQUIRED
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return None


def resolve_user_context(auth: Optional[dict]) -> UserContext:
    """Map an authentication result to a ``{role, permissions}`` context.

    API keys act as admin. With no credentials configured at all the
    service runs open, also as admin.
    """
    if not auth or auth.get("auth_type") == "api_key":
        return UserContext(role="admin")

    payload = auth.get("payload") or {}
    role = str(payload.get("role") or "").strip().lower()
    permissions = payload.get("permissions") or []
    if isinstance(permissions, str):
        permissions = [part.strip() for part in permissions.split(",")]
    permission_set = {str(item).strip().lower() for item in permissions if str(item).strip()}
    if payload.get("canManageStock"):
        permission_set.add(MANAGE_STOCK_PERMISSION)
    return UserContext(
        role=role,
        permissions=frozenset(permission_set),
        subject=payload.get("sub"),
    )


def ensure_stock_access(user: UserContext) -> UserContext:
    if not user.can_manage_stock():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Stock management is not permitted for this user",
        )
    return user
