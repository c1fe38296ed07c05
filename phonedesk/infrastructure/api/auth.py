"""Role-based access dependencies.

Authentication happens upstream; the proxy forwards the caller's identity in
``X-User-Id``, ``X-User-Role`` (``admin`` for administrators) and
``X-User-Roles`` (comma-separated granular roles).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fastapi import Depends, Header, HTTPException, status

from phonedesk.config import settings
from phonedesk.domain.policies.access import (
    ADMIN_ROLE,
    ROLE_DEFAULT_ROUTES,
    can_access_path,
    first_allowed_path,
)


@dataclass
class Principal:
    user_id: str
    is_admin: bool = False
    role_names: list[str] = field(default_factory=list)

    @property
    def first_allowed_path(self) -> str | None:
        return "/" if self.is_admin else first_allowed_path(self.role_names)


def _parse_roles(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [r.strip() for r in raw.split(",") if r.strip()]


async def get_principal(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    x_user_role: str | None = Header(None, alias="X-User-Role"),
    x_user_roles: str | None = Header(None, alias="X-User-Roles"),
) -> Principal:
    if not settings.auth_enabled:
        return Principal(
            user_id=x_user_id or "local",
            is_admin=True,
            role_names=[role for role, _ in ROLE_DEFAULT_ROUTES],
        )
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required to access this resource",
        )
    return Principal(
        user_id=x_user_id,
        is_admin=(x_user_role or "").strip().lower() == ADMIN_ROLE,
        role_names=_parse_roles(x_user_roles),
    )


async def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator role required",
        )
    return principal


def require_module(path: str):
    """Dependency factory: the caller must be allowed to open dashboard module *path*.

    Admins bypass the role table.
    """

    async def _check(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.is_admin or can_access_path(path, principal.role_names):
            return principal
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access to {path} is not granted to this user",
        )

    return _check
