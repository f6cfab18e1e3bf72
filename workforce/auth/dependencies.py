"""Auth dependencies — bearer-token identity and role checks.

Identity is issued elsewhere; this module only reads the ``sub`` and
``role`` claims of an access token and hands a ``CurrentUser`` to the
routers, which pass it explicitly into the services.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, Request
from fastapi.exceptions import HTTPException
from jose import ExpiredSignatureError, JWTError, jwt

from workforce.common.constants import UserRole
from workforce.common.exceptions import ForbiddenException
from workforce.config import settings

# Role hierarchy: each role implicitly includes lower roles
_ROLE_HIERARCHY: dict[UserRole, set[UserRole]] = {
    UserRole.admin: {UserRole.admin, UserRole.manager, UserRole.employee},
    UserRole.manager: {UserRole.manager, UserRole.employee},
    UserRole.employee: {UserRole.employee},
}


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller: who they are and what they may do."""

    id: uuid.UUID
    role: UserRole

    def has_role(self, *roles: UserRole) -> bool:
        return bool(_ROLE_HIERARCHY.get(self.role, {self.role}).intersection(roles))

    @property
    def is_manager(self) -> bool:
        """Managers and admins see and edit everyone's rows."""
        return self.has_role(UserRole.manager)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header.")
    return auth_header[7:]


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(request: Request) -> CurrentUser:
    """Validate the access token and return the caller's id and role."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token has expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type.")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token subject.")

    # Unknown roles get the least privilege
    try:
        role = UserRole(payload.get("role", UserRole.employee.value))
    except ValueError:
        role = UserRole.employee
    request.state.user_role = role

    return CurrentUser(id=user_id, role=role)


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Respects hierarchy — e.g. admin can access manager endpoints.
    """

    async def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.has_role(*allowed_roles):
            raise ForbiddenException(
                detail=f"Role '{user.role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return user

    return _check


# ── Service-level checks ────────────────────────────────────────────

def ensure_self_or_manager(user: CurrentUser, employee_id: uuid.UUID) -> None:
    """Employees may only touch their own rows; managers and admins any."""
    if user.id != employee_id and not user.is_manager:
        raise ForbiddenException(detail="Employees can only access their own records.")


def ensure_admin(user: CurrentUser) -> None:
    if not user.is_admin:
        raise ForbiddenException(detail="Only admins can perform this action.")


def ensure_manager(user: CurrentUser) -> None:
    if not user.is_manager:
        raise ForbiddenException(detail="Only managers and admins can perform this action.")
