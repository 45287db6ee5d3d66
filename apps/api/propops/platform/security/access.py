from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum

from fastapi import Depends, Request

from propops.context import get_correlation_id
from propops.core.auth import AuthUser, get_current_user
from propops.platform.security.context import AuthContext
from propops.platform.security.errors import AuthorizationError


class Role(StrEnum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CLIENT = "CLIENT"


STAFF_ROLES: frozenset[str] = frozenset({Role.ADMIN, Role.MANAGER})
_KNOWN_ROLES = {role.value for role in Role}


def get_auth_context(request: Request, auth_user: AuthUser = Depends(get_current_user)) -> AuthContext:
    correlation_id = get_correlation_id() or getattr(request.state, "correlation_id", None)
    if auth_user.is_anonymous:
        return AuthContext(user_id=None, correlation_id=correlation_id)

    role = auth_user.role if auth_user.role in _KNOWN_ROLES else None
    return AuthContext(
        user_id=auth_user.sub,
        role=role,
        display_name=auth_user.name,
        correlation_id=correlation_id,
    )


def require_roles(*roles: Role) -> Callable[..., AuthContext]:
    """Dependency factory gating an endpoint to the given roles.

    Anonymous principals and principals with an unknown role are rejected.
    """
    allowed = frozenset(str(role) for role in roles)

    def checker(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if ctx.role is None or ctx.role not in allowed:
            raise AuthorizationError()
        return ctx

    return checker


def is_elevated(ctx: AuthContext) -> bool:
    return ctx.role in STAFF_ROLES


require_staff = require_roles(Role.ADMIN, Role.MANAGER)
require_admin = require_roles(Role.ADMIN)
