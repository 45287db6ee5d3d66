from propops.platform.security.access import (
    Role,
    STAFF_ROLES,
    get_auth_context,
    is_elevated,
    require_admin,
    require_roles,
    require_staff,
)
from propops.platform.security.context import AuthContext
from propops.platform.security.errors import AuthorizationError

__all__ = [
    "AuthContext",
    "AuthorizationError",
    "Role",
    "STAFF_ROLES",
    "get_auth_context",
    "is_elevated",
    "require_admin",
    "require_roles",
    "require_staff",
]
