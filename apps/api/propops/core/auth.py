from dataclasses import dataclass

from jose import JWTError, jwt
from starlette.requests import Request

from propops.core.config import get_settings


ANONYMOUS_SUBJECT = "anonymous"


@dataclass
class AuthUser:
    sub: str
    role: str | None = None
    name: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.sub == ANONYMOUS_SUBJECT


def _extract_role(payload: dict) -> str | None:
    role = payload.get("role")
    if isinstance(role, str) and role:
        return role.upper()
    roles = payload.get("roles")
    if isinstance(roles, list) and roles:
        return str(roles[0]).upper()
    return None


async def get_current_user(request: Request) -> AuthUser:
    auth_header = request.headers.get("authorization", "")
    token = auth_header.replace("Bearer ", "") if auth_header.startswith("Bearer ") else ""

    if not token:
        return AuthUser(sub=ANONYMOUS_SUBJECT)

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return AuthUser(sub=ANONYMOUS_SUBJECT)

    subject = payload.get("sub")
    if not subject:
        return AuthUser(sub=ANONYMOUS_SUBJECT)
    name = payload.get("name")
    return AuthUser(sub=str(subject), role=_extract_role(payload), name=str(name) if name else None)
