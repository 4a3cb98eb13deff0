"""Bearer token authentication and role checks.

Tokens are issued at login (see ``school.app.api.auth``). Every protected
request decodes the token and reloads the entity it names, so a deleted
user loses access immediately.
"""

from dataclasses import dataclass
from typing import Annotated, Callable, Union

from fastapi import Depends, Request

from school.app.core.logging import get_logger
from school.app.core.security import decode_access_token
from school.app.db.async_session import SessionDep
from school.app.db.models import Exec, Student, Teacher
from school.app.exceptions import AuthenticationError, PermissionDeniedError

logger = get_logger(__name__)

EXEC_ROLES = ("admin", "manager")
STAFF_ROLES = EXEC_ROLES + ("teacher",)

Entity = Union[Exec, Teacher, Student]

_ROLE_MODELS: dict[str, type] = {
    "admin": Exec,
    "manager": Exec,
    "teacher": Teacher,
    "student": Student,
}


@dataclass
class CurrentUser:
    """The authenticated caller of a request."""
    id: int
    role: str
    email: str
    entity: Entity


def get_bearer_token(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    Returns:
        The token string if present, None otherwise
    """
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(request: Request, session: SessionDep) -> CurrentUser:
    """Resolve the bearer token to a loaded user.

    Raises:
        AuthenticationError: Missing or invalid token, unknown role, or the
            entity no longer exists
    """
    token = get_bearer_token(request)
    if token is None:
        raise AuthenticationError("Missing or malformed Authorization header")

    claims = decode_access_token(token)
    role = claims.get("role")
    model = _ROLE_MODELS.get(role)
    if model is None:
        raise AuthenticationError("Invalid token")

    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token") from e

    entity = await session.get(model, user_id)
    # An exec's role may have changed since the token was issued
    if entity is None or entity.role != role:
        raise AuthenticationError("Invalid token")

    request.state.user_id = user_id
    request.state.role = role
    return CurrentUser(id=user_id, role=role, email=entity.email, entity=entity)


CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def require_role(*roles: str) -> Callable:
    """Build a dependency that admits only the given roles.

    Usage:
        @router.get("/", dependencies=[Depends(require_role("admin", "manager"))])

    Raises:
        PermissionDeniedError: The caller's role is not in ``roles``
    """
    async def checker(user: CurrentUserDep) -> CurrentUser:
        if user.role not in roles:
            logger.info(
                f"Role '{user.role}' denied, requires one of {roles}",
                extra={"user_id": user.id, "role": user.role},
            )
            raise PermissionDeniedError()
        return user

    return checker


RequireExec = Depends(require_role(*EXEC_ROLES))
