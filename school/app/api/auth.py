"""Login helpers shared by the exec, teacher and student routers."""

from functools import lru_cache
from typing import Awaitable, Callable, Optional, TypeVar

from pydantic import BaseModel

from school.app.core.logging import get_log_context, get_logger
from school.app.core.security import create_access_token, hash_password, verify_password
from school.app.exceptions import AuthenticationError

logger = get_logger(__name__)

EntityT = TypeVar("EntityT")

INVALID_CREDENTIALS = "Invalid email or password"


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("not-a-real-password")


async def authenticate(
    lookup: Callable[[str], Awaitable[Optional[EntityT]]],
    email: str,
    password: str,
) -> EntityT:
    """Load an entity by email and check its password.

    Unknown emails still pay for one hash verification, so both failure
    cases take the same time and return the same message.

    Raises:
        AuthenticationError: Unknown email or wrong password
    """
    entity = await lookup(email)
    if entity is None:
        verify_password(password, _dummy_hash())
        raise AuthenticationError(INVALID_CREDENTIALS)
    if not verify_password(password, entity.password_hash):
        logger.info("Failed login", extra=get_log_context(user_id=entity.id, role=entity.role))
        raise AuthenticationError(INVALID_CREDENTIALS)
    return entity


def issue_token(entity) -> str:
    """Sign a token for any entity carrying ``id``, ``role`` and ``email``."""
    return create_access_token(entity.id, entity.role, entity.email)


def auth_response(entity, read_schema: type[BaseModel]) -> dict:
    """Body of a login or registration response."""
    return {"entity": read_schema.model_validate(entity), "token": issue_token(entity)}
