"""Exec (admin and manager) endpoints."""

from typing import List

from fastapi import APIRouter, Response, status

from school.app.api.auth import auth_response, authenticate
from school.app.api.deps import CacheDep, PaginationDep
from school.app.api.schemas import AuthResponse, ExecCreate, ExecRead, ExecUpdate, LoginRequest
from school.app.core.config import settings
from school.app.core.logging import get_logger
from school.app.core.security import hash_password
from school.app.db.async_session import SessionDep
from school.app.db.crud import execs as exec_crud
from school.app.middleware.auth import RequireExec
from school.app.services.list_cache import ListCache, get_list_with_cache

router = APIRouter(prefix="/execs", tags=["execs"])
logger = get_logger(__name__)


@router.post(
    "/register",
    response_model=AuthResponse[ExecRead],
    status_code=status.HTTP_201_CREATED,
)
async def register_exec(data: ExecCreate, session: SessionDep) -> dict:
    """Register an exec and return it with a token."""
    exec_ = await exec_crud.create_exec(
        session,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=data.role,
    )
    logger.info(f"Registered {exec_.role} {exec_.id}", extra={"user_id": exec_.id, "role": exec_.role})
    return auth_response(exec_, ExecRead)


@router.post("/login", response_model=AuthResponse[ExecRead])
async def login_exec(data: LoginRequest, session: SessionDep) -> dict:
    exec_ = await authenticate(
        lambda email: exec_crud.get_exec_by_email(session, email),
        data.email,
        data.password,
    )
    return auth_response(exec_, ExecRead)


@router.get("", response_model=List[ExecRead], dependencies=[RequireExec])
async def list_execs(session: SessionDep, pq: PaginationDep, cache: CacheDep) -> List[ExecRead]:
    """List execs, served from the list cache when enabled."""
    async def fetch() -> List[ExecRead]:
        rows = await exec_crud.list_execs(session, pq)
        return [ExecRead.model_validate(row) for row in rows]

    if cache is None:
        return await fetch()
    store = ListCache(cache, ExecRead, settings.cache_list_ttl_seconds)
    return await get_list_with_cache(store, "execs:list", pq.cache_params(), fetch)


@router.get("/{exec_id}", response_model=ExecRead, dependencies=[RequireExec])
async def get_exec(exec_id: int, session: SessionDep):
    return await exec_crud.get_exec(session, exec_id)


@router.patch("/{exec_id}", response_model=ExecRead, dependencies=[RequireExec])
async def update_exec(exec_id: int, data: ExecUpdate, session: SessionDep):
    exec_ = await exec_crud.get_exec(session, exec_id)
    data.apply_to(exec_)
    return await exec_crud.save_exec(session, exec_)


@router.delete(
    "/{exec_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[RequireExec],
)
async def delete_exec(exec_id: int, session: SessionDep) -> Response:
    await exec_crud.delete_exec(session, exec_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
