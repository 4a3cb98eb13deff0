"""Student endpoints."""

from typing import List

from fastapi import APIRouter, Response, status

from school.app.api.auth import auth_response, authenticate
from school.app.api.deps import CacheDep, PaginationDep
from school.app.api.schemas import (
    AuthResponse,
    LoginRequest,
    StudentCreate,
    StudentRead,
    StudentUpdate,
)
from school.app.core.config import settings
from school.app.core.security import hash_password
from school.app.db.async_session import SessionDep
from school.app.db.crud import students as student_crud
from school.app.middleware.auth import RequireExec
from school.app.services.list_cache import ListCache, get_list_with_cache

router = APIRouter(prefix="/students", tags=["students"])


@router.post("/login", response_model=AuthResponse[StudentRead])
async def login_student(data: LoginRequest, session: SessionDep) -> dict:
    student = await authenticate(
        lambda email: student_crud.get_student_by_email(session, email),
        data.email,
        data.password,
    )
    return auth_response(student, StudentRead)


@router.post(
    "",
    response_model=StudentRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[RequireExec],
)
async def create_student(data: StudentCreate, session: SessionDep):
    return await student_crud.create_student(
        session,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password_hash=hash_password(data.password),
        phone_number=data.phone_number,
        class_name=data.class_name,
        birth_date=data.birth_date,
        address=data.address,
        parent_name=data.parent_name,
        parent_phone_number=data.parent_phone_number,
        teacher_id=data.teacher_id,
    )


@router.get("", response_model=List[StudentRead], dependencies=[RequireExec])
async def list_students(session: SessionDep, pq: PaginationDep, cache: CacheDep) -> List[StudentRead]:
    """List students, served from the list cache when enabled."""
    async def fetch() -> List[StudentRead]:
        rows = await student_crud.list_students(session, pq)
        return [StudentRead.model_validate(row) for row in rows]

    if cache is None:
        return await fetch()
    store = ListCache(cache, StudentRead, settings.cache_list_ttl_seconds)
    return await get_list_with_cache(store, "students:list", pq.cache_params(), fetch)


@router.get("/{student_id}", response_model=StudentRead, dependencies=[RequireExec])
async def get_student(student_id: int, session: SessionDep):
    return await student_crud.get_student(session, student_id)


@router.patch("/{student_id}", response_model=StudentRead, dependencies=[RequireExec])
async def update_student(student_id: int, data: StudentUpdate, session: SessionDep):
    student = await student_crud.get_student(session, student_id)
    data.apply_to(student)
    return await student_crud.save_student(session, student)


@router.delete(
    "/{student_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[RequireExec],
)
async def delete_student(student_id: int, session: SessionDep) -> Response:
    await student_crud.delete_student(session, student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
