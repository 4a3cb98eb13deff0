"""Teacher endpoints."""

from typing import List

from fastapi import APIRouter, Response, status

from school.app.api.auth import auth_response, authenticate
from school.app.api.deps import CacheDep, PaginationDep
from school.app.api.schemas import (
    AuthResponse,
    LoginRequest,
    StudentRead,
    TeacherCreate,
    TeacherRead,
    TeacherUpdate,
)
from school.app.core.config import settings
from school.app.core.security import hash_password
from school.app.db.async_session import SessionDep
from school.app.db.crud import students as student_crud
from school.app.db.crud import teachers as teacher_crud
from school.app.exceptions import NotFoundError
from school.app.middleware.auth import RequireExec
from school.app.services.list_cache import (
    ListCache,
    get_list_with_cache,
    get_students_by_teacher_with_cache,
)

router = APIRouter(prefix="/teachers", tags=["teachers"])


@router.post("/login", response_model=AuthResponse[TeacherRead])
async def login_teacher(data: LoginRequest, session: SessionDep) -> dict:
    teacher = await authenticate(
        lambda email: teacher_crud.get_teacher_by_email(session, email),
        data.email,
        data.password,
    )
    return auth_response(teacher, TeacherRead)


@router.post(
    "",
    response_model=TeacherRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[RequireExec],
)
async def create_teacher(data: TeacherCreate, session: SessionDep):
    return await teacher_crud.create_teacher(
        session,
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password_hash=hash_password(data.password),
        subject=data.subject,
        phone_number=data.phone_number,
        hire_date=data.hire_date,
    )


@router.get("", response_model=List[TeacherRead], dependencies=[RequireExec])
async def list_teachers(session: SessionDep, pq: PaginationDep, cache: CacheDep) -> List[TeacherRead]:
    """List teachers, served from the list cache when enabled."""
    async def fetch() -> List[TeacherRead]:
        rows = await teacher_crud.list_teachers(session, pq)
        return [TeacherRead.model_validate(row) for row in rows]

    if cache is None:
        return await fetch()
    store = ListCache(cache, TeacherRead, settings.cache_list_ttl_seconds)
    return await get_list_with_cache(store, "teachers:list", pq.cache_params(), fetch)


@router.get("/{teacher_id}", response_model=TeacherRead, dependencies=[RequireExec])
async def get_teacher(teacher_id: int, session: SessionDep):
    return await teacher_crud.get_teacher(session, teacher_id)


@router.get(
    "/{teacher_id}/students",
    response_model=List[StudentRead],
    dependencies=[RequireExec],
)
async def list_teacher_students(teacher_id: int, session: SessionDep, cache: CacheDep) -> List[StudentRead]:
    """Students assigned to a teacher; 404 when there are none."""
    async def fetch() -> List[StudentRead]:
        rows = await student_crud.list_students_by_teacher(session, teacher_id)
        return [StudentRead.model_validate(row) for row in rows]

    if cache is None:
        students = await fetch()
    else:
        store = ListCache(cache, StudentRead, settings.cache_list_ttl_seconds)
        students = await get_students_by_teacher_with_cache(store, teacher_id, fetch)

    if not students:
        raise NotFoundError("Students for teacher", teacher_id)
    return students


@router.patch("/{teacher_id}", response_model=TeacherRead, dependencies=[RequireExec])
async def update_teacher(teacher_id: int, data: TeacherUpdate, session: SessionDep):
    teacher = await teacher_crud.get_teacher(session, teacher_id)
    data.apply_to(teacher)
    return await teacher_crud.save_teacher(session, teacher)


@router.delete(
    "/{teacher_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[RequireExec],
)
async def delete_teacher(teacher_id: int, session: SessionDep) -> Response:
    await teacher_crud.delete_teacher(session, teacher_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
