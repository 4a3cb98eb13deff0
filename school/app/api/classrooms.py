"""Classroom endpoints (admin and manager only, not cached)."""

from typing import List

from fastapi import APIRouter, Response, status

from school.app.api.deps import PaginationDep
from school.app.api.schemas import ClassroomCreate, ClassroomRead, ClassroomUpdate
from school.app.db.async_session import SessionDep
from school.app.db.crud import classrooms as classroom_crud
from school.app.db.models import Classroom
from school.app.middleware.auth import RequireExec

router = APIRouter(prefix="/classrooms", tags=["classrooms"], dependencies=[RequireExec])


@router.post("", response_model=ClassroomRead, status_code=status.HTTP_201_CREATED)
async def create_classroom(data: ClassroomCreate, session: SessionDep) -> Classroom:
    return await classroom_crud.create_classroom(
        session,
        name=data.name,
        capacity=data.capacity,
        grade=data.grade,
        teacher_id=data.teacher_id,
    )


@router.get("", response_model=List[ClassroomRead])
async def list_classrooms(session: SessionDep, pq: PaginationDep) -> List[Classroom]:
    """Paginated classrooms; ``search`` matches the name."""
    return await classroom_crud.list_classrooms(session, pq)


@router.get("/{classroom_id}", response_model=ClassroomRead)
async def get_classroom(classroom_id: int, session: SessionDep) -> Classroom:
    return await classroom_crud.get_classroom(session, classroom_id)


@router.patch("/{classroom_id}", response_model=ClassroomRead)
async def update_classroom(classroom_id: int, data: ClassroomUpdate, session: SessionDep) -> Classroom:
    classroom = await classroom_crud.get_classroom(session, classroom_id)
    data.apply_to(classroom)
    return await classroom_crud.save_classroom(session, classroom)


@router.delete("/{classroom_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_classroom(classroom_id: int, session: SessionDep) -> Response:
    await classroom_crud.delete_classroom(session, classroom_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
