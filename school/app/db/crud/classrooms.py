"""Classroom CRUD operations."""
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school.app.db.crud._common import delete_by_id, flush_or_conflict, get_or_raise
from school.app.db.models import Classroom
from school.app.db.pagination import PaginatedQuery, apply_pagination

SORTABLE = {
    "id": Classroom.id,
    "name": Classroom.name,
    "capacity": Classroom.capacity,
    "grade": Classroom.grade,
    "created_at": Classroom.created_at,
}
SEARCHABLE = (Classroom.name,)


async def create_classroom(
    session: AsyncSession,
    *,
    name: str,
    capacity: int,
    grade: int,
    teacher_id: Optional[int] = None,
) -> Classroom:
    classroom = Classroom(name=name, capacity=capacity, grade=grade, teacher_id=teacher_id)
    return await flush_or_conflict(session, classroom, "Unknown teacher for classroom")


async def list_classrooms(session: AsyncSession, pq: PaginatedQuery) -> List[Classroom]:
    """Paginated classrooms; ``pq.search`` matches the name case-insensitively."""
    stmt = apply_pagination(select(Classroom), pq, SORTABLE, SEARCHABLE)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_classroom(session: AsyncSession, classroom_id: int) -> Classroom:
    return await get_or_raise(session, Classroom, classroom_id, "Classroom")


async def save_classroom(session: AsyncSession, classroom: Classroom) -> Classroom:
    return await flush_or_conflict(session, classroom, "Unknown teacher for classroom")


async def delete_classroom(session: AsyncSession, classroom_id: int) -> None:
    await delete_by_id(session, Classroom, classroom_id, "Classroom")
