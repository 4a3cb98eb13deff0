"""Teacher CRUD operations."""
import datetime as dt
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school.app.db.crud._common import delete_by_id, flush_or_conflict, get_or_raise
from school.app.db.models import Teacher
from school.app.db.pagination import PaginatedQuery, apply_pagination

SORTABLE = {
    "id": Teacher.id,
    "first_name": Teacher.first_name,
    "last_name": Teacher.last_name,
    "email": Teacher.email,
    "subject": Teacher.subject,
    "hire_date": Teacher.hire_date,
    "created_at": Teacher.created_at,
}
SEARCHABLE = (Teacher.first_name, Teacher.last_name, Teacher.email, Teacher.subject)


async def create_teacher(
    session: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password_hash: str,
    subject: str,
    phone_number: str,
    hire_date: Optional[dt.date] = None,
) -> Teacher:
    """Insert a new teacher.

    Args:
        session: Database session from FastAPI dependency
        hire_date: Defaults to today when omitted

    Raises:
        ConflictError: Email or phone number already in use
    """
    teacher = Teacher(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=password_hash,
        subject=subject,
        phone_number=phone_number,
        hire_date=hire_date or dt.date.today(),
    )
    return await flush_or_conflict(
        session, teacher, "A teacher with this email or phone number already exists"
    )


async def list_teachers(session: AsyncSession, pq: PaginatedQuery) -> List[Teacher]:
    stmt = apply_pagination(select(Teacher), pq, SORTABLE, SEARCHABLE)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_teacher(session: AsyncSession, teacher_id: int) -> Teacher:
    return await get_or_raise(session, Teacher, teacher_id, "Teacher")


async def get_teacher_by_email(session: AsyncSession, email: str) -> Optional[Teacher]:
    result = await session.execute(select(Teacher).where(Teacher.email == email))
    return result.scalar_one_or_none()


async def save_teacher(session: AsyncSession, teacher: Teacher) -> Teacher:
    return await flush_or_conflict(
        session, teacher, "A teacher with this email or phone number already exists"
    )


async def delete_teacher(session: AsyncSession, teacher_id: int) -> None:
    await delete_by_id(session, Teacher, teacher_id, "Teacher")
