"""Student CRUD operations."""
import datetime as dt
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from school.app.db.crud._common import delete_by_id, flush_or_conflict, get_or_raise
from school.app.db.models import Student
from school.app.db.pagination import PaginatedQuery, apply_pagination

SORTABLE = {
    "id": Student.id,
    "first_name": Student.first_name,
    "last_name": Student.last_name,
    "email": Student.email,
    "class": Student.class_name,
    "birth_date": Student.birth_date,
    "teacher_id": Student.teacher_id,
    "created_at": Student.created_at,
}
SEARCHABLE = (Student.first_name, Student.last_name, Student.email)


async def create_student(
    session: AsyncSession,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password_hash: str,
    class_name: str,
    birth_date: dt.date,
    address: str,
    parent_name: str,
    parent_phone_number: str,
    teacher_id: int,
    phone_number: Optional[str] = None,
) -> Student:
    """Insert a new student.

    Raises:
        ConflictError: Email already registered or unknown teacher_id
    """
    student = Student(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=password_hash,
        phone_number=phone_number,
        class_name=class_name,
        birth_date=birth_date,
        address=address,
        parent_name=parent_name,
        parent_phone_number=parent_phone_number,
        teacher_id=teacher_id,
    )
    return await flush_or_conflict(
        session, student, "A student with this email already exists or the teacher is unknown"
    )


async def list_students(session: AsyncSession, pq: PaginatedQuery) -> List[Student]:
    stmt = apply_pagination(select(Student), pq, SORTABLE, SEARCHABLE)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_students_by_teacher(session: AsyncSession, teacher_id: int) -> List[Student]:
    """All students assigned to a teacher, ordered by id."""
    result = await session.execute(
        select(Student).where(Student.teacher_id == teacher_id).order_by(Student.id)
    )
    return list(result.scalars().all())


async def get_student(session: AsyncSession, student_id: int) -> Student:
    return await get_or_raise(session, Student, student_id, "Student")


async def get_student_by_email(session: AsyncSession, email: str) -> Optional[Student]:
    result = await session.execute(select(Student).where(Student.email == email))
    return result.scalar_one_or_none()


async def save_student(session: AsyncSession, student: Student) -> Student:
    return await flush_or_conflict(
        session, student, "A student with this email already exists or the teacher is unknown"
    )


async def delete_student(session: AsyncSession, student_id: int) -> None:
    await delete_by_id(session, Student, student_id, "Student")
