"""Attendance CRUD operations.

A student has at most one record per calendar day; marking the same day
again updates that record in place.
"""
import datetime as dt
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from school.app.db.crud._common import delete_by_id
from school.app.db.models import AttendanceRecord
from school.app.exceptions import ConflictError


def to_day(value: dt.date | dt.datetime) -> dt.date:
    """Truncate a timestamp to its UTC calendar day."""
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.date()
    return value


def _clean_note(note: Optional[str]) -> Optional[str]:
    if note is None or not note.strip():
        return None
    return note


async def _find(
    session: AsyncSession, student_id: int, day: dt.date
) -> Optional[AttendanceRecord]:
    result = await session.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.student_id == student_id,
            AttendanceRecord.date == day,
        )
    )
    return result.scalar_one_or_none()


async def mark_attendance(
    session: AsyncSession,
    *,
    student_id: int,
    day: dt.date | dt.datetime,
    status: str,
    teacher_id: Optional[int] = None,
    classroom_id: Optional[int] = None,
    note: Optional[str] = None,
) -> AttendanceRecord:
    """Insert or update the record for (student_id, day).

    Args:
        session: Database session from FastAPI dependency
        day: Date of attendance; datetimes are truncated to the UTC day
        note: Blank notes are stored as NULL

    Returns:
        The inserted or updated record

    Raises:
        ConflictError: Unknown student, teacher or classroom
    """
    day = to_day(day)
    record = await _find(session, student_id, day)
    if record is None:
        record = AttendanceRecord(student_id=student_id, date=day)
        session.add(record)

    record.teacher_id = teacher_id
    record.classroom_id = classroom_id
    record.status = status
    record.note = _clean_note(note)

    try:
        await session.flush()
    except IntegrityError as e:
        raise ConflictError("Attendance references an unknown student, teacher or classroom") from e
    await session.refresh(record)
    return record


async def bulk_mark_attendance(
    session: AsyncSession,
    *,
    classroom_id: int,
    day: dt.date | dt.datetime,
    statuses: Dict[int, str],
    teacher_id: Optional[int] = None,
) -> int:
    """Mark many students for one classroom and day in a single transaction.

    Runs inside the caller's transaction, so a failure for any student
    rolls back the whole batch. Existing records keep their teacher; notes
    are cleared.

    Returns:
        Number of records written
    """
    if not statuses:
        return 0

    day = to_day(day)
    for student_id, status in statuses.items():
        record = await _find(session, student_id, day)
        if record is None:
            session.add(AttendanceRecord(
                student_id=student_id,
                teacher_id=teacher_id,
                classroom_id=classroom_id,
                date=day,
                status=status,
            ))
        else:
            record.classroom_id = classroom_id
            record.status = status
            record.note = None
        try:
            await session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"Attendance for student {student_id} references an unknown row"
            ) from e
    return len(statuses)


async def list_attendance_by_student(
    session: AsyncSession,
    student_id: int,
    date_from: Optional[dt.date] = None,
    date_to: Optional[dt.date] = None,
) -> List[AttendanceRecord]:
    """Records for a student, optionally bounded by inclusive dates, oldest first."""
    stmt = select(AttendanceRecord).where(AttendanceRecord.student_id == student_id)
    if date_from is not None:
        stmt = stmt.where(AttendanceRecord.date >= to_day(date_from))
    if date_to is not None:
        stmt = stmt.where(AttendanceRecord.date <= to_day(date_to))
    result = await session.execute(stmt.order_by(AttendanceRecord.date.asc()))
    return list(result.scalars().all())


async def list_attendance_by_classroom_date(
    session: AsyncSession,
    classroom_id: int,
    day: dt.date | dt.datetime,
) -> List[AttendanceRecord]:
    """Records for a classroom on one day, ordered by student id."""
    result = await session.execute(
        select(AttendanceRecord)
        .where(
            AttendanceRecord.classroom_id == classroom_id,
            AttendanceRecord.date == to_day(day),
        )
        .order_by(AttendanceRecord.student_id.asc())
    )
    return list(result.scalars().all())


async def delete_attendance(session: AsyncSession, record_id: int) -> None:
    await delete_by_id(session, AttendanceRecord, record_id, "Attendance record")
