"""Attendance endpoints for execs and teachers."""

import datetime as dt
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from school.app.api.schemas import AttendanceBulkMark, AttendanceMark, AttendanceRead
from school.app.core.logging import get_log_context, get_logger
from school.app.db.async_session import SessionDep
from school.app.db.crud import attendance as attendance_crud
from school.app.db.models import AttendanceRecord
from school.app.middleware.auth import STAFF_ROLES, CurrentUser, require_role

router = APIRouter(prefix="/attendance", tags=["attendance"])
logger = get_logger(__name__)

StaffDep = Annotated[CurrentUser, Depends(require_role(*STAFF_ROLES))]


def _marking_teacher(user: CurrentUser, requested: Optional[int]) -> Optional[int]:
    # Teachers record attendance under their own id unless one is given
    if requested is None and user.role == "teacher":
        return user.id
    return requested


@router.post("", response_model=AttendanceRead, status_code=status.HTTP_201_CREATED)
async def mark_attendance(data: AttendanceMark, session: SessionDep, user: StaffDep) -> AttendanceRecord:
    """Create or update one student's attendance for a day."""
    return await attendance_crud.mark_attendance(
        session,
        student_id=data.student_id,
        day=data.date,
        status=data.status,
        teacher_id=_marking_teacher(user, data.teacher_id),
        classroom_id=data.classroom_id,
        note=data.note,
    )


@router.post("/bulk", status_code=status.HTTP_204_NO_CONTENT)
async def bulk_mark_attendance(data: AttendanceBulkMark, session: SessionDep, user: StaffDep) -> Response:
    """Mark a whole classroom for one day in a single transaction."""
    written = await attendance_crud.bulk_mark_attendance(
        session,
        classroom_id=data.classroom_id,
        day=data.date,
        statuses=data.statuses,
        teacher_id=_marking_teacher(user, None),
    )
    logger.info(
        f"Bulk marked {written} students for classroom {data.classroom_id} on {data.date}",
        extra=get_log_context(user_id=user.id, role=user.role, classroom_id=data.classroom_id),
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/students/{student_id}", response_model=List[AttendanceRead])
async def list_student_attendance(
    student_id: int,
    session: SessionDep,
    user: StaffDep,
    date_from: Annotated[Optional[dt.date], Query(alias="from")] = None,
    date_to: Annotated[Optional[dt.date], Query(alias="to")] = None,
) -> List[AttendanceRecord]:
    """A student's records, optionally limited to an inclusive date range."""
    return await attendance_crud.list_attendance_by_student(
        session, student_id, date_from, date_to
    )


@router.get("/classrooms/{classroom_id}", response_model=List[AttendanceRead])
async def list_classroom_attendance(
    classroom_id: int,
    session: SessionDep,
    user: StaffDep,
    day: Annotated[dt.date, Query(alias="date")],
) -> List[AttendanceRecord]:
    return await attendance_crud.list_attendance_by_classroom_date(session, classroom_id, day)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(record_id: int, session: SessionDep, user: StaffDep) -> Response:
    await attendance_crud.delete_attendance(session, record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
