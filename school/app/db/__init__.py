"""Database package for the school API.

This package provides:
- ORM models (Exec, Teacher, Student, Classroom, AttendanceRecord)
- Async session management and the ``get_db`` FastAPI dependency
- CRUD operations under ``school.app.db.crud``
"""

from school.app.db.base import Base
from school.app.db.models import AttendanceRecord, Classroom, Exec, Student, Teacher
from school.app.db.async_session import (
    SessionDep,
    close_async_engine,
    get_async_engine,
    get_async_session,
    get_async_session_maker,
    get_db,
)

__all__ = [
    "Base",
    "Exec",
    "Teacher",
    "Student",
    "Classroom",
    "AttendanceRecord",
    "SessionDep",
    "close_async_engine",
    "get_async_engine",
    "get_async_session",
    "get_async_session_maker",
    "get_db",
]
