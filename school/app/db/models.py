import datetime as dt

from sqlalchemy import (
    BigInteger,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from school.app.db.base import Base

EXEC_ROLES = ("admin", "manager")
ATTENDANCE_STATUSES = ("present", "absent", "late", "excused")

# BIGSERIAL on PostgreSQL, plain INTEGER autoincrement on SQLite
IdType = BigInteger().with_variant(Integer(), "sqlite")


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TimestampMixin:
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class Exec(TimestampMixin, Base):
    __tablename__ = "execs"
    __table_args__ = (
        Index("idx_execs_email", "email", unique=True),
        Index("idx_execs_role", "role"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20), default="manager")  # admin | manager


class Teacher(TimestampMixin, Base):
    __tablename__ = "teachers"
    __table_args__ = (
        Index("idx_teachers_email", "email", unique=True),
        Index("idx_teachers_phone", "phone_number", unique=True),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(Text)
    last_name: Mapped[str] = mapped_column(Text)
    email: Mapped[str] = mapped_column(Text)
    password_hash: Mapped[str] = mapped_column(Text)
    subject: Mapped[str] = mapped_column(Text)
    phone_number: Mapped[str] = mapped_column(Text)
    hire_date: Mapped[dt.date] = mapped_column(Date, default=dt.date.today)

    @property
    def role(self) -> str:
        return "teacher"


class Student(TimestampMixin, Base):
    __tablename__ = "students"
    __table_args__ = (
        Index("idx_students_email", "email", unique=True),
        Index("idx_students_teacher_id", "teacher_id"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String(72))
    last_name: Mapped[str] = mapped_column(String(72))
    email: Mapped[str] = mapped_column(String(255))
    password_hash: Mapped[str] = mapped_column(String(255))
    phone_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    # "class" is a Python keyword, the column keeps its name
    class_name: Mapped[str] = mapped_column("class", String(10))
    birth_date: Mapped[dt.date] = mapped_column(Date)
    address: Mapped[str] = mapped_column(Text)
    parent_name: Mapped[str] = mapped_column(String(255))
    parent_phone_number: Mapped[str] = mapped_column(String(20))
    teacher_id: Mapped[int] = mapped_column(ForeignKey("teachers.id"))

    @property
    def role(self) -> str:
        return "student"


# Column is named "class", so the index is declared against the attribute
Index("idx_students_class", Student.class_name)


class Classroom(TimestampMixin, Base):
    __tablename__ = "classrooms"
    __table_args__ = (
        Index("idx_classrooms_name", "name"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100))
    capacity: Mapped[int] = mapped_column(Integer)
    grade: Mapped[int] = mapped_column(Integer)
    teacher_id: Mapped[int | None] = mapped_column(
        ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True
    )


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("student_id", "date", name="uq_attendance_student_date"),
        Index("idx_attendance_student_date", "student_id", "date"),
        Index("idx_attendance_classroom_date", "classroom_id", "date"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"))
    teacher_id: Mapped[int | None] = mapped_column(
        ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True
    )
    classroom_id: Mapped[int | None] = mapped_column(
        ForeignKey("classrooms.id", ondelete="SET NULL"), nullable=True
    )
    date: Mapped[dt.date] = mapped_column(Date)
    status: Mapped[str] = mapped_column(String(10), default="present")  # present | absent | late | excused
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
