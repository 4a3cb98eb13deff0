"""Request and response schemas shared by the API routers.

Update schemas carry only optional fields. ``apply_to`` copies the fields
the client actually sent onto a loaded ORM row, one assignment per field;
fields left out of the request body are not touched.
"""

import datetime as dt
from typing import Annotated, Dict, Generic, Literal, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field

from school.app.core.security import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH, hash_password
from school.app.db.models import Classroom, Exec, Student, Teacher

ExecRole = Literal["admin", "manager"]
AttendanceStatus = Literal["present", "absent", "late", "excused"]

Password = Annotated[str, Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)]


class BaseSchema(BaseModel):
    """Base schema with attribute extraction enabled."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Execs
# ---------------------------------------------------------------------------

class ExecRead(BaseSchema):
    id: int
    first_name: str
    last_name: str
    email: str
    role: ExecRole
    created_at: dt.datetime
    updated_at: dt.datetime


class ExecCreate(BaseSchema):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: Password
    role: ExecRole = "manager"


class ExecUpdate(BaseSchema):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[Password] = None
    role: Optional[ExecRole] = None

    def apply_to(self, exec_: Exec) -> Exec:
        sent = self.model_fields_set
        if "first_name" in sent and self.first_name is not None:
            exec_.first_name = self.first_name
        if "last_name" in sent and self.last_name is not None:
            exec_.last_name = self.last_name
        if "email" in sent and self.email is not None:
            exec_.email = self.email
        if "password" in sent and self.password is not None:
            exec_.password_hash = hash_password(self.password)
        if "role" in sent and self.role is not None:
            exec_.role = self.role
        return exec_


# ---------------------------------------------------------------------------
# Teachers
# ---------------------------------------------------------------------------

class TeacherRead(BaseSchema):
    id: int
    first_name: str
    last_name: str
    email: str
    subject: str
    phone_number: str
    hire_date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime


class TeacherCreate(BaseSchema):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: Password
    subject: str = Field(min_length=1, max_length=100)
    phone_number: str = Field(min_length=3, max_length=20)
    hire_date: Optional[dt.date] = None


class TeacherUpdate(BaseSchema):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[Password] = None
    subject: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, min_length=3, max_length=20)
    hire_date: Optional[dt.date] = None

    def apply_to(self, teacher: Teacher) -> Teacher:
        sent = self.model_fields_set
        if "first_name" in sent and self.first_name is not None:
            teacher.first_name = self.first_name
        if "last_name" in sent and self.last_name is not None:
            teacher.last_name = self.last_name
        if "email" in sent and self.email is not None:
            teacher.email = self.email
        if "password" in sent and self.password is not None:
            teacher.password_hash = hash_password(self.password)
        if "subject" in sent and self.subject is not None:
            teacher.subject = self.subject
        if "phone_number" in sent and self.phone_number is not None:
            teacher.phone_number = self.phone_number
        if "hire_date" in sent and self.hire_date is not None:
            teacher.hire_date = self.hire_date
        return teacher


# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------

# Exposed to clients as "class"; accepted under either name.
_class_field = dict(
    validation_alias=AliasChoices("class", "class_name"),
    serialization_alias="class",
)


class StudentRead(BaseSchema):
    id: int
    first_name: str
    last_name: str
    email: str
    phone_number: Optional[str] = None
    class_name: str = Field(**_class_field)
    birth_date: dt.date
    address: str
    parent_name: str
    parent_phone_number: str
    teacher_id: int
    created_at: dt.datetime
    updated_at: dt.datetime


class StudentCreate(BaseSchema):
    first_name: str = Field(min_length=1, max_length=72)
    last_name: str = Field(min_length=1, max_length=72)
    email: EmailStr
    password: Password
    phone_number: Optional[str] = Field(default=None, max_length=20)
    class_name: str = Field(min_length=1, max_length=10, **_class_field)
    birth_date: dt.date
    address: str = Field(min_length=1)
    parent_name: str = Field(min_length=1, max_length=255)
    parent_phone_number: str = Field(min_length=3, max_length=20)
    teacher_id: int = Field(gt=0)


class StudentUpdate(BaseSchema):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=72)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=72)
    email: Optional[EmailStr] = None
    password: Optional[Password] = None
    phone_number: Optional[str] = Field(default=None, max_length=20)
    class_name: Optional[str] = Field(default=None, min_length=1, max_length=10, **_class_field)
    birth_date: Optional[dt.date] = None
    address: Optional[str] = Field(default=None, min_length=1)
    parent_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    parent_phone_number: Optional[str] = Field(default=None, min_length=3, max_length=20)
    teacher_id: Optional[int] = Field(default=None, gt=0)

    def apply_to(self, student: Student) -> Student:
        sent = self.model_fields_set
        if "first_name" in sent and self.first_name is not None:
            student.first_name = self.first_name
        if "last_name" in sent and self.last_name is not None:
            student.last_name = self.last_name
        if "email" in sent and self.email is not None:
            student.email = self.email
        if "password" in sent and self.password is not None:
            student.password_hash = hash_password(self.password)
        # phone_number is nullable, so an explicit null clears it
        if "phone_number" in sent:
            student.phone_number = self.phone_number
        if "class_name" in sent and self.class_name is not None:
            student.class_name = self.class_name
        if "birth_date" in sent and self.birth_date is not None:
            student.birth_date = self.birth_date
        if "address" in sent and self.address is not None:
            student.address = self.address
        if "parent_name" in sent and self.parent_name is not None:
            student.parent_name = self.parent_name
        if "parent_phone_number" in sent and self.parent_phone_number is not None:
            student.parent_phone_number = self.parent_phone_number
        if "teacher_id" in sent and self.teacher_id is not None:
            student.teacher_id = self.teacher_id
        return student


# ---------------------------------------------------------------------------
# Classrooms
# ---------------------------------------------------------------------------

class ClassroomRead(BaseSchema):
    id: int
    name: str
    capacity: int
    grade: int
    teacher_id: Optional[int] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class ClassroomCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    capacity: int = Field(gt=0)
    grade: int = Field(ge=0)
    teacher_id: Optional[int] = Field(default=None, gt=0)


class ClassroomUpdate(BaseSchema):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    capacity: Optional[int] = Field(default=None, gt=0)
    grade: Optional[int] = Field(default=None, ge=0)
    teacher_id: Optional[int] = Field(default=None, gt=0)

    def apply_to(self, classroom: Classroom) -> Classroom:
        sent = self.model_fields_set
        if "name" in sent and self.name is not None:
            classroom.name = self.name
        if "capacity" in sent and self.capacity is not None:
            classroom.capacity = self.capacity
        if "grade" in sent and self.grade is not None:
            classroom.grade = self.grade
        # nullable: an explicit null unassigns the teacher
        if "teacher_id" in sent:
            classroom.teacher_id = self.teacher_id
        return classroom


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------

class AttendanceRead(BaseSchema):
    id: int
    student_id: int
    teacher_id: Optional[int] = None
    classroom_id: Optional[int] = None
    date: dt.date
    status: AttendanceStatus
    note: Optional[str] = None
    created_at: dt.datetime


class AttendanceMark(BaseSchema):
    student_id: int = Field(gt=0)
    date: dt.date
    status: AttendanceStatus = "present"
    teacher_id: Optional[int] = Field(default=None, gt=0)
    classroom_id: Optional[int] = Field(default=None, gt=0)
    note: Optional[str] = None


class AttendanceBulkMark(BaseSchema):
    classroom_id: int = Field(gt=0)
    date: dt.date
    statuses: Dict[int, AttendanceStatus] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

EntityT = TypeVar("EntityT")


class LoginRequest(BaseSchema):
    email: EmailStr
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class AuthResponse(BaseModel, Generic[EntityT]):
    """An authenticated entity with its bearer token."""

    entity: EntityT
    token: str

