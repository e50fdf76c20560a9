from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from classroom.schemas.user import StudentSummary


class EnrollmentCreate(BaseModel):
    student_id: int


class CodeRedeem(BaseModel):
    code: str = Field(min_length=1, max_length=16)
    as_role: Literal["student", "teacher"] | None = None


class EnrollmentOut(BaseModel):
    id: int
    student_id: int
    class_id: int
    enrolled_at: datetime

    class Config:
        from_attributes = True


class CoTeacherOut(BaseModel):
    id: int
    teacher_id: int
    class_id: int
    added_at: datetime

    class Config:
        from_attributes = True


class RedeemResult(BaseModel):
    role: Literal["student", "teacher"]
    class_id: int
    enrollment: EnrollmentOut | None = None
    co_teacher: CoTeacherOut | None = None


class RosterRow(BaseModel):
    enrollment_id: int
    enrolled_at: datetime
    student: StudentSummary
