from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from classroom.schemas.grade import GradeRead


class SubmissionCreate(BaseModel):
    written_response: Optional[str] = None
    map_data: Optional[dict[str, Any]] = None
    attachments: list[str] = []
    # False saves a draft, True finalises the attempt
    finalize: bool = False


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    written_response: Optional[str]
    map_data: Optional[dict[str, Any]] = None
    attachments: Optional[list[str]] = None
    status: str
    submitted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    grade: Optional[GradeRead] = None

    class Config:
        from_attributes = True


class GradingSummary(BaseModel):
    pending: int
    completed: int
