from pydantic import BaseModel, Field
from datetime import datetime
from typing import Literal, Optional

from classroom.schemas.submission import SubmissionRead

AssignmentType = Literal["text", "gis", "mixed"]


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    type: AssignmentType = "text"
    points: int = Field(default=100, ge=0)
    due_date: Optional[datetime] = None
    unit_id: Optional[int] = None


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[AssignmentType] = None
    points: Optional[int] = Field(default=None, ge=0)
    due_date: Optional[datetime] = None
    unit_id: Optional[int] = None
    is_active: Optional[bool] = None


class PublishUpdate(BaseModel):
    is_published: bool


class AssignmentRead(BaseModel):
    id: int
    class_id: int
    unit_id: Optional[int]
    title: str
    description: str
    type: str
    points: int
    due_date: Optional[datetime]
    is_active: bool
    is_published: bool
    created_at: datetime

    class Config:
        from_attributes = True


class StudentAssignmentRead(AssignmentRead):
    submission: Optional[SubmissionRead] = None
