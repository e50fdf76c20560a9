from datetime import datetime

from pydantic import BaseModel, Field


class ClassCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    weeks: int = Field(default=1, ge=1)
    grade_level: str = ""
    objectives: list[str] = []


class ClassActiveUpdate(BaseModel):
    is_active: bool


class ClassRead(BaseModel):
    id: int
    title: str
    description: str
    weeks: int
    grade_level: str
    objectives: list[str]
    teacher_id: int
    enrollment_code: str
    is_active: bool
    created_at: datetime
    enrollment_count: int | None = None

    class Config:
        from_attributes = True
