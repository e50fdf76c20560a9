from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class GradeCreate(BaseModel):
    score: float = Field(ge=0)
    max_score: float = Field(gt=0)
    feedback: Optional[str] = None
    rubric: Optional[dict[str, float]] = None


class GradeRead(BaseModel):
    id: int
    submission_id: int
    score: float
    max_score: float
    feedback: Optional[str] = None
    rubric: Optional[dict[str, float]] = None
    graded_by: int
    graded_at: datetime

    class Config:
        from_attributes = True
