from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MissingSubmissionRow(BaseModel):
    student_id: int
    username: str
    first_name: str
    last_name: str
    name: str
    email: Optional[str] = None
    enrolled_at: datetime
    due_date: Optional[datetime] = None
    assignment_title: str
    days_overdue: Optional[int] = None
