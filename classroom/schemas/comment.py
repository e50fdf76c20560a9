from datetime import datetime

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)


class CommentRead(BaseModel):
    id: int
    submission_id: int
    user_id: int
    content: str
    created_at: datetime

    class Config:
        from_attributes = True
