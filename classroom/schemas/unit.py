from datetime import datetime

from pydantic import BaseModel, Field


class UnitCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    order: int = 0


class UnitRead(BaseModel):
    id: int
    class_id: int
    title: str
    description: str | None
    order: int
    created_at: datetime

    class Config:
        from_attributes = True
