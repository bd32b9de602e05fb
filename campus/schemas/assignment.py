from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AssignmentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: datetime
    max_points: int = Field(default=100, gt=0)
    weight: int = Field(ge=0, le=100)
    file_required: bool = False


class AssignmentRead(BaseModel):
    id: int
    course_id: int
    title: str
    description: Optional[str]
    due_date: datetime
    max_points: int
    weight: int
    file_required: bool
    created_at: datetime

    class Config:
        from_attributes = True
