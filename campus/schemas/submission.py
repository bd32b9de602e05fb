from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from campus.core.lifecycle import SubmissionStatus


class SubmissionCreate(BaseModel):
    content: Optional[str] = None


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    content: Optional[str]
    file_path: Optional[str] = None
    submitted_at: datetime
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_at: Optional[datetime] = None
    status: SubmissionStatus

    class Config:
        from_attributes = True


class SubmissionGradeUpdate(BaseModel):
    grade: float = Field(ge=0)
    feedback: Optional[str] = None
