from datetime import datetime

from pydantic import BaseModel

from campus.core.lifecycle import EnrollmentStatus


class EnrollmentCreate(BaseModel):
    course_id: int


class EnrollmentStatusUpdate(BaseModel):
    status: EnrollmentStatus


class EnrollmentOut(BaseModel):
    id: int
    student_id: int
    course_id: int
    status: EnrollmentStatus
    enrolled_at: datetime

    class Config:
        from_attributes = True
