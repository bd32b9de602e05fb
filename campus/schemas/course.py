from datetime import datetime

from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    code: str = Field(min_length=2, max_length=20)
    description: str | None = None
    credits: int = Field(ge=1, le=10)
    department: str = Field(min_length=1, max_length=100)
    lecturer_id: int | None = None
    syllabus_url: str | None = Field(default=None, max_length=500)
    is_active: bool = True


class CourseUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    code: str | None = Field(default=None, min_length=2, max_length=20)
    description: str | None = None
    credits: int | None = Field(default=None, ge=1, le=10)
    department: str | None = Field(default=None, min_length=1, max_length=100)
    lecturer_id: int | None = None
    syllabus_url: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


class CourseRead(BaseModel):
    id: int
    title: str
    code: str
    description: str | None = None
    credits: int
    department: str
    lecturer_id: int | None = None
    syllabus_url: str | None = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
