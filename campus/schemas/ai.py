from pydantic import BaseModel, Field


class RecommendationRequest(BaseModel):
    interests: str = Field(min_length=1)
    level: str = "any"


class SyllabusRequest(BaseModel):
    course_title: str = Field(min_length=1, max_length=255)
    course_description: str = Field(min_length=1)
    duration: int = Field(ge=1, le=52)
    credits: int = Field(ge=1, le=10)
