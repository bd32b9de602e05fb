import pydantic
from pydantic import BaseModel

from campus.core.errors import ValidationError, errors_from_pydantic
from campus.schemas.ai import RecommendationRequest, SyllabusRequest
from campus.schemas.assignment import AssignmentCreate
from campus.schemas.course import CourseCreate, CourseUpdate
from campus.schemas.enrollment import EnrollmentCreate, EnrollmentStatusUpdate
from campus.schemas.submission import SubmissionCreate, SubmissionGradeUpdate
from campus.schemas.user import UserCreate

SCHEMAS: dict[str, type[BaseModel]] = {
    "user": UserCreate,
    "course": CourseCreate,
    "course_update": CourseUpdate,
    "enrollment": EnrollmentCreate,
    "enrollment_status": EnrollmentStatusUpdate,
    "assignment": AssignmentCreate,
    "submission": SubmissionCreate,
    "grade": SubmissionGradeUpdate,
    "recommendation": RecommendationRequest,
    "syllabus": SyllabusRequest,
}


def validate(kind: str, payload: dict | BaseModel) -> BaseModel:
    """Validate ``payload`` against the schema registered for ``kind``.

    Raises ValidationError listing every failing field, not just the first.
    """
    try:
        schema = SCHEMAS[kind]
    except KeyError:
        raise ValueError(f"Unknown entity kind: {kind}") from None

    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)

    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as exc:
        raise ValidationError(errors_from_pydantic(exc.errors())) from exc
