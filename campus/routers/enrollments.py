import logging

from fastapi import APIRouter, Depends, status

from campus.core.current_user import get_current_user
from campus.core.deps import get_storage
from campus.core.errors import ConflictError, NotFoundError, UniqueConstraintViolation
from campus.core.lifecycle import transition_enrollment
from campus.core.permissions import Action, is_allowed, require_action
from campus.db.storage import DatabaseStorage
from campus.models.user import User
from campus.schemas.enrollment import EnrollmentCreate, EnrollmentOut, EnrollmentStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=EnrollmentOut, status_code=status.HTTP_201_CREATED)
def enroll_me(
    payload: EnrollmentCreate,
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(require_action(Action.CREATE_ENROLLMENT)),
):
    course = storage.get_course(payload.course_id)
    if not course or not course.is_active:
        raise NotFoundError("Course not found")

    try:
        enrollment = storage.create_enrollment(course_id=payload.course_id, student_id=me.id)
    except UniqueConstraintViolation as exc:
        raise ConflictError("Already enrolled in this course") from exc

    logger.info("Student %s requested enrollment in course %s", me.id, course.id)
    return enrollment


@router.get("", response_model=list[EnrollmentOut])
def list_enrollments(
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    if is_allowed(me.role, Action.VIEW_PENDING_ENROLLMENTS):
        return storage.get_pending_enrollments()
    return storage.get_enrollments_by_student(me.id)


@router.get("/me", response_model=list[EnrollmentOut])
def my_enrollments(
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    return storage.get_enrollments_by_student(me.id)


@router.put("/{enrollment_id}", response_model=EnrollmentOut)
def update_enrollment_status(
    enrollment_id: int,
    payload: EnrollmentStatusUpdate,
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(require_action(Action.UPDATE_ENROLLMENT_STATUS)),
):
    enrollment = storage.get_enrollment_by_id(enrollment_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found")

    new_status = transition_enrollment(enrollment.status, payload.status)
    enrollment = storage.update_enrollment_status(enrollment_id, new_status)
    logger.info("Admin %s set enrollment %s to %s", me.id, enrollment_id, new_status.value)
    return enrollment
