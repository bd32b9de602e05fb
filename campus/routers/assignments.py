import logging

from fastapi import APIRouter, Depends, status

from campus.core.current_user import get_current_user
from campus.core.deps import get_storage
from campus.core.errors import Forbidden, NotFoundError
from campus.core.lifecycle import EnrollmentStatus
from campus.core.permissions import Action, ensure_course_staff, require_action
from campus.core.roles import Role
from campus.db.storage import DatabaseStorage
from campus.models.course import Course
from campus.models.user import User
from campus.schemas.assignment import AssignmentCreate, AssignmentRead
from campus.schemas.dashboard import AssignmentView
from campus.services.dashboard import extended_assignments

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_course_exists(storage: DatabaseStorage, course_id: int) -> Course:
    course = storage.get_course(course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


def ensure_approved_student(storage: DatabaseStorage, course_id: int, student_id: int) -> None:
    enrollment = storage.get_enrollment(course_id, student_id)
    if enrollment is None or enrollment.status != EnrollmentStatus.APPROVED.value:
        raise Forbidden("Not enrolled in this course")


def _ensure_can_view_course_assignments(storage: DatabaseStorage, course: Course, user: User) -> None:
    # Admins and the course lecturer can view
    if user.role == Role.ADMIN.value or course.lecturer_id == user.id:
        return

    # Approved students can view
    if user.role == Role.STUDENT.value:
        ensure_approved_student(storage, course.id, user.id)
        return

    raise Forbidden("Only the course lecturer can view these assignments")


@router.get("/courses/{course_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(
    course_id: int,
    storage: DatabaseStorage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    course = _ensure_course_exists(storage, course_id)
    _ensure_can_view_course_assignments(storage, course, current_user)

    return storage.get_assignments_by_course(course_id)


@router.post(
    "/courses/{course_id}/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    course_id: int,
    payload: AssignmentCreate,
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(require_action(Action.CREATE_ASSIGNMENT)),
):
    course = _ensure_course_exists(storage, course_id)
    ensure_course_staff(me, course)

    assignment = storage.create_assignment(course_id=course_id, **payload.model_dump())
    logger.info("User %s created assignment %s in course %s", me.id, assignment.id, course_id)
    return assignment


@router.get("/assignments/extended", response_model=list[AssignmentView])
def list_assignments_extended(
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    return extended_assignments(storage, me)
