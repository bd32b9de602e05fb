import logging
from typing import Optional

from fastapi import APIRouter, Depends, status

from campus.core.current_user import get_current_user, get_optional_user
from campus.core.deps import get_storage
from campus.core.errors import Forbidden, NotFoundError, ValidationError
from campus.core.permissions import Action, ensure_course_staff, require_action
from campus.core.roles import Role
from campus.db.storage import DatabaseStorage
from campus.models.course import Course
from campus.models.user import User
from campus.schemas.course import CourseCreate, CourseRead, CourseUpdate
from campus.schemas.dashboard import CourseView
from campus.services.dashboard import extended_courses

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_course_exists(storage: DatabaseStorage, course_id: int) -> Course:
    course = storage.get_course(course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


def _ensure_lecturer(storage: DatabaseStorage, lecturer_id: int) -> None:
    lecturer = storage.get_user(lecturer_id)
    if lecturer is None or lecturer.role != Role.LECTURER.value:
        raise ValidationError.single("lecturer_id", "lecturer_id must reference a lecturer")


def _can_see_inactive(user: Optional[User], course: Course) -> bool:
    if user is None:
        return False
    if user.role == Role.ADMIN.value:
        return True
    return user.role == Role.LECTURER.value and course.lecturer_id == user.id


@router.get("", response_model=list[CourseRead])
def list_courses(
    department: Optional[str] = None,
    storage: DatabaseStorage = Depends(get_storage),
):
    if department:
        return storage.get_courses_by_department(department)
    return storage.get_all_courses()


@router.get("/extended", response_model=list[CourseView])
def list_courses_extended(
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    return extended_courses(storage, me)


@router.get("/{course_id}", response_model=CourseRead)
def get_course(
    course_id: int,
    storage: DatabaseStorage = Depends(get_storage),
    me: Optional[User] = Depends(get_optional_user),
):
    course = _ensure_course_exists(storage, course_id)
    if not course.is_active and not _can_see_inactive(me, course):
        raise NotFoundError("Course not found")
    return course


@router.post("", response_model=CourseRead, status_code=status.HTTP_201_CREATED)
def create_course(
    payload: CourseCreate,
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(require_action(Action.CREATE_COURSE)),
):
    fields = payload.model_dump()
    if me.role == Role.LECTURER.value:
        # lecturers always teach the courses they create
        fields["lecturer_id"] = me.id
    elif fields.get("lecturer_id") is not None:
        _ensure_lecturer(storage, fields["lecturer_id"])

    course = storage.create_course(**fields)
    logger.info("User %s created course %s (%s)", me.id, course.id, course.code)
    return course


@router.put("/{course_id}", response_model=CourseRead)
def update_course(
    course_id: int,
    payload: CourseUpdate,
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(require_action(Action.UPDATE_COURSE)),
):
    course = _ensure_course_exists(storage, course_id)
    ensure_course_staff(me, course)

    changes = payload.model_dump(exclude_unset=True)
    for required in ("title", "code", "credits", "department", "is_active"):
        if required in changes and changes[required] is None:
            raise ValidationError.single(required, f"{required} cannot be null")
    if "lecturer_id" in changes and changes["lecturer_id"] != course.lecturer_id:
        if me.role != Role.ADMIN.value:
            raise Forbidden("Only admins can reassign a course")
        if changes["lecturer_id"] is not None:
            _ensure_lecturer(storage, changes["lecturer_id"])

    return storage.update_course(course_id, changes)
