import enum

from fastapi import Depends

from campus.core.current_user import get_current_user
from campus.core.errors import Forbidden
from campus.core.roles import Role
from campus.models.course import Course
from campus.models.user import User


class Action(str, enum.Enum):
    CREATE_ENROLLMENT = "create_enrollment"
    UPDATE_ENROLLMENT_STATUS = "update_enrollment_status"
    VIEW_PENDING_ENROLLMENTS = "view_pending_enrollments"
    CREATE_COURSE = "create_course"
    UPDATE_COURSE = "update_course"
    CREATE_ASSIGNMENT = "create_assignment"
    SUBMIT_ASSIGNMENT = "submit_assignment"
    GRADE_SUBMISSION = "grade_submission"
    VIEW_SUBMISSIONS = "view_submissions"
    GENERATE_SYLLABUS = "generate_syllabus"
    REQUEST_RECOMMENDATIONS = "request_recommendations"
    VIEW_ADMIN_STATS = "view_admin_stats"
    LIST_USERS = "list_users"


_STAFF = frozenset({Role.LECTURER, Role.ADMIN})

PERMISSIONS: dict[Action, frozenset[Role]] = {
    Action.CREATE_ENROLLMENT: frozenset({Role.STUDENT}),
    # lecturers do not approve enrollments, even for their own courses
    Action.UPDATE_ENROLLMENT_STATUS: frozenset({Role.ADMIN}),
    Action.VIEW_PENDING_ENROLLMENTS: frozenset({Role.ADMIN}),
    Action.CREATE_COURSE: _STAFF,
    Action.UPDATE_COURSE: _STAFF,
    Action.CREATE_ASSIGNMENT: _STAFF,
    Action.SUBMIT_ASSIGNMENT: frozenset({Role.STUDENT}),
    Action.GRADE_SUBMISSION: _STAFF,
    Action.VIEW_SUBMISSIONS: _STAFF,
    Action.GENERATE_SYLLABUS: _STAFF,
    Action.REQUEST_RECOMMENDATIONS: frozenset(Role),
    Action.VIEW_ADMIN_STATS: frozenset({Role.ADMIN}),
    Action.LIST_USERS: frozenset({Role.ADMIN}),
}

_unmapped = set(Action) - set(PERMISSIONS)
if _unmapped:
    raise RuntimeError(f"Actions without a permission rule: {sorted(a.value for a in _unmapped)}")


def is_allowed(role: Role | str, action: Action) -> bool:
    return Role.of(role) in PERMISSIONS[action]


def ensure_allowed(user: User, action: Action) -> None:
    if not is_allowed(user.role, action):
        raise Forbidden()


def ensure_course_staff(user: User, course: Course) -> None:
    """Admins manage any course; lecturers only the courses they teach."""
    role = Role.of(user.role)
    if role is Role.ADMIN:
        return
    if role is Role.LECTURER and course.lecturer_id == user.id:
        return
    raise Forbidden("Only the course lecturer can do this")


def require_action(action: Action):
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        ensure_allowed(current_user, action)
        return current_user

    return dependency
