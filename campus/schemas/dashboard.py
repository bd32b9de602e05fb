from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from campus.core.roles import Role
from campus.schemas.assignment import AssignmentRead
from campus.schemas.course import CourseRead
from campus.schemas.enrollment import EnrollmentOut
from campus.schemas.navigation import NavItem
from campus.schemas.stats import CourseActivity
from campus.schemas.submission import SubmissionRead
from campus.schemas.user import UserSummary


class TimeRemaining(BaseModel):
    days: int
    hours: int
    is_overdue: bool


class AssignmentView(AssignmentRead):
    course_title: str
    submission: Optional[SubmissionRead] = None
    time_remaining: Optional[TimeRemaining] = None


class CourseView(CourseRead):
    lecturer: Optional[UserSummary] = None
    enrollment_count: int = 0
    is_enrolled: bool = False
    assignments: list[AssignmentRead] = []


class DashboardView(BaseModel):
    role: Role
    generated_at: datetime
    stats: dict[str, float | int]
    courses: list[CourseRead] = []
    course_activity: list[CourseActivity] = []
    assignments: list[AssignmentView] = []
    pending_enrollments: list[EnrollmentOut] = []
    navigation: list[NavItem] = []
