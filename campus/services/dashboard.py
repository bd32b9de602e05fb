"""
Role-specific read views assembled from storage queries.

One builder serves every role: the role only decides which queries feed the
stats and lists.
"""
from datetime import datetime
from typing import Optional

from campus.core.lifecycle import EnrollmentStatus
from campus.core.navigation import visible_navigation
from campus.core.roles import Role
from campus.db.base_class import as_utc, utcnow
from campus.db.storage import DatabaseStorage
from campus.models.assignment import Assignment
from campus.models.course import Course
from campus.models.submission import Submission
from campus.models.user import User
from campus.schemas.assignment import AssignmentRead
from campus.schemas.course import CourseRead
from campus.schemas.dashboard import AssignmentView, CourseView, DashboardView, TimeRemaining
from campus.schemas.enrollment import EnrollmentOut
from campus.schemas.stats import CourseActivity
from campus.schemas.submission import SubmissionRead
from campus.schemas.user import UserSummary


def time_remaining(due: datetime, now: Optional[datetime] = None) -> TimeRemaining:
    now = now or utcnow()
    diff = (as_utc(due) - now).total_seconds()
    remaining = abs(diff)
    return TimeRemaining(
        days=int(remaining // 86400),
        hours=int((remaining % 86400) // 3600),
        is_overdue=diff < 0,
    )


def _approved_course_ids(storage: DatabaseStorage, student_id: int) -> list[int]:
    return [
        e.course_id
        for e in storage.get_enrollments_by_student(student_id)
        if e.status == EnrollmentStatus.APPROVED.value
    ]


def _visible_courses(storage: DatabaseStorage, user: User) -> list[Course]:
    role = Role.of(user.role)
    if role is Role.STUDENT:
        courses = [storage.get_course(cid) for cid in _approved_course_ids(storage, user.id)]
        return [c for c in courses if c is not None and c.is_active]
    if role is Role.LECTURER:
        return storage.get_courses_by_lecturer(user.id)
    return storage.get_all_courses()


def _assignment_view(assignment: Assignment, course: Course,
                     submission: Optional[Submission] = None,
                     with_time: bool = False) -> AssignmentView:
    return AssignmentView(
        **AssignmentRead.model_validate(assignment).model_dump(),
        course_title=course.title,
        submission=SubmissionRead.model_validate(submission) if submission else None,
        time_remaining=time_remaining(assignment.due_date) if with_time else None,
    )


def extended_courses(storage: DatabaseStorage, user: User) -> list[CourseView]:
    is_student = Role.of(user.role) is Role.STUDENT
    views = []
    for course in _visible_courses(storage, user):
        lecturer = storage.get_user(course.lecturer_id) if course.lecturer_id else None
        views.append(
            CourseView(
                **CourseRead.model_validate(course).model_dump(),
                lecturer=UserSummary.model_validate(lecturer) if lecturer else None,
                enrollment_count=storage.count_enrollments_by_course(course.id),
                is_enrolled=is_student,
                assignments=[
                    AssignmentRead.model_validate(a)
                    for a in storage.get_assignments_by_course(course.id)
                ],
            )
        )
    return views


def extended_assignments(storage: DatabaseStorage, user: User) -> list[AssignmentView]:
    is_student = Role.of(user.role) is Role.STUDENT
    courses = {c.id: c for c in _visible_courses(storage, user)}
    views = []
    for assignment in storage.get_assignments_for_courses(courses.keys()):
        course = courses[assignment.course_id]
        if is_student:
            submission = storage.get_submission(assignment.id, user.id)
            views.append(_assignment_view(assignment, course, submission, with_time=True))
        else:
            views.append(_assignment_view(assignment, course))
    return views


def _student_stats(storage: DatabaseStorage, user: User, assignments: list[AssignmentView]) -> dict:
    enrollments = storage.get_enrollments_by_student(user.id)
    submissions = storage.get_submissions_by_student(user.id)
    graded = [s for s in submissions if s.grade is not None]

    average = sum(s.grade for s in graded) / len(graded) if graded else 0.0
    completion = len(graded) / len(submissions) * 100 if submissions else 0.0
    upcoming = sum(
        1 for a in assignments
        if a.submission is None and a.time_remaining and not a.time_remaining.is_overdue
    )
    return {
        "enrolled_courses": sum(1 for e in enrollments if e.status != EnrollmentStatus.REJECTED.value),
        "approved_courses": sum(1 for e in enrollments if e.status == EnrollmentStatus.APPROVED.value),
        "total_submissions": len(submissions),
        "graded_submissions": len(graded),
        "average_grade": round(average, 2),
        "completion_rate": round(completion, 2),
        "upcoming_deadlines": upcoming,
    }


def build_dashboard(storage: DatabaseStorage, user: User) -> DashboardView:
    role = Role.of(user.role)
    view = DashboardView(
        role=role,
        generated_at=utcnow(),
        stats={},
        navigation=visible_navigation(role),
    )

    if role is Role.STUDENT:
        view.courses = [CourseRead.model_validate(c) for c in _visible_courses(storage, user)]
        view.assignments = extended_assignments(storage, user)
        view.stats = _student_stats(storage, user, view.assignments)

    elif role is Role.LECTURER:
        courses = storage.get_courses_by_lecturer(user.id)
        activity = [CourseActivity(**storage.get_course_activity(c)) for c in courses]
        view.courses = [CourseRead.model_validate(c) for c in courses]
        view.course_activity = activity
        view.stats = {
            "total_courses": len(courses),
            "total_students": sum(a.total_students for a in activity),
            "total_assignments": sum(a.total_assignments for a in activity),
            "total_submissions": sum(a.total_submissions for a in activity),
            "ungraded_submissions": sum(a.ungraded_submissions for a in activity),
        }

    else:
        pending = storage.get_pending_enrollments()
        view.pending_enrollments = [EnrollmentOut.model_validate(e) for e in pending]
        view.stats = {
            **storage.get_user_stats(),
            **storage.get_course_stats(),
            "pending_enrollments": len(pending),
        }

    return view
