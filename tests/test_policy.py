from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from campus.core.errors import Forbidden, InvalidTransition, ValidationError
from campus.core.lifecycle import (
    EnrollmentStatus,
    SubmissionStatus,
    check_grade,
    check_submission_payload,
    ensure_resubmittable,
    submission_status,
    transition_enrollment,
)
from campus.core.navigation import quick_actions, visible_navigation
from campus.core.permissions import PERMISSIONS, Action, ensure_allowed, ensure_course_staff, is_allowed
from campus.core.roles import Role
from campus.core.validation import validate
from campus.services.dashboard import time_remaining


# permissions

def test_every_action_has_a_rule():
    assert set(PERMISSIONS) == set(Action)


@pytest.mark.parametrize(
    "role,action,allowed",
    [
        ("student", Action.CREATE_ENROLLMENT, True),
        ("lecturer", Action.CREATE_ENROLLMENT, False),
        ("admin", Action.UPDATE_ENROLLMENT_STATUS, True),
        ("lecturer", Action.UPDATE_ENROLLMENT_STATUS, False),
        ("lecturer", Action.CREATE_COURSE, True),
        ("student", Action.CREATE_COURSE, False),
        ("student", Action.SUBMIT_ASSIGNMENT, True),
        ("admin", Action.SUBMIT_ASSIGNMENT, False),
        ("lecturer", Action.GRADE_SUBMISSION, True),
        ("student", Action.GENERATE_SYLLABUS, False),
        ("student", Action.REQUEST_RECOMMENDATIONS, True),
        ("lecturer", Action.VIEW_ADMIN_STATS, False),
    ],
)
def test_permission_table(role, action, allowed):
    assert is_allowed(role, action) is allowed


def test_unknown_role_rejected():
    with pytest.raises(ValueError):
        is_allowed("Student", Action.CREATE_COURSE)


def test_ensure_allowed_raises():
    with pytest.raises(Forbidden):
        ensure_allowed(SimpleNamespace(role="student"), Action.GRADE_SUBMISSION)


def test_course_staff_checks_ownership():
    course = SimpleNamespace(lecturer_id=7)
    ensure_course_staff(SimpleNamespace(id=7, role="lecturer"), course)
    ensure_course_staff(SimpleNamespace(id=1, role="admin"), course)
    with pytest.raises(Forbidden):
        ensure_course_staff(SimpleNamespace(id=8, role="lecturer"), course)
    with pytest.raises(Forbidden):
        ensure_course_staff(SimpleNamespace(id=7, role="student"), course)


# navigation

def labels(items):
    return [i.label for i in items]


def test_navigation_without_role_is_base_only():
    assert labels(visible_navigation(None)) == ["Dashboard", "Courses"]
    assert quick_actions(None) == []


def test_navigation_per_role():
    student = visible_navigation(Role.STUDENT)
    assert labels(student)[:2] == ["Dashboard", "Courses"]
    assert "Grades" in labels(student)
    assert "Users" not in labels(student)
    ai_item = next(i for i in student if i.label == "AI Assistant")
    assert ai_item.badge == "New"

    assert "Pending Approvals" in labels(visible_navigation("admin"))
    assert "Students" in labels(visible_navigation("lecturer"))


def test_quick_actions_per_role():
    assert labels(quick_actions("student")) == ["Browse Courses"]
    assert labels(quick_actions("lecturer")) == ["Create Course", "Add Assignment"]
    assert labels(quick_actions("admin")) == ["Create Course"]


# lifecycle

def test_enrollment_transitions():
    assert transition_enrollment("pending", "approved") is EnrollmentStatus.APPROVED
    assert transition_enrollment("pending", "rejected") is EnrollmentStatus.REJECTED
    for current in ("approved", "rejected"):
        for target in ("pending", "approved", "rejected"):
            with pytest.raises(InvalidTransition):
                transition_enrollment(current, target)


def test_submission_status_follows_grade():
    submitted = SimpleNamespace(grade=None)
    graded = SimpleNamespace(grade=0.0)
    assert submission_status(submitted) is SubmissionStatus.SUBMITTED
    assert submission_status(graded) is SubmissionStatus.GRADED
    ensure_resubmittable(submitted)
    with pytest.raises(InvalidTransition):
        ensure_resubmittable(graded)


def test_submission_payload_rules():
    plain = SimpleNamespace(file_required=False)
    needs_file = SimpleNamespace(file_required=True)

    check_submission_payload(plain, "answer", has_file=False)
    check_submission_payload(plain, None, has_file=True)
    check_submission_payload(needs_file, None, has_file=True)
    with pytest.raises(ValidationError):
        check_submission_payload(plain, "", has_file=False)
    with pytest.raises(ValidationError):
        check_submission_payload(needs_file, "answer", has_file=False)


def test_grade_bounds():
    assignment = SimpleNamespace(max_points=100)
    check_grade(assignment, 0)
    check_grade(assignment, 100)
    with pytest.raises(ValidationError):
        check_grade(assignment, 100.5)


def test_time_remaining():
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)
    ahead = time_remaining(now + timedelta(days=2, hours=5, minutes=30), now=now)
    assert (ahead.days, ahead.hours, ahead.is_overdue) == (2, 5, False)

    # naive values are read as UTC
    behind = time_remaining(datetime(2029, 12, 31, 21), now=now)
    assert (behind.days, behind.hours, behind.is_overdue) == (0, 3, True)


# validation

def test_validate_collects_all_errors():
    with pytest.raises(ValidationError) as excinfo:
        validate("course", {"title": "", "code": "X", "credits": 11})
    fields = {e["field"] for e in excinfo.value.errors}
    assert {"title", "code", "credits", "department"} <= fields


def test_validate_role_is_case_sensitive():
    payload = {
        "username": "abc",
        "email": "abc@example.com",
        "password": "secret1",
        "role": "Student",
        "first_name": "A",
        "last_name": "B",
    }
    with pytest.raises(ValidationError) as excinfo:
        validate("user", payload)
    assert [e["field"] for e in excinfo.value.errors] == ["role"]

    user = validate("user", {**payload, "role": "student"})
    assert user.role is Role.STUDENT


def test_validate_unknown_kind():
    with pytest.raises(ValueError):
        validate("timetable", {})
