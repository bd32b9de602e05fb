"""
Enrollment and submission state machines.

Enrollment:  pending -> approved | rejected   (approved/rejected are terminal)
Submission:  submitted -> graded               (status derived from the grade)
"""
import enum

from campus.core.errors import InvalidTransition, ValidationError


class EnrollmentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SubmissionStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    GRADED = "graded"


ENROLLMENT_TRANSITIONS: dict[EnrollmentStatus, frozenset[EnrollmentStatus]] = {
    EnrollmentStatus.PENDING: frozenset({EnrollmentStatus.APPROVED, EnrollmentStatus.REJECTED}),
    EnrollmentStatus.APPROVED: frozenset(),
    EnrollmentStatus.REJECTED: frozenset(),
}

INITIAL_ENROLLMENT_STATUS = EnrollmentStatus.PENDING


def transition_enrollment(current: str, target: str) -> EnrollmentStatus:
    current_status = EnrollmentStatus(current)
    target_status = EnrollmentStatus(target)
    if target_status not in ENROLLMENT_TRANSITIONS[current_status]:
        raise InvalidTransition(
            f"Cannot move enrollment from {current_status.value} to {target_status.value}"
        )
    return target_status


def submission_status(submission) -> SubmissionStatus:
    if submission.grade is None:
        return SubmissionStatus.SUBMITTED
    return SubmissionStatus.GRADED


def ensure_resubmittable(submission) -> None:
    if submission_status(submission) is SubmissionStatus.GRADED:
        raise InvalidTransition("Submission has already been graded")


def check_submission_payload(assignment, content: str | None, has_file: bool) -> None:
    if assignment.file_required and not has_file:
        raise ValidationError.single("file", "This assignment requires a file upload")
    if not has_file and not (content and content.strip()):
        raise ValidationError.single("content", "Provide content or a file")


def check_grade(assignment, grade: float) -> None:
    if grade < 0 or grade > assignment.max_points:
        raise ValidationError.single(
            "grade", f"grade must be between 0 and {assignment.max_points}"
        )
