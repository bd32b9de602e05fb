"""
Persistence gateway: the only code that reads or writes rows.

Lookups by unique key return ``None`` when nothing matches. Creates return the
refreshed entity (server-assigned id and timestamps filled in). Updates are
partial and raise NotFoundError for unknown ids. Uniqueness is left to the
database; an IntegrityError on commit becomes UniqueConstraintViolation.
"""
import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus.core.errors import ConflictError, NotFoundError, TokenUsed, UniqueConstraintViolation
from campus.core.lifecycle import INITIAL_ENROLLMENT_STATUS, EnrollmentStatus
from campus.core.roles import Role
from campus.db.base_class import as_utc, utcnow
from campus.models.ai_artifact import AiRecommendation, GeneratedSyllabus
from campus.models.assignment import Assignment
from campus.models.course import Course
from campus.models.enrollment import Enrollment
from campus.models.password_reset import PasswordReset
from campus.models.submission import Submission
from campus.models.user import User

logger = logging.getLogger(__name__)

# column name -> field reported to the caller
_UNIQUE_FIELDS = {
    "users.username": "username",
    "users_username": "username",
    "users.email": "email",
    "users_email": "email",
    "uq_users_email_lower": "email",
    "users.phone_number": "phone_number",
    "users_phone_number": "phone_number",
    "courses.code": "code",
    "courses_code": "code",
    "password_resets.token": "token",
    "password_resets_token": "token",
    "enrollments.student_id": "enrollment",
    "uq_enrollments_active_student_course": "enrollment",
    "submissions.assignment_id": "submission",
    "uq_submission_assignment_student": "submission",
}


def _integrity_to_error(exc: IntegrityError) -> ConflictError:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = message.lower()
    if "unique" not in lowered and "duplicate" not in lowered:
        return ConflictError("Integrity constraint violated")
    for needle, field in _UNIQUE_FIELDS.items():
        if needle in lowered:
            return UniqueConstraintViolation(field)
    return UniqueConstraintViolation()


class DatabaseStorage:
    def __init__(self, db: Session):
        self.db = db

    # -- helpers ---------------------------------------------------------

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise _integrity_to_error(exc) from exc

    def _add(self, obj):
        self.db.add(obj)
        self._commit()
        self.db.refresh(obj)
        return obj

    def _require(self, model, obj_id: int, label: str):
        obj = self.db.get(model, obj_id)
        if obj is None:
            raise NotFoundError(f"{label} not found")
        return obj

    # -- users -----------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(func.lower(User.email) == email.lower()).first()

    def get_user_by_phone(self, phone_number: str) -> Optional[User]:
        return self.db.query(User).filter(User.phone_number == phone_number).first()

    def get_all_users(self) -> list[User]:
        return self.db.query(User).order_by(User.id.asc()).all()

    def create_user(self, *, username: str, email: str, hashed_password: str, role: Role | str,
                    first_name: str, last_name: str, phone_number: str | None = None) -> User:
        user = User(
            username=username,
            email=email.strip().lower(),
            hashed_password=hashed_password,
            role=Role.of(role).value,
            first_name=first_name,
            last_name=last_name,
            phone_number=phone_number,
        )
        return self._add(user)

    # -- password resets -------------------------------------------------

    def create_password_reset(self, *, user_id: int, token: str, expires_at: datetime) -> PasswordReset:
        return self._add(PasswordReset(user_id=user_id, token=token, expires_at=expires_at, used=False))

    def get_password_reset(self, token: str) -> Optional[PasswordReset]:
        return self.db.query(PasswordReset).filter(PasswordReset.token == token).first()

    def invalidate_password_resets(self, user_id: int) -> int:
        result = self.db.execute(
            update(PasswordReset)
            .where(PasswordReset.user_id == user_id, PasswordReset.used.is_(False))
            .values(used=True)
        )
        self._commit()
        return result.rowcount or 0

    def redeem_password_reset(self, reset_id: int, user_id: int, hashed_password: str) -> User:
        """Mark the token used and set the new password in one transaction."""
        try:
            result = self.db.execute(
                update(PasswordReset)
                .where(PasswordReset.id == reset_id, PasswordReset.used.is_(False))
                .values(used=True)
            )
            if result.rowcount != 1:
                raise TokenUsed()
            user = self.db.get(User, user_id)
            if user is None:
                raise NotFoundError("User not found")
            user.hashed_password = hashed_password
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    # -- courses ---------------------------------------------------------

    def get_course(self, course_id: int) -> Optional[Course]:
        return self.db.get(Course, course_id)

    def get_all_courses(self) -> list[Course]:
        return (
            self.db.query(Course)
            .filter(Course.is_active.is_(True))
            .order_by(Course.title.asc(), Course.id.asc())
            .all()
        )

    def get_courses_by_department(self, department: str) -> list[Course]:
        return (
            self.db.query(Course)
            .filter(Course.department == department, Course.is_active.is_(True))
            .order_by(Course.title.asc(), Course.id.asc())
            .all()
        )

    def get_courses_by_lecturer(self, lecturer_id: int) -> list[Course]:
        return (
            self.db.query(Course)
            .filter(Course.lecturer_id == lecturer_id, Course.is_active.is_(True))
            .order_by(Course.title.asc(), Course.id.asc())
            .all()
        )

    def create_course(self, **fields: Any) -> Course:
        return self._add(Course(**fields))

    def update_course(self, course_id: int, changes: dict[str, Any]) -> Course:
        course = self._require(Course, course_id, "Course")
        for key, value in changes.items():
            setattr(course, key, value)
        self._commit()
        self.db.refresh(course)
        return course

    # -- enrollments -----------------------------------------------------

    def get_enrollment(self, course_id: int, student_id: int) -> Optional[Enrollment]:
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.course_id == course_id, Enrollment.student_id == student_id)
            .order_by(Enrollment.id.desc())
            .first()
        )

    def get_enrollment_by_id(self, enrollment_id: int) -> Optional[Enrollment]:
        return self.db.get(Enrollment, enrollment_id)

    def get_enrollments_by_student(self, student_id: int) -> list[Enrollment]:
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.student_id == student_id)
            .order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
            .all()
        )

    def get_enrollments_by_course(self, course_id: int) -> list[Enrollment]:
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.course_id == course_id)
            .order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
            .all()
        )

    def get_pending_enrollments(self) -> list[Enrollment]:
        return (
            self.db.query(Enrollment)
            .filter(Enrollment.status == EnrollmentStatus.PENDING.value)
            .order_by(Enrollment.enrolled_at.desc(), Enrollment.id.desc())
            .all()
        )

    def create_enrollment(self, *, course_id: int, student_id: int) -> Enrollment:
        enrollment = Enrollment(
            course_id=course_id,
            student_id=student_id,
            status=INITIAL_ENROLLMENT_STATUS.value,
        )
        return self._add(enrollment)

    def update_enrollment_status(self, enrollment_id: int, status: EnrollmentStatus | str) -> Enrollment:
        enrollment = self._require(Enrollment, enrollment_id, "Enrollment")
        enrollment.status = EnrollmentStatus(status).value
        self._commit()
        self.db.refresh(enrollment)
        return enrollment

    # -- assignments -----------------------------------------------------

    def get_assignment(self, assignment_id: int) -> Optional[Assignment]:
        return self.db.get(Assignment, assignment_id)

    def get_assignments_by_course(self, course_id: int) -> list[Assignment]:
        return (
            self.db.query(Assignment)
            .filter(Assignment.course_id == course_id)
            .order_by(Assignment.due_date.asc(), Assignment.id.asc())
            .all()
        )

    def get_assignments_for_courses(self, course_ids: Iterable[int]) -> list[Assignment]:
        course_ids = list(course_ids)
        if not course_ids:
            return []
        return (
            self.db.query(Assignment)
            .filter(Assignment.course_id.in_(course_ids))
            .order_by(Assignment.due_date.asc(), Assignment.id.asc())
            .all()
        )

    def create_assignment(self, **fields: Any) -> Assignment:
        return self._add(Assignment(**fields))

    # -- submissions -----------------------------------------------------

    def get_submission(self, assignment_id: int, student_id: int) -> Optional[Submission]:
        return (
            self.db.query(Submission)
            .filter(Submission.assignment_id == assignment_id, Submission.student_id == student_id)
            .first()
        )

    def get_submission_by_id(self, submission_id: int) -> Optional[Submission]:
        return self.db.get(Submission, submission_id)

    def get_submissions_by_student(self, student_id: int) -> list[Submission]:
        return (
            self.db.query(Submission)
            .filter(Submission.student_id == student_id)
            .order_by(Submission.submitted_at.desc(), Submission.id.desc())
            .all()
        )

    def get_submissions_by_assignment(self, assignment_id: int) -> list[Submission]:
        return (
            self.db.query(Submission)
            .filter(Submission.assignment_id == assignment_id)
            .order_by(Submission.submitted_at.desc(), Submission.id.desc())
            .all()
        )

    def create_submission(self, *, assignment_id: int, student_id: int,
                          content: str | None = None, file_path: str | None = None) -> Submission:
        submission = Submission(
            assignment_id=assignment_id,
            student_id=student_id,
            content=content,
            file_path=file_path,
            submitted_at=utcnow(),
        )
        return self._add(submission)

    def update_submission_content(self, submission_id: int, *, content: str | None,
                                  file_path: str | None) -> Submission:
        submission = self._require(Submission, submission_id, "Submission")
        submission.content = content
        if file_path is not None:
            submission.file_path = file_path
        submission.submitted_at = utcnow()
        self._commit()
        self.db.refresh(submission)
        return submission

    def update_submission_grade(self, submission_id: int, grade: float,
                                feedback: str | None = None) -> Submission:
        submission = self._require(Submission, submission_id, "Submission")
        graded_at = utcnow()
        submitted_at = as_utc(submission.submitted_at)
        if submitted_at is not None and graded_at < submitted_at:
            graded_at = submitted_at
        submission.grade = grade
        submission.feedback = feedback
        submission.graded_at = graded_at
        self._commit()
        self.db.refresh(submission)
        return submission

    # -- AI artifacts ----------------------------------------------------

    def save_recommendations(self, user_id: int, interests: str, level: str,
                             recommendations: dict) -> AiRecommendation:
        return self._add(
            AiRecommendation(
                user_id=user_id,
                interests=interests,
                level=level,
                recommendations=recommendations,
            )
        )

    def save_syllabus(self, user_id: int, course_title: str, course_description: str,
                      duration: int, credits: int, syllabus: dict) -> GeneratedSyllabus:
        return self._add(
            GeneratedSyllabus(
                user_id=user_id,
                course_title=course_title,
                course_description=course_description,
                duration=duration,
                credits=credits,
                syllabus=syllabus,
            )
        )

    # -- stats -----------------------------------------------------------

    def get_user_stats(self) -> dict[str, int]:
        total = self.db.query(func.count(User.id)).scalar() or 0
        students = (
            self.db.query(func.count(User.id)).filter(User.role == Role.STUDENT.value).scalar()
        ) or 0
        lecturers = (
            self.db.query(func.count(User.id)).filter(User.role == Role.LECTURER.value).scalar()
        ) or 0
        return {
            "total_users": total,
            "active_students": students,
            "active_lecturers": lecturers,
        }

    def get_course_stats(self) -> dict[str, int]:
        total = self.db.query(func.count(Course.id)).scalar() or 0
        active = (
            self.db.query(func.count(Course.id)).filter(Course.is_active.is_(True)).scalar()
        ) or 0
        return {"total_courses": total, "active_courses": active}

    def count_enrollments_by_course(self, course_id: int) -> int:
        return (
            self.db.query(func.count(Enrollment.id))
            .filter(
                Enrollment.course_id == course_id,
                Enrollment.status != EnrollmentStatus.REJECTED.value,
            )
            .scalar()
        ) or 0

    def get_course_activity(self, course: Course) -> dict[str, Any]:
        total_students = (
            self.db.query(func.count(Enrollment.id))
            .filter(
                Enrollment.course_id == course.id,
                Enrollment.status == EnrollmentStatus.APPROVED.value,
            )
            .scalar()
        ) or 0

        total_assignments = (
            self.db.query(func.count(Assignment.id))
            .filter(Assignment.course_id == course.id)
            .scalar()
        ) or 0

        total_submissions = (
            self.db.query(func.count(Submission.id))
            .join(Assignment, Submission.assignment_id == Assignment.id)
            .filter(Assignment.course_id == course.id)
            .scalar()
        ) or 0

        ungraded_submissions = (
            self.db.query(func.count(Submission.id))
            .join(Assignment, Submission.assignment_id == Assignment.id)
            .filter(
                Assignment.course_id == course.id,
                Submission.grade.is_(None),
            )
            .scalar()
        ) or 0

        return {
            "course_id": course.id,
            "course_title": course.title,
            "total_students": total_students,
            "total_assignments": total_assignments,
            "total_submissions": total_submissions,
            "ungraded_submissions": ungraded_submissions,
        }
