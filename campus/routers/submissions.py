import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from campus.core.current_user import get_current_user
from campus.core.deps import get_storage
from campus.core.errors import ConflictError, Forbidden, NotFoundError, UniqueConstraintViolation
from campus.core.lifecycle import check_grade, check_submission_payload, ensure_resubmittable
from campus.core.permissions import Action, ensure_course_staff, is_allowed, require_action
from campus.db.storage import DatabaseStorage
from campus.models.assignment import Assignment
from campus.models.course import Course
from campus.models.user import User
from campus.routers.assignments import ensure_approved_student
from campus.schemas.submission import SubmissionGradeUpdate, SubmissionRead
from campus.services.uploads import discard_upload, save_upload

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_assignment_exists(storage: DatabaseStorage, assignment_id: int) -> Assignment:
    a = storage.get_assignment(assignment_id)
    if not a:
        raise NotFoundError("Assignment not found")
    return a


def _course_of(storage: DatabaseStorage, assignment: Assignment) -> Course:
    course = storage.get_course(assignment.course_id)
    if not course:
        raise NotFoundError("Course not found")
    return course


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_assignment(
    assignment_id: int,
    content: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(require_action(Action.SUBMIT_ASSIGNMENT)),
):
    assignment = _ensure_assignment_exists(storage, assignment_id)
    ensure_approved_student(storage, assignment.course_id, me.id)

    has_file = file is not None and bool(file.filename)
    existing = storage.get_submission(assignment_id, me.id)
    if existing:
        ensure_resubmittable(existing)
    check_submission_payload(assignment, content, has_file)

    file_path = save_upload(file) if has_file else None

    # resubmission before grading replaces the same row
    if existing:
        previous_file = existing.file_path
        try:
            submission = storage.update_submission_content(existing.id, content=content, file_path=file_path)
        except Exception:
            discard_upload(file_path)
            raise
        if file_path and previous_file and previous_file != file_path:
            discard_upload(previous_file)
        logger.info("Student %s resubmitted assignment %s", me.id, assignment_id)
        return submission

    try:
        submission = storage.create_submission(
            assignment_id=assignment_id,
            student_id=me.id,
            content=content,
            file_path=file_path,
        )
    except UniqueConstraintViolation as exc:
        discard_upload(file_path)
        raise ConflictError("Submission already exists") from exc
    except Exception:
        discard_upload(file_path)
        raise

    logger.info("Student %s submitted assignment %s", me.id, assignment_id)
    return submission


@router.get(
    "/assignments/{assignment_id}/submissions",
    response_model=list[SubmissionRead],
)
def list_submissions_for_assignment(
    assignment_id: int,
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(require_action(Action.VIEW_SUBMISSIONS)),
):
    assignment = _ensure_assignment_exists(storage, assignment_id)
    ensure_course_staff(me, _course_of(storage, assignment))

    return storage.get_submissions_by_assignment(assignment_id)


@router.get(
    "/students/{student_id}/submissions",
    response_model=list[SubmissionRead],
)
def list_submissions_for_student(
    student_id: int,
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    # students can only see their own work
    if me.id != student_id and not is_allowed(me.role, Action.VIEW_SUBMISSIONS):
        raise Forbidden("Access denied")
    return storage.get_submissions_by_student(student_id)


@router.put(
    "/submissions/{submission_id}/grade",
    response_model=SubmissionRead,
)
def grade_submission(
    submission_id: int,
    payload: SubmissionGradeUpdate,
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(require_action(Action.GRADE_SUBMISSION)),
):
    sub = storage.get_submission_by_id(submission_id)
    if not sub:
        raise NotFoundError("Submission not found")

    assignment = _ensure_assignment_exists(storage, sub.assignment_id)
    ensure_course_staff(me, _course_of(storage, assignment))
    check_grade(assignment, payload.grade)

    sub = storage.update_submission_grade(submission_id, payload.grade, payload.feedback)
    logger.info("User %s graded submission %s", me.id, submission_id)
    return sub
