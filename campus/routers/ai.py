import logging

from fastapi import APIRouter, Depends

from campus.core.deps import get_ai_client, get_storage
from campus.core.lifecycle import EnrollmentStatus
from campus.core.permissions import Action, require_action
from campus.db.storage import DatabaseStorage
from campus.models.user import User
from campus.schemas.ai import RecommendationRequest, SyllabusRequest
from campus.services.ai import AIClient

logger = logging.getLogger(__name__)

router = APIRouter()


def _enrolled_course_titles(storage: DatabaseStorage, student_id: int) -> list[str]:
    titles = []
    for enrollment in storage.get_enrollments_by_student(student_id):
        if enrollment.status == EnrollmentStatus.REJECTED.value:
            continue
        course = storage.get_course(enrollment.course_id)
        if course:
            titles.append(course.title)
    return titles


@router.post("/recommendations")
def recommend_courses(
    payload: RecommendationRequest,
    storage: DatabaseStorage = Depends(get_storage),
    ai: AIClient = Depends(get_ai_client),
    me: User = Depends(require_action(Action.REQUEST_RECOMMENDATIONS)),
):
    result = ai.recommend_courses(
        payload.interests,
        payload.level,
        existing_courses=_enrolled_course_titles(storage, me.id),
    )
    storage.save_recommendations(me.id, payload.interests, payload.level, result)
    return result


@router.post("/syllabus")
def generate_syllabus(
    payload: SyllabusRequest,
    storage: DatabaseStorage = Depends(get_storage),
    ai: AIClient = Depends(get_ai_client),
    me: User = Depends(require_action(Action.GENERATE_SYLLABUS)),
):
    result = ai.generate_syllabus(
        payload.course_title,
        payload.course_description,
        payload.duration,
        payload.credits,
    )
    storage.save_syllabus(
        me.id,
        payload.course_title,
        payload.course_description,
        payload.duration,
        payload.credits,
        result,
    )
    logger.info("User %s generated a %d-week syllabus", me.id, payload.duration)
    return result
