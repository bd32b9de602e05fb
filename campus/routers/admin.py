from fastapi import APIRouter, Depends

from campus.core.deps import get_storage
from campus.core.permissions import Action, require_action
from campus.db.storage import DatabaseStorage
from campus.models.user import User
from campus.schemas.stats import AdminStats
from campus.schemas.user import UserRead

router = APIRouter()


@router.get("/stats", response_model=AdminStats)
def admin_stats(
    storage: DatabaseStorage = Depends(get_storage),
    _admin: User = Depends(require_action(Action.VIEW_ADMIN_STATS)),
):
    return {**storage.get_user_stats(), **storage.get_course_stats()}


@router.get("/users", response_model=list[UserRead])
def list_users(
    storage: DatabaseStorage = Depends(get_storage),
    _admin: User = Depends(require_action(Action.LIST_USERS)),
):
    return storage.get_all_users()
