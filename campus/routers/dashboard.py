from typing import Optional

from fastapi import APIRouter, Depends

from campus.core.current_user import get_current_user, get_optional_user
from campus.core.deps import get_storage
from campus.core.navigation import quick_actions, visible_navigation
from campus.db.storage import DatabaseStorage
from campus.models.user import User
from campus.schemas.dashboard import DashboardView
from campus.schemas.navigation import NavigationRead
from campus.services.dashboard import build_dashboard

router = APIRouter()


@router.get("/dashboard", response_model=DashboardView)
def dashboard(
    storage: DatabaseStorage = Depends(get_storage),
    me: User = Depends(get_current_user),
):
    return build_dashboard(storage, me)


@router.get("/navigation", response_model=NavigationRead)
def navigation(me: Optional[User] = Depends(get_optional_user)):
    role = me.role if me else None
    return {"items": visible_navigation(role), "quick_actions": quick_actions(role)}
